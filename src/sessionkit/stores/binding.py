"""Wires gated stores to the session's sign-in event."""

import logging

from src.sessionkit.stores.base import LoadableStore
from src.sessionkit.stores.loadable import Empty, Failed

logger = logging.getLogger(__name__)


def bind_to_session(store: LoadableStore, session) -> None:
    """
    Initialize or refresh a gated store whenever the session signs in.

    Stores declaring `requires_real_user` load only for real (non-anonymous)
    users; `requires_sign_in` stores load for any signed-in identity, anonymous
    included. Nothing happens on sign-out: loaded items stay in memory until the
    next successful fetch.

    Args:
        store: Store to bind
        session: AuthSession whose events drive the store
    """

    def on_signed_in() -> None:
        if store.requires_real_user and not session.is_real_user:
            logger.debug(f"Skipping {store.label} load: requires a real user")
            return
        if store.requires_sign_in and not session.is_signed_in:
            return

        if isinstance(store.state, (Empty, Failed)):
            store.initialize()
        else:
            store.fetch()

    session.events.on_signed_in(on_signed_in)
    logger.debug(
        f"Bound {store.label} store to session sign-in",
        extra={
            "requires_sign_in": store.requires_sign_in,
            "requires_real_user": store.requires_real_user,
        },
    )
