"""Sign-in and sign-out event registry for session observers."""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

SessionCallback = Callable[[], None]


class SessionEvents:
    """
    Explicit callback registry for session lifecycle events.

    Callbacks run synchronously in registration order. A failing callback is
    logged and does not prevent delivery to the callbacks registered after it.
    """

    def __init__(self) -> None:
        self._signed_in: list[SessionCallback] = []
        self._signed_out: list[SessionCallback] = []

    def on_signed_in(self, callback: SessionCallback) -> None:
        self._signed_in.append(callback)

    def on_signed_out(self, callback: SessionCallback) -> None:
        self._signed_out.append(callback)

    def emit_signed_in(self) -> None:
        self._deliver("signed_in", self._signed_in)

    def emit_signed_out(self) -> None:
        self._deliver("signed_out", self._signed_out)

    def _deliver(self, event: str, callbacks: list[SessionCallback]) -> None:
        logger.debug(f"Publishing {event} to {len(callbacks)} observer(s)")
        for callback in list(callbacks):
            try:
                callback()
            except Exception as e:
                logger.error(
                    f"Session observer failed handling {event}: {e}",
                    exc_info=True,
                    extra={"error_type": "session_observer_failed", "event": event},
                )
