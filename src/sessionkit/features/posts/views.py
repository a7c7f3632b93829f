"""Derived, UI-ready projections over loaded posts."""

from src.sessionkit.features.posts.models import ConversationPartner, Post
from src.sessionkit.stores.loadable import Loadable, Loaded


def conversation_partners(state: Loadable, current_uid: str) -> list[ConversationPartner]:
    """
    List the people the current user has exchanged posts with.

    Each partner appears once, with the timestamp of the latest post in the
    conversation. Partners with an invalid user key are dropped.

    Args:
        state: Store state holding posts
        current_uid: uid of the signed-in user

    Returns:
        Partners ordered oldest-latest-activity first (empty unless Loaded)

    Example:
        >>> conversation_partners(Loaded((a_to_b_t1, b_to_a_t2)), "A")
        [ConversationPartner(user_key=UserKey(uid='B', ...), last_message_at=t2)]
    """
    match state:
        case Loaded(items=posts):
            pass
        case _:
            return []

    latest: dict[str, ConversationPartner] = {}
    for post in posts:
        partner = post.to_user if post.from_user.uid == current_uid else post.from_user
        if not partner.is_valid:
            continue

        seen = latest.get(partner.uid)
        if seen is None or post.timestamp > seen.last_message_at:
            latest[partner.uid] = ConversationPartner(user_key=partner, last_message_at=post.timestamp)

    return sorted(latest.values(), key=lambda p: p.last_message_at)


def post_contains(post: Post, query: str) -> bool:
    """Case-insensitive match over subject, content and non-blank display names."""
    fields = [post.subject, post.content]
    if post.to_user.display_name.strip():
        fields.append(post.to_user.display_name)
    if post.from_user.display_name.strip():
        fields.append(post.from_user.display_name)

    needle = query.lower()
    return any(needle in field.lower() for field in fields)


def search_posts(state: Loadable, query: str) -> list[Post]:
    """Posts matching query, in store order. A blank query matches everything."""
    match state:
        case Loaded(items=posts):
            if not query.strip():
                return list(posts)
            return [post for post in posts if post_contains(post, query)]
        case _:
            return []
