"""Abstract contract for the remote post source."""

from abc import ABC, abstractmethod

from src.sessionkit.features.posts.models import PostCandidate, PrivateMessage, PublicComment


class PostsConnector(ABC):
    """Remote fetch/create for public comments and private messages."""

    @abstractmethod
    async def fetch_public_comments(self) -> list[PublicComment]:
        pass

    @abstractmethod
    async def fetch_my_private_messages(self) -> list[PrivateMessage]:
        pass

    @abstractmethod
    async def create_public_comment(self, candidate: PostCandidate) -> PublicComment:
        pass

    @abstractmethod
    async def create_private_message(self, candidate: PostCandidate) -> PrivateMessage:
        pass
