"""Abstract chat transport."""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from src.core.schemas import InboundMessage


class TransportError(Exception):
    """Raised when a message cannot be delivered."""


class Transport(ABC):
    """Delivers text to contacts and yields their inbound messages."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Registry name of this transport (e.g. 'console')."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying channel."""

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying channel. Safe to call twice."""

    @abstractmethod
    def is_connected(self) -> bool: ...

    @abstractmethod
    async def send(self, contact_id: str, text: str) -> None:
        """Deliver ``text`` to ``contact_id``.

        Raises:
            TransportError: If the transport is closed or delivery fails.
        """

    @abstractmethod
    def messages(self) -> AsyncIterator[InboundMessage]:
        """Iterate over inbound messages until the channel closes."""
