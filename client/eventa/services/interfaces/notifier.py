"""
Push notification capability.
The workflow depends only on this narrow interface, never on a transport.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Union

Handler = Callable[[dict[str, Any]], Union[None, Awaitable[None]]]


class Notifier(ABC):
    """
    Interface for the push side-channel.

    Implementations:
    - NotificationRelay: WebSocket connection with flat-retry reconnection
    - NullNotifier: delivery disabled

    Delivery is at-most-once and advisory. A failed send never fails the
    REST action that triggered it.
    """

    @abstractmethod
    async def send(self, event: str, payload: dict[str, Any]) -> bool:
        """
        Publish a message to the backend.

        Returns:
            True if the frame was written to an open connection
            False otherwise (logged, never raised)
        """
        pass

    @abstractmethod
    def on(self, event: str, handler: Handler) -> None:
        """Register a handler for messages of the given type."""
        pass

    @abstractmethod
    def off(self, event: str, handler: Handler) -> None:
        """Unregister one handler; other handlers for the event stay."""
        pass
