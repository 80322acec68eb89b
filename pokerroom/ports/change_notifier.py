"""Change notification interface (realtime transport)."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable

ChangeCallback = Callable[[str], None]
Unsubscribe = Callable[[], Awaitable[None]]


class ChangeNotifier(ABC):
    """Publish/subscribe for "something in room X changed".

    Delivery is at-least-once. The entity tag is informational: subscribers
    treat every notification as a trigger to re-read the room.
    """

    @abstractmethod
    async def publish(self, room_code: str, entity: str) -> None:
        """Announce a change to an entity of the room."""
        pass

    @abstractmethod
    async def subscribe(self, room_code: str, on_change: ChangeCallback) -> Unsubscribe:
        """Register callback; returns an async unsubscribe function."""
        pass

    async def close(self) -> None:
        """Cleanup resources."""
        return None
