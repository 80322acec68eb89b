"""In-process change notifier."""

import logging
from typing import Dict, List

from pokerroom.ports.change_notifier import ChangeCallback, ChangeNotifier, Unsubscribe

logger = logging.getLogger(__name__)


class LocalChangeNotifier(ChangeNotifier):
    """Delivers notifications to subscribers living in the same process."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[ChangeCallback]] = {}

    async def publish(self, room_code: str, entity: str) -> None:
        for callback in list(self._subscribers.get(room_code, [])):
            try:
                callback(entity)
            except Exception as e:
                logger.error("Change subscriber for room %s failed: %s", room_code, e)

    async def subscribe(self, room_code: str, on_change: ChangeCallback) -> Unsubscribe:
        self._subscribers.setdefault(room_code, []).append(on_change)

        async def unsubscribe() -> None:
            callbacks = self._subscribers.get(room_code)
            if callbacks and on_change in callbacks:
                callbacks.remove(on_change)
                if not callbacks:
                    del self._subscribers[room_code]

        return unsubscribe

    def subscriber_count(self, room_code: str) -> int:
        return len(self._subscribers.get(room_code, []))
