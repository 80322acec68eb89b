"""Shared plumbing for room use cases."""

import functools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pokerroom.core.exceptions import (
    ConflictError,
    NotFoundError,
    PokerRoomError,
    TransportError,
)
from pokerroom.core.validators import normalize_room_code
from pokerroom.domain.enums import ChangeEntity
from pokerroom.domain.participant import Participant
from pokerroom.domain.room import Room
from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.domain.timeutils import utc_now
from pokerroom.ports.change_notifier import ChangeNotifier
from pokerroom.ports.room_repository import RoomRepository

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass
class ActionResult:
    """Outcome of a room operation. Use cases return it instead of raising."""

    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    room: Optional[RoomSnapshot] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, room: Optional[RoomSnapshot] = None, **payload: Any) -> "ActionResult":
        return cls(success=True, room=room, payload=payload)

    @classmethod
    def fail(cls, error: PokerRoomError) -> "ActionResult":
        return cls(success=False, error=error.message, error_code=error.error_code)


def returns_result(func):
    """Turn PokerRoomError raised by ``execute`` into a failed ActionResult."""

    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs) -> ActionResult:
        try:
            return await func(self, *args, **kwargs)
        except PokerRoomError as e:
            logger.warning("%s failed: %s (%s)", type(self).__name__, e.message, e.error_code)
            return ActionResult.fail(e)

    return wrapper


class RoomUseCase:
    """Base for use cases working on one room."""

    def __init__(
        self,
        repository: RoomRepository,
        notifier: Optional[ChangeNotifier] = None,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository
        self.notifier = notifier
        self.clock = clock or utc_now

    @staticmethod
    def _code(code: str) -> str:
        return normalize_room_code(code)

    async def _require_room(self, code: str) -> Room:
        room = await self.repository.get_room(code)
        if room is None:
            raise NotFoundError(f"Room {code} not found")
        return room

    async def _require_snapshot(self, code: str) -> RoomSnapshot:
        snapshot = await self.repository.get_snapshot(code)
        if snapshot is None:
            raise NotFoundError(f"Room {code} not found")
        return snapshot

    async def _require_participant(self, code: str, name: str) -> Participant:
        participant = await self.repository.get_participant(code, name)
        if participant is None:
            raise NotFoundError(f"Participant {name} is not in room {code}")
        return participant

    async def _require_facilitator(self, code: str, actor: Optional[str]) -> None:
        """No-op without an actor; otherwise the actor must facilitate the room."""
        if actor is None:
            return
        participant = await self.repository.get_participant(code, actor)
        if participant is None or not participant.is_facilitator:
            raise ConflictError(f"{actor} is not a facilitator of room {code}")

    async def _touch(self, code: str) -> None:
        await self.repository.touch_room(code, self.clock())

    async def _notify(self, code: str, entity: ChangeEntity) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.publish(code, entity.value)
        except TransportError as e:
            # the change is committed; subscribers catch up on the next notification
            logger.warning("Change notification for room %s dropped: %s", code, e.message)

    async def _finish(self, code: str, entity: ChangeEntity, touch: bool = True, **payload: Any) -> ActionResult:
        """Common tail of a mutation: bump activity, notify, return fresh snapshot."""
        if touch:
            await self._touch(code)
        await self._notify(code, entity)
        return ActionResult.ok(await self.repository.get_snapshot(code), **payload)
