"""Use case for presence heartbeats."""

from pokerroom.core.exceptions import NotFoundError
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result


class HeartbeatUseCase(RoomUseCase):
    """Refresh ``last_seen``. A missing participant means they were kicked.

    Presence is not a room mutation: no activity bump, no notification.
    """

    @returns_result
    async def execute(self, code: str, name: str) -> ActionResult:
        code = self._code(code)
        participant = await self.repository.update_participant(code, name, last_seen=self.clock())
        if participant is None:
            raise NotFoundError(f"Participant {name} is not in room {code}", error_code="kicked")
        return ActionResult.ok(last_seen=participant.to_dict()["last_seen"])
