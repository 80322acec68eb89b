"""Use case for reading the full room state."""

from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result


class GetRoomStateUseCase(RoomUseCase):
    """Passive read: never touches last_activity and never notifies."""

    @returns_result
    async def execute(self, code: str) -> ActionResult:
        code = self._code(code)
        return ActionResult.ok(await self._require_snapshot(code))
