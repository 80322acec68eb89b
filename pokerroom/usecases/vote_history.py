"""Use case for reading the room's vote history."""

from pokerroom.services.history import VoteHistoryAggregator
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result


class GetVoteHistoryUseCase(RoomUseCase):
    def __init__(self, repository, history: VoteHistoryAggregator):
        super().__init__(repository)
        self.history = history

    @returns_result
    async def execute(self, code: str) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        history = await self.history.get_vote_history(code)
        return ActionResult.ok(history=history)
