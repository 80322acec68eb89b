"""Use case for submitting or withdrawing a vote."""

from typing import Iterable, Optional

from pokerroom.core.exceptions import ConflictError
from pokerroom.core.validators import validate_vote_value
from pokerroom.domain.enums import ChangeEntity
from pokerroom.domain.vote import Vote
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result


class SubmitVoteUseCase(RoomUseCase):
    """Record a participant's vote on the current story.

    The phase is not checked: clients only offer the cards while voting.
    """

    def __init__(self, repository, notifier=None, allowed_scale: Iterable[float] = (), clock=None):
        super().__init__(repository, notifier, clock)
        self.allowed_scale = list(allowed_scale)

    @returns_result
    async def execute(self, code: str, name: str, value: Optional[float]) -> ActionResult:
        code = self._code(code)
        participant = await self._require_participant(code, name)
        if not participant.is_voter:
            raise ConflictError(f"{name} is an observer and cannot vote")

        if value is None:
            await self.repository.delete_vote(code, name)
        else:
            value = validate_vote_value(value, self.allowed_scale)
            await self.repository.upsert_vote(
                Vote(room_code=code, participant_name=name, value=value, created_at=self.clock())
            )
        return await self._finish(code, ChangeEntity.VOTES)
