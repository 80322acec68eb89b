"""Use case for revealing votes."""

import logging
from typing import Optional

from pokerroom.core.exceptions import ConflictError, PokerRoomError, TransportError
from pokerroom.domain.enums import ChangeEntity, VotingPhase
from pokerroom.services.history import VoteHistoryAggregator
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log

logger = logging.getLogger(__name__)


class RevealVotesUseCase(RoomUseCase):
    """Flip voting -> revealed exactly once and snapshot the votes into history."""

    def __init__(self, repository, history: VoteHistoryAggregator, notifier=None, clock=None):
        super().__init__(repository, notifier, clock)
        self.history = history

    @returns_result
    async def execute(self, code: str, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)

        now = self.clock()
        updated = await self.repository.compare_and_update_room(
            code,
            expected={"voting_phase": VotingPhase.VOTING},
            updates={"voting_phase": VotingPhase.REVEALED, "last_activity": now},
        )
        if updated is None:
            room = await self._require_room(code)
            if room.voting_phase == VotingPhase.REVEALED:
                return ActionResult.ok(await self.repository.get_snapshot(code), already_revealed=True)
            raise ConflictError("Voting has not started")

        try:
            snapshot = await self._require_snapshot(code)
            entries = await self.history.record_reveal(snapshot, now)
        except PokerRoomError:
            await self._reopen_voting(code)
            raise
        story = snapshot.current_story
        if entries and story is not None and story.voted_at is None:
            await self.repository.update_story(code, story.id, voted_at=now)

        audit_log("reveal_votes", code, actor, {"votes": len(entries)})
        return await self._finish(code, ChangeEntity.ROOM, touch=False, already_revealed=False)

    async def _reopen_voting(self, code: str) -> None:
        """Undo the phase flip so the reveal can be retried with its history."""
        try:
            reopened = await self.repository.compare_and_update_room(
                code,
                expected={"voting_phase": VotingPhase.REVEALED},
                updates={"voting_phase": VotingPhase.VOTING},
            )
        except TransportError as e:
            logger.error("Room %s stays revealed without history: %s", code, e)
            return
        if reopened is not None:
            logger.warning("History write failed, room %s is back to voting", code)
