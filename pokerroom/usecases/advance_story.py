"""Use case for advancing to the next story."""

import logging
from typing import Iterable, Optional

from pokerroom.domain.enums import ChangeEntity, VotingPhase
from pokerroom.services.statistics import median, nearest_allowed
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log

logger = logging.getLogger(__name__)


class AdvanceStoryUseCase(RoomUseCase):
    """Move the pointer to the next story from any phase.

    The current story gets an automatic final estimate (median snapped to the
    scale) unless one is already set.
    """

    def __init__(self, repository, notifier=None, allowed_scale: Iterable[float] = (), clock=None):
        super().__init__(repository, notifier, clock)
        self.allowed_scale = list(allowed_scale)

    @returns_result
    async def execute(self, code: str, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        snapshot = await self._require_snapshot(code)
        await self._require_facilitator(code, actor)

        previous_index = snapshot.room.current_story_index
        story = snapshot.current_story
        values = snapshot.vote_values
        auto_estimate = None
        if story is not None and story.final_estimate is None and values:
            auto_estimate = nearest_allowed(median(values), self.allowed_scale)
            await self.repository.update_story(code, story.id, final_estimate=auto_estimate)

        updated = await self.repository.compare_and_update_room(
            code,
            expected={"current_story_index": previous_index},
            updates={
                "current_story_index": previous_index + 1,
                "voting_phase": VotingPhase.IDLE,
                "timer_duration": None,
                "timer_end_ms": None,
                "last_activity": self.clock(),
            },
        )
        if updated is None:
            logger.info("Room %s already advanced past story %s", code, previous_index)
            return ActionResult.ok(await self.repository.get_snapshot(code), advanced=False)

        await self.repository.clear_votes(code)
        audit_log("advance_story", code, actor, {"from_index": previous_index, "auto_estimate": auto_estimate})
        return await self._finish(code, ChangeEntity.ROOM, touch=False, advanced=True, auto_estimate=auto_estimate)
