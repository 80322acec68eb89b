"""Use case for starting a voting round."""

import logging
from typing import Optional

from pokerroom.core.exceptions import ConflictError
from pokerroom.core.validators import validate_external_link, validate_story_title, validate_timer
from pokerroom.domain.enums import ChangeEntity, VotingPhase
from pokerroom.domain.story import StoryDraft
from pokerroom.domain.timeutils import to_epoch_ms
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log

logger = logging.getLogger(__name__)


class StartVotingUseCase(RoomUseCase):
    """Open voting on the current story, optionally queueing a story and a timer."""

    def __init__(self, repository, notifier=None, max_timer_seconds: int = 3600, clock=None):
        super().__init__(repository, notifier, clock)
        self.max_timer_seconds = max_timer_seconds

    @returns_result
    async def execute(
        self,
        code: str,
        story: Optional[StoryDraft] = None,
        timer_seconds: Optional[int] = None,
        actor: Optional[str] = None,
    ) -> ActionResult:
        code = self._code(code)
        room = await self._require_room(code)
        await self._require_facilitator(code, actor)
        if room.voting_phase == VotingPhase.VOTING:
            raise ConflictError("Voting is already in progress")
        if timer_seconds is not None:
            timer_seconds = validate_timer(timer_seconds, self.max_timer_seconds)

        if story is not None:
            draft = StoryDraft(
                title=validate_story_title(story.title),
                external_link=validate_external_link(story.external_link),
            )
            await self.repository.add_stories(code, [draft])

        stories = await self.repository.list_stories(code)
        if not 0 <= room.current_story_index < len(stories):
            raise ConflictError("There is no story to vote on")

        now = self.clock()
        updated = await self.repository.compare_and_update_room(
            code,
            expected={"voting_phase": {VotingPhase.IDLE, VotingPhase.REVEALED}},
            updates={
                "voting_phase": VotingPhase.VOTING,
                "timer_duration": timer_seconds,
                "timer_end_ms": to_epoch_ms(now) + timer_seconds * 1000 if timer_seconds else None,
                "last_activity": now,
            },
        )
        if updated is None:
            raise ConflictError("Voting is already in progress")
        await self.repository.clear_votes(code)

        audit_log("start_voting", code, actor, {"story_index": room.current_story_index, "timer": timer_seconds})
        return await self._finish(code, ChangeEntity.ROOM, touch=False)
