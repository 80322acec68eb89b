"""Use case for fixing a story's final estimate."""

from typing import Optional

from pokerroom.core.exceptions import NotFoundError
from pokerroom.core.validators import validate_estimate
from pokerroom.domain.enums import ChangeEntity
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log


class SetFinalEstimateUseCase(RoomUseCase):
    """Set or clear the final estimate in any phase; the phase is left alone."""

    @returns_result
    async def execute(
        self,
        code: str,
        story_id: int,
        value: Optional[float],
        actor: Optional[str] = None,
    ) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)
        if value is not None:
            value = validate_estimate(value)

        story = await self.repository.update_story(code, story_id, final_estimate=value)
        if story is None:
            raise NotFoundError(f"Story {story_id} not found in room {code}")

        audit_log("set_final_estimate", code, actor, {"story_id": story_id, "value": value})
        return await self._finish(code, ChangeEntity.STORIES, story=story.to_dict())
