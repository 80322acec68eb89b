"""Use case for reordering the story queue."""

from typing import Optional, Sequence

from pokerroom.domain.enums import ChangeEntity
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log


class ReorderStoriesUseCase(RoomUseCase):
    """Rewrite every position to match ``story_ids`` (must list each story once)."""

    @returns_result
    async def execute(self, code: str, story_ids: Sequence[int], actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)
        stories = await self.repository.reorder_stories(code, list(story_ids))
        audit_log("reorder_stories", code, actor, {"order": [s.id for s in stories]})
        return await self._finish(code, ChangeEntity.STORIES)
