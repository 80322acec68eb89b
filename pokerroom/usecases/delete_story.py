"""Use case for deleting a story."""

from typing import Optional

from pokerroom.core.exceptions import NotFoundError
from pokerroom.domain.enums import ChangeEntity
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log


class DeleteStoryUseCase(RoomUseCase):
    """Remove a story; remaining positions are compacted. History is kept."""

    @returns_result
    async def execute(self, code: str, story_id: int, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)
        if not await self.repository.delete_story(code, story_id):
            raise NotFoundError(f"Story {story_id} not found in room {code}")
        audit_log("delete_story", code, actor, {"story_id": story_id})
        return await self._finish(code, ChangeEntity.STORIES)
