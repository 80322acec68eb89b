"""Use case for editing a story."""

from typing import Any, Dict, Optional

from pokerroom.core.exceptions import NotFoundError, ValidationError
from pokerroom.core.validators import validate_external_link, validate_story_title
from pokerroom.domain.enums import ChangeEntity
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log

_UNSET: Any = object()


class EditStoryUseCase(RoomUseCase):
    """Change title and/or link. Pass ``external_link=None`` to remove the link."""

    @returns_result
    async def execute(
        self,
        code: str,
        story_id: int,
        title: Optional[str] = None,
        external_link: Optional[str] = _UNSET,
        actor: Optional[str] = None,
    ) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)

        fields: Dict[str, Any] = {}
        if title is not None:
            fields["title"] = validate_story_title(title)
        if external_link is not _UNSET:
            fields["external_link"] = validate_external_link(external_link)
        if not fields:
            raise ValidationError("Nothing to update")

        story = await self.repository.update_story(code, story_id, **fields)
        if story is None:
            raise NotFoundError(f"Story {story_id} not found in room {code}")
        audit_log("edit_story", code, actor, {"story_id": story_id, "fields": sorted(fields)})
        return await self._finish(code, ChangeEntity.STORIES, story=story.to_dict())
