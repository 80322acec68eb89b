"""Use cases for adding stories to the queue."""

import logging
from typing import Optional, Sequence

from pokerroom.core.exceptions import ValidationError
from pokerroom.core.validators import validate_external_link, validate_story_title
from pokerroom.domain.enums import ChangeEntity
from pokerroom.domain.story import StoryDraft
from pokerroom.services.story_import import StoryImportService, XlsxSource
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log

logger = logging.getLogger(__name__)


class AddStoriesUseCase(RoomUseCase):
    """Append one or many stories at the end of the queue."""

    @returns_result
    async def execute(
        self,
        code: str,
        drafts: Sequence[StoryDraft],
        actor: Optional[str] = None,
    ) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)
        return await self._add(code, drafts, actor)

    async def add_one(
        self,
        code: str,
        title: str,
        external_link: Optional[str] = None,
        actor: Optional[str] = None,
    ) -> ActionResult:
        return await self.execute(code, [StoryDraft(title=title, external_link=external_link)], actor=actor)

    async def _add(self, code: str, drafts: Sequence[StoryDraft], actor: Optional[str]) -> ActionResult:
        if not drafts:
            raise ValidationError("No stories to add")
        cleaned = [
            StoryDraft(
                title=validate_story_title(draft.title),
                external_link=validate_external_link(draft.external_link),
            )
            for draft in drafts
        ]
        stories = await self.repository.add_stories(code, cleaned)
        audit_log("add_stories", code, actor, {"count": len(stories)})
        return await self._finish(code, ChangeEntity.STORIES, stories=[s.to_dict() for s in stories])


class ImportStoriesUseCase(AddStoriesUseCase):
    """Bulk add from pasted text or an .xlsx upload, auto-linking ticket references."""

    def __init__(self, repository, importer: StoryImportService, notifier=None, clock=None):
        super().__init__(repository, notifier, clock)
        self.importer = importer

    @returns_result
    async def execute_text(self, code: str, text: str, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        room = await self._require_room(code)
        await self._require_facilitator(code, actor)
        drafts = self.importer.parse_text(text, room.issue_tracker_base_url)
        return await self._add(code, drafts, actor)

    @returns_result
    async def execute_xlsx(self, code: str, source: XlsxSource, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        room = await self._require_room(code)
        await self._require_facilitator(code, actor)
        drafts = self.importer.parse_xlsx(source, room.issue_tracker_base_url)
        return await self._add(code, drafts, actor)
