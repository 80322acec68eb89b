"""Use case for writing a story's estimate back to the issue tracker."""

import logging
from typing import Optional

from pokerroom.core.exceptions import NotFoundError, ValidationError
from pokerroom.core.validators import validate_estimate, validate_external_link, validate_issue_key
from pokerroom.ports.issue_tracker import IssueTrackerClient, PublishEstimateRequest
from pokerroom.services.issue_links import build_issue_url, extract_issue_key, tracker_root
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log

logger = logging.getLogger(__name__)


class PublishEstimateUseCase(RoomUseCase):
    """Post the estimate as a comment and/or story point fields on the linked issue.

    Issue key defaults to the one found in the story link or title, the base
    URL to the room's tracker URL, the points to the story's final estimate.
    """

    def __init__(
        self,
        repository,
        issue_tracker: IssueTrackerClient,
        default_base_url: Optional[str] = None,
    ):
        super().__init__(repository)
        self.issue_tracker = issue_tracker
        self.default_base_url = default_base_url

    @returns_result
    async def execute(
        self,
        code: str,
        story_id: int,
        username: str,
        token: str,
        issue_key: Optional[str] = None,
        base_url: Optional[str] = None,
        story_points: Optional[float] = None,
        add_comment: bool = True,
        update_story_points: bool = True,
        actor: Optional[str] = None,
    ) -> ActionResult:
        code = self._code(code)
        room = await self._require_room(code)
        await self._require_facilitator(code, actor)
        story = await self.repository.get_story(code, story_id)
        if story is None:
            raise NotFoundError(f"Story {story_id} not found in room {code}")

        if not username or not token:
            raise ValidationError("Issue tracker credentials are required")
        if not add_comment and not update_story_points:
            raise ValidationError("Nothing to publish")

        issue_key = issue_key or extract_issue_key(story.external_link) or extract_issue_key(story.title)
        if not issue_key:
            raise ValidationError(f"Story {story_id} has no issue key")
        issue_key = validate_issue_key(issue_key)

        base_url = validate_external_link(base_url or room.issue_tracker_base_url or self.default_base_url)
        if not base_url:
            raise ValidationError("Issue tracker URL is not configured")
        base_url = tracker_root(base_url)

        points = story.final_estimate if story_points is None else story_points
        if points is None:
            raise ValidationError(f"Story {story_id} has no final estimate")
        points = validate_estimate(points)

        result = await self.issue_tracker.publish_estimate(
            PublishEstimateRequest(
                base_url=base_url,
                issue_key=issue_key,
                username=username,
                token=token,
                story_points=points,
                add_comment=add_comment,
                update_story_points=update_story_points,
            )
        )
        if result.warning:
            logger.warning("Partial publish for %s: %s", issue_key, result.warning)
        audit_log("publish_estimate", code, actor, {"story_id": story_id, "issue_key": issue_key, "points": points})
        return ActionResult.ok(
            issue_key=issue_key,
            issue_url=build_issue_url(base_url, issue_key),
            **result.to_dict(),
        )
