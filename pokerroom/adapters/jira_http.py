"""HTTP adapter for Jira API client."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from pokerroom.core.exceptions import (
    IssueTrackerAuthError,
    IssueTrackerNetworkError,
    IssueTrackerNotFoundError,
    IssueTrackerPermissionError,
    UpstreamError,
)
from pokerroom.ports.issue_tracker import (
    IssueTrackerClient,
    PublishEstimateRequest,
    PublishEstimateResult,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMENT_TEMPLATE = "Planning Poker: the team voted *{points}* points for this story."


def format_points(value: float) -> str:
    """Render 5.0 as "5" and 0.5 as "0.5"."""
    return str(int(value)) if float(value).is_integer() else str(value)


class JiraHttpClient(IssueTrackerClient):
    """HTTP implementation of the issue tracker client for Jira REST v2.

    Credentials come with every request and are never stored on the client.
    """

    def __init__(
        self,
        story_points_fields: Optional[List[str]] = None,
        comment_template: str = DEFAULT_COMMENT_TEMPLATE,
        timeout: int = 30,
    ) -> None:
        self.story_points_fields = list(story_points_fields or ["customfield_10166"])
        self.comment_template = comment_template
        self._session: Optional[aiohttp.ClientSession] = None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        """Close aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _make_request(
        self,
        request: PublishEstimateRequest,
        method: str,
        endpoint: str,
        data: Dict[str, Any],
    ) -> None:
        """Execute one Jira call, raising an UpstreamError subclass on failure."""
        url = f"{request.base_url.rstrip('/')}/rest/api/2/{endpoint}"
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        auth = aiohttp.BasicAuth(request.username, request.token)
        session = await self._get_session()

        try:
            async with session.request(
                method.upper(), url, auth=auth, headers=headers, json=data
            ) as response:
                if response.status < 400:
                    return
                body = await response.text()
                status = response.status
        except aiohttp.ClientError as error:
            logger.warning("Jira request %s %s failed: %s", method, endpoint, error)
            raise IssueTrackerNetworkError(f"Cannot reach Jira: {error}") from error
        except asyncio.TimeoutError as error:
            logger.warning("Jira request %s %s timed out", method, endpoint)
            raise IssueTrackerNetworkError("Jira request timed out") from error

        logger.warning("Jira API error %s on %s %s: %s", status, method, endpoint, body[:200])
        if status == 401:
            raise IssueTrackerAuthError("Jira rejected the credentials (401)")
        if status == 403:
            raise IssueTrackerPermissionError(
                f"No permission to update issue {request.issue_key} (403)"
            )
        if status == 404:
            raise IssueTrackerNotFoundError(f"Issue {request.issue_key} not found (404)")
        raise UpstreamError(f"Jira API error {status}")

    async def publish_estimate(self, request: PublishEstimateRequest) -> PublishEstimateResult:
        result = PublishEstimateResult()
        points = format_points(request.story_points)

        if request.add_comment:
            comment = self.comment_template.format(points=points, issue_key=request.issue_key)
            await self._make_request(
                request, "POST", f"issue/{request.issue_key}/comment", {"body": comment}
            )
            result.comment_added = True

        if request.update_story_points:
            value = int(request.story_points) if float(request.story_points).is_integer() else request.story_points
            payload = {"fields": {name: value for name in self.story_points_fields}}
            try:
                await self._make_request(request, "PUT", f"issue/{request.issue_key}", payload)
            except UpstreamError as error:
                if not result.comment_added:
                    raise
                result.warning = f"Comment added, but story points were not updated: {error.message}"
            else:
                result.story_points_updated = True
                result.updated_fields = list(self.story_points_fields)

        logger.info(
            "Published estimate %s to %s (comment=%s, fields=%s)",
            points,
            request.issue_key,
            result.comment_added,
            result.story_points_updated,
        )
        return result
