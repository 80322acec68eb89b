"""Issue tracker client interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PublishEstimateRequest:
    """Estimate to write back to one issue. Credentials live only in memory."""

    base_url: str
    issue_key: str
    username: str
    token: str
    story_points: float
    add_comment: bool = True
    update_story_points: bool = True

    def __repr__(self) -> str:
        return (
            f"PublishEstimateRequest(base_url={self.base_url!r}, issue_key={self.issue_key!r}, "
            f"story_points={self.story_points!r})"
        )


@dataclass
class PublishEstimateResult:
    comment_added: bool = False
    story_points_updated: bool = False
    updated_fields: List[str] = field(default_factory=list)
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comment_added": self.comment_added,
            "story_points_updated": self.story_points_updated,
            "updated_fields": list(self.updated_fields),
            "warning": self.warning,
        }


class IssueTrackerClient(ABC):
    """Interface for writing estimates back to an issue tracker."""

    @abstractmethod
    async def publish_estimate(self, request: PublishEstimateRequest) -> PublishEstimateResult:
        """Post comment and/or set story point fields.

        Raises an ``UpstreamError`` subclass when the first requested action fails.
        """
        pass

    async def close(self) -> None:
        return None
