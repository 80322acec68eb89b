"""Story model for Planning Poker."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from pokerroom.domain.timeutils import from_iso, to_iso


@dataclass
class StoryDraft:
    """Story payload before the store assigns an id and position."""

    title: str
    external_link: Optional[str] = None


@dataclass
class Story:
    """An estimable work item in the room's queue."""

    id: int
    room_code: str
    title: str
    order_index: int
    external_link: Optional[str] = None
    final_estimate: Optional[float] = None
    voted_at: Optional[datetime] = None

    @property
    def is_resolved(self) -> bool:
        """Votes were revealed at least once for this story."""
        return self.voted_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "room_code": self.room_code,
            "title": self.title,
            "order_index": self.order_index,
            "external_link": self.external_link,
            "final_estimate": self.final_estimate,
            "voted_at": to_iso(self.voted_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Story":
        return cls(
            id=int(data["id"]),
            room_code=data["room_code"],
            title=data.get("title", ""),
            order_index=int(data.get("order_index", 0)),
            external_link=data.get("external_link"),
            final_estimate=data.get("final_estimate"),
            voted_at=from_iso(data.get("voted_at")),
        )
