"""Vote and vote history models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from pokerroom.domain.timeutils import from_iso, to_iso, utc_now


@dataclass
class Vote:
    """Live vote of one participant on the current story."""

    room_code: str
    participant_name: str
    value: float
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_code": self.room_code,
            "participant_name": self.participant_name,
            "value": self.value,
            "created_at": to_iso(self.created_at),
        }


@dataclass(frozen=True)
class VoteHistoryEntry:
    """Immutable record of one vote captured when votes were revealed."""

    room_code: str
    story_id: int
    story_title: str
    participant_name: str
    value: float
    revealed_at: datetime
    voted_at: Optional[datetime] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "room_code": self.room_code,
            "story_id": self.story_id,
            "story_title": self.story_title,
            "participant_name": self.participant_name,
            "value": self.value,
            "voted_at": to_iso(self.voted_at),
            "revealed_at": to_iso(self.revealed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VoteHistoryEntry":
        return cls(
            id=data.get("id"),
            room_code=data["room_code"],
            story_id=int(data["story_id"]),
            story_title=data.get("story_title", ""),
            participant_name=data["participant_name"],
            value=data["value"],
            voted_at=from_iso(data.get("voted_at")),
            revealed_at=from_iso(data["revealed_at"]),
        )
