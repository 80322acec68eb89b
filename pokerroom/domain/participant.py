"""Participant model for Planning Poker."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pokerroom.domain.timeutils import from_iso, to_iso, utc_now


@dataclass
class Participant:
    """Represents a participant in a room. The name is the identity key."""

    room_code: str
    name: str
    is_facilitator: bool = False
    is_voter: bool = True
    joined_at: datetime = field(default_factory=utc_now)
    last_seen: Optional[datetime] = None

    def is_online(self, now: datetime, timeout_seconds: int) -> bool:
        """Check if the last heartbeat is recent enough."""
        if self.last_seen is None:
            return False
        return now - self.last_seen <= timedelta(seconds=timeout_seconds)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_code": self.room_code,
            "name": self.name,
            "is_facilitator": self.is_facilitator,
            "is_voter": self.is_voter,
            "joined_at": to_iso(self.joined_at),
            "last_seen": to_iso(self.last_seen),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Participant":
        return cls(
            room_code=data["room_code"],
            name=data["name"],
            is_facilitator=bool(data.get("is_facilitator", False)),
            is_voter=bool(data.get("is_voter", True)),
            joined_at=from_iso(data.get("joined_at")) or utc_now(),
            last_seen=from_iso(data.get("last_seen")),
        )
