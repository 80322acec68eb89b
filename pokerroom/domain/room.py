"""Room model for Planning Poker."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from pokerroom.domain.enums import VotingPhase
from pokerroom.domain.timeutils import from_iso, to_iso, utc_now


@dataclass
class Room:
    """One voting session, addressed by its code."""

    code: str
    voting_phase: VotingPhase = VotingPhase.IDLE
    current_story_index: int = 0
    timer_duration: Optional[int] = None
    timer_end_ms: Optional[int] = None
    issue_tracker_base_url: Optional[str] = None
    last_activity: datetime = field(default_factory=utc_now)
    created_at: datetime = field(default_factory=utc_now)

    @property
    def timer_started_at_ms(self) -> Optional[int]:
        """Start of the running timer, recovered from end and duration."""
        if self.timer_end_ms is None or self.timer_duration is None:
            return None
        return self.timer_end_ms - self.timer_duration * 1000

    def timer_remaining_seconds(self, now_ms: int) -> Optional[int]:
        """Whole seconds left on the timer, None when no timer is running."""
        if self.voting_phase != VotingPhase.VOTING or self.timer_end_ms is None:
            return None
        return max(0, (self.timer_end_ms - now_ms + 999) // 1000)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "voting_phase": self.voting_phase.value,
            "current_story_index": self.current_story_index,
            "timer_duration": self.timer_duration,
            "timer_end_ms": self.timer_end_ms,
            "timer_started_at_ms": self.timer_started_at_ms,
            "issue_tracker_base_url": self.issue_tracker_base_url,
            "last_activity": to_iso(self.last_activity),
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Room":
        return cls(
            code=data["code"],
            voting_phase=VotingPhase(data.get("voting_phase", VotingPhase.IDLE.value)),
            current_story_index=int(data.get("current_story_index", 0)),
            timer_duration=data.get("timer_duration"),
            timer_end_ms=data.get("timer_end_ms"),
            issue_tracker_base_url=data.get("issue_tracker_base_url"),
            last_activity=from_iso(data.get("last_activity")) or utc_now(),
            created_at=from_iso(data.get("created_at")) or utc_now(),
        )
