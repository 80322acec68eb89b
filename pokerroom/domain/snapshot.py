"""Consistent view of a room and its child collections."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pokerroom.domain.enums import VotingPhase
from pokerroom.domain.participant import Participant
from pokerroom.domain.room import Room
from pokerroom.domain.story import Story
from pokerroom.domain.timeutils import to_epoch_ms, utc_now
from pokerroom.domain.vote import Vote
from pokerroom.services.statistics import (
    DEFAULT_STRONG_CONSENSUS_THRESHOLD,
    VoteStatistics,
    compute_statistics,
)


@dataclass
class RoomSnapshot:
    """Room, ordered stories, roster and live votes read together."""

    room: Room
    participants: List[Participant] = field(default_factory=list)
    stories: List[Story] = field(default_factory=list)
    votes: Dict[str, Vote] = field(default_factory=dict)

    @property
    def code(self) -> str:
        return self.room.code

    @property
    def phase(self) -> VotingPhase:
        return self.room.voting_phase

    @property
    def current_story(self) -> Optional[Story]:
        index = self.room.current_story_index
        if 0 <= index < len(self.stories):
            return self.stories[index]
        return None

    def get_participant(self, name: str) -> Optional[Participant]:
        for participant in self.participants:
            if participant.name == name:
                return participant
        return None

    def has_participant(self, name: str) -> bool:
        return self.get_participant(name) is not None

    @property
    def voters(self) -> List[Participant]:
        return [p for p in self.participants if p.is_voter]

    @property
    def vote_values(self) -> List[float]:
        """Values submitted by voters (observers never count)."""
        return [self.votes[p.name].value for p in self.voters if p.name in self.votes]

    @property
    def progress(self) -> Tuple[int, int]:
        """(voted, total) over voters only."""
        voters = self.voters
        voted = sum(1 for p in voters if p.name in self.votes)
        return voted, len(voters)

    def statistics(
        self,
        allowed: Iterable[float],
        threshold: float = DEFAULT_STRONG_CONSENSUS_THRESHOLD,
    ) -> Optional[VoteStatistics]:
        return compute_statistics(self.vote_values, allowed, threshold)

    def with_vote(self, name: str, value: Optional[float]) -> "RoomSnapshot":
        """Copy with one vote replaced, used for optimistic local updates."""
        votes = dict(self.votes)
        if value is None:
            votes.pop(name, None)
        else:
            votes[name] = Vote(room_code=self.code, participant_name=name, value=value)
        return replace(self, votes=votes)

    def to_dict(
        self,
        allowed: Iterable[float],
        viewer: Optional[str] = None,
        now: Optional[datetime] = None,
        presence_timeout: int = 15,
        threshold: float = DEFAULT_STRONG_CONSENSUS_THRESHOLD,
    ) -> Dict[str, Any]:
        """Serialize for a client. Other participants' values stay hidden until reveal."""
        now = now or utc_now()
        revealed = self.phase == VotingPhase.REVEALED
        voted, total = self.progress

        participants = []
        for participant in self.participants:
            vote = self.votes.get(participant.name)
            show_value = vote is not None and (revealed or participant.name == viewer)
            participants.append({
                "name": participant.name,
                "is_facilitator": participant.is_facilitator,
                "is_voter": participant.is_voter,
                "is_online": participant.is_online(now, presence_timeout),
                "has_voted": vote is not None,
                "vote": vote.value if show_value else None,
            })

        current = self.current_story
        stats = self.statistics(allowed, threshold) if revealed else None
        return {
            "room": self.room.to_dict(),
            "current_story": current.to_dict() if current else None,
            "stories": [story.to_dict() for story in self.stories],
            "participants": participants,
            "progress": {"voted": voted, "total": total},
            "timer_remaining_seconds": self.room.timer_remaining_seconds(to_epoch_ms(now)),
            "statistics": stats.to_dict() if stats else None,
        }
