"""Vote history: reveal-time snapshots and per-story retrieval."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.domain.story import Story
from pokerroom.domain.timeutils import to_iso
from pokerroom.domain.vote import VoteHistoryEntry
from pokerroom.ports.room_repository import RoomRepository
from pokerroom.services.statistics import (
    DEFAULT_STRONG_CONSENSUS_THRESHOLD,
    VoteStatistics,
    compute_statistics,
)

logger = logging.getLogger(__name__)


@dataclass
class StoryHistory:
    story_id: int
    title: str
    final_estimate: Optional[float]
    votes: List[Tuple[str, float]]
    rounds: int
    revealed_at: datetime
    statistics: Optional[VoteStatistics] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "story_id": self.story_id,
            "title": self.title,
            "final_estimate": self.final_estimate,
            "votes": [{"participant_name": name, "value": value} for name, value in self.votes],
            "rounds": self.rounds,
            "revealed_at": to_iso(self.revealed_at),
            "statistics": self.statistics.to_dict() if self.statistics else None,
        }


@dataclass
class VoteHistory:
    room_code: str
    stories: List[StoryHistory] = field(default_factory=list)

    @property
    def total_estimate(self) -> float:
        return sum(item.final_estimate for item in self.stories if item.final_estimate is not None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "room_code": self.room_code,
            "stories": [item.to_dict() for item in self.stories],
            "total_estimate": self.total_estimate,
        }


class VoteHistoryAggregator:
    """Writes one immutable snapshot per reveal and reads history back per story."""

    def __init__(
        self,
        repository: RoomRepository,
        allowed_scale: Iterable[float],
        consensus_threshold: float = DEFAULT_STRONG_CONSENSUS_THRESHOLD,
    ):
        self.repository = repository
        self.allowed_scale = list(allowed_scale)
        self.consensus_threshold = consensus_threshold

    @staticmethod
    def build_entries(snapshot: RoomSnapshot, story: Story, revealed_at: datetime) -> List[VoteHistoryEntry]:
        """One entry per live vote, all sharing the reveal timestamp."""
        return [
            VoteHistoryEntry(
                room_code=snapshot.code,
                story_id=story.id,
                story_title=story.title,
                participant_name=vote.participant_name,
                value=vote.value,
                voted_at=vote.created_at,
                revealed_at=revealed_at,
            )
            for vote in snapshot.votes.values()
        ]

    async def record_reveal(self, snapshot: RoomSnapshot, revealed_at: datetime) -> List[VoteHistoryEntry]:
        """Append a snapshot for the current story; nothing when it has no votes."""
        story = snapshot.current_story
        if story is None or not snapshot.votes:
            return []
        entries = self.build_entries(snapshot, story, revealed_at)
        await self.repository.append_history(entries)
        logger.info(
            "Recorded %s votes for story %s in room %s", len(entries), story.id, snapshot.code
        )
        return entries

    async def get_vote_history(self, room_code: str) -> VoteHistory:
        entries = await self.repository.list_history(room_code)
        stories = {story.id: story for story in await self.repository.list_stories(room_code)}

        # story_id -> revealed_at -> entries of that round
        rounds: Dict[int, Dict[datetime, List[VoteHistoryEntry]]] = {}
        for entry in entries:
            rounds.setdefault(entry.story_id, {}).setdefault(entry.revealed_at, []).append(entry)

        items = []
        for story_id, by_reveal in rounds.items():
            latest_at = max(by_reveal)
            latest = by_reveal[latest_at]
            story = stories.get(story_id)
            values = [entry.value for entry in latest]
            items.append(
                StoryHistory(
                    story_id=story_id,
                    title=latest[0].story_title,
                    final_estimate=story.final_estimate if story else None,
                    votes=[(entry.participant_name, entry.value) for entry in latest],
                    rounds=len(by_reveal),
                    revealed_at=latest_at,
                    statistics=compute_statistics(values, self.allowed_scale, self.consensus_threshold),
                )
            )

        items.sort(key=lambda item: item.revealed_at, reverse=True)
        return VoteHistory(room_code=room_code, stories=items)
