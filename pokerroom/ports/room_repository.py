"""Room repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pokerroom.domain.participant import Participant
from pokerroom.domain.room import Room
from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.domain.story import Story, StoryDraft
from pokerroom.domain.vote import Vote, VoteHistoryEntry


class RoomRepository(ABC):
    """Interface for room persistence.

    Implementations raise ``TransportError`` when the backing store fails.
    """

    # Rooms

    @abstractmethod
    async def create_room(self, room: Room) -> bool:
        """Insert room. Returns False if the code is already taken."""
        pass

    @abstractmethod
    async def get_room(self, code: str) -> Optional[Room]:
        """Get room by code."""
        pass

    @abstractmethod
    async def compare_and_update_room(
        self,
        code: str,
        expected: Dict[str, Any],
        updates: Dict[str, Any],
    ) -> Optional[Room]:
        """Atomically apply ``updates`` if every field matches ``expected``.

        Returns the updated room, or None when the room is missing or the
        expectation failed.
        """
        pass

    @abstractmethod
    async def touch_room(self, code: str, at: datetime) -> None:
        """Update last_activity."""
        pass

    @abstractmethod
    async def delete_rooms_inactive_since(self, cutoff: datetime) -> List[str]:
        """Delete rooms (and children) idle since before cutoff. Returns codes."""
        pass

    @abstractmethod
    async def get_snapshot(self, code: str) -> Optional[RoomSnapshot]:
        """Read room, participants, stories and votes in one consistent read."""
        pass

    # Participants

    @abstractmethod
    async def upsert_participant(self, participant: Participant) -> Participant:
        """Insert participant or update flags of an existing one (by name)."""
        pass

    @abstractmethod
    async def get_participant(self, code: str, name: str) -> Optional[Participant]:
        pass

    @abstractmethod
    async def update_participant(self, code: str, name: str, **fields: Any) -> Optional[Participant]:
        """Update selected fields. Returns None if the participant is missing."""
        pass

    @abstractmethod
    async def delete_participant(self, code: str, name: str) -> bool:
        """Delete participant and their live vote."""
        pass

    # Votes

    @abstractmethod
    async def upsert_vote(self, vote: Vote) -> None:
        pass

    @abstractmethod
    async def delete_vote(self, code: str, participant_name: str) -> None:
        pass

    @abstractmethod
    async def list_votes(self, code: str) -> List[Vote]:
        pass

    @abstractmethod
    async def clear_votes(self, code: str) -> None:
        pass

    # Stories

    @abstractmethod
    async def add_stories(self, code: str, drafts: Sequence[StoryDraft]) -> List[Story]:
        """Append stories at max(order_index)+1, keeping the given order."""
        pass

    @abstractmethod
    async def get_story(self, code: str, story_id: int) -> Optional[Story]:
        pass

    @abstractmethod
    async def list_stories(self, code: str) -> List[Story]:
        """Stories ordered by order_index."""
        pass

    @abstractmethod
    async def update_story(self, code: str, story_id: int, **fields: Any) -> Optional[Story]:
        pass

    @abstractmethod
    async def delete_story(self, code: str, story_id: int) -> bool:
        """Delete story and compact the remaining order indexes in one transaction."""
        pass

    @abstractmethod
    async def reorder_stories(self, code: str, story_ids: Sequence[int]) -> List[Story]:
        """Rewrite order indexes to match story_ids (0..n-1) in one transaction."""
        pass

    # History

    @abstractmethod
    async def append_history(self, entries: Sequence[VoteHistoryEntry]) -> None:
        pass

    @abstractmethod
    async def list_history(self, code: str) -> List[VoteHistoryEntry]:
        pass
