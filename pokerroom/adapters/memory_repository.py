"""In-memory adapter for room repository.

Each repository instance owns its data; nothing is shared at module level.
Per-room ``asyncio.Lock`` gives the atomicity the Postgres adapter gets from
transactions.
"""

import asyncio
import itertools
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pokerroom.core.exceptions import ValidationError
from pokerroom.domain.participant import Participant
from pokerroom.domain.room import Room
from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.domain.story import Story, StoryDraft
from pokerroom.domain.vote import Vote, VoteHistoryEntry
from pokerroom.ports.room_repository import RoomRepository

ROOM_FIELDS = {
    "voting_phase",
    "current_story_index",
    "timer_duration",
    "timer_end_ms",
    "issue_tracker_base_url",
    "last_activity",
}
PARTICIPANT_FIELDS = {"is_facilitator", "is_voter", "last_seen"}
STORY_FIELDS = {"title", "external_link", "final_estimate", "voted_at"}


@dataclass
class _RoomRecord:
    room: Room
    participants: Dict[str, Participant] = field(default_factory=dict)
    stories: Dict[int, Story] = field(default_factory=dict)
    votes: Dict[str, Vote] = field(default_factory=dict)
    history: List[VoteHistoryEntry] = field(default_factory=list)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def ordered_stories(self) -> List[Story]:
        return sorted(self.stories.values(), key=lambda s: (s.order_index, s.id))


def _check_fields(fields: Dict[str, Any], allowed: set) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


class InMemoryRoomRepository(RoomRepository):
    """Dictionary-backed implementation of the room repository."""

    def __init__(self) -> None:
        self._rooms: Dict[str, _RoomRecord] = {}
        self._story_ids = itertools.count(1)
        self._history_ids = itertools.count(1)

    def _record(self, code: str) -> Optional[_RoomRecord]:
        return self._rooms.get(code)

    # Rooms

    async def create_room(self, room: Room) -> bool:
        if room.code in self._rooms:
            return False
        self._rooms[room.code] = _RoomRecord(room=replace(room))
        return True

    async def get_room(self, code: str) -> Optional[Room]:
        record = self._record(code)
        return replace(record.room) if record else None

    async def compare_and_update_room(
        self,
        code: str,
        expected: Dict[str, Any],
        updates: Dict[str, Any],
    ) -> Optional[Room]:
        _check_fields(expected, ROOM_FIELDS)
        _check_fields(updates, ROOM_FIELDS)
        record = self._record(code)
        if record is None:
            return None
        async with record.lock:
            for name, value in expected.items():
                current = getattr(record.room, name)
                allowed = value if isinstance(value, (set, frozenset, list, tuple)) else (value,)
                if current not in allowed:
                    return None
            record.room = replace(record.room, **updates)
            return replace(record.room)

    async def touch_room(self, code: str, at: datetime) -> None:
        record = self._record(code)
        if record:
            record.room = replace(record.room, last_activity=at)

    async def delete_rooms_inactive_since(self, cutoff: datetime) -> List[str]:
        stale = [code for code, record in self._rooms.items() if record.room.last_activity < cutoff]
        for code in stale:
            del self._rooms[code]
        return stale

    async def get_snapshot(self, code: str) -> Optional[RoomSnapshot]:
        record = self._record(code)
        if record is None:
            return None
        async with record.lock:
            participants = sorted(record.participants.values(), key=lambda p: p.joined_at)
            return RoomSnapshot(
                room=replace(record.room),
                participants=[replace(p) for p in participants],
                stories=[replace(s) for s in record.ordered_stories()],
                votes={name: replace(v) for name, v in record.votes.items()},
            )

    # Participants

    async def upsert_participant(self, participant: Participant) -> Participant:
        record = self._record(participant.room_code)
        if record is None:
            raise ValidationError(f"Room {participant.room_code} does not exist")
        existing = record.participants.get(participant.name)
        if existing:
            stored = replace(
                existing,
                is_facilitator=participant.is_facilitator,
                is_voter=participant.is_voter,
                last_seen=participant.last_seen or existing.last_seen,
            )
        else:
            stored = replace(participant)
        record.participants[participant.name] = stored
        return replace(stored)

    async def get_participant(self, code: str, name: str) -> Optional[Participant]:
        record = self._record(code)
        if record is None or name not in record.participants:
            return None
        return replace(record.participants[name])

    async def update_participant(self, code: str, name: str, **fields: Any) -> Optional[Participant]:
        _check_fields(fields, PARTICIPANT_FIELDS)
        record = self._record(code)
        if record is None or name not in record.participants:
            return None
        record.participants[name] = replace(record.participants[name], **fields)
        return replace(record.participants[name])

    async def delete_participant(self, code: str, name: str) -> bool:
        record = self._record(code)
        if record is None or name not in record.participants:
            return False
        async with record.lock:
            del record.participants[name]
            record.votes.pop(name, None)
        return True

    # Votes

    async def upsert_vote(self, vote: Vote) -> None:
        record = self._record(vote.room_code)
        if record is None:
            raise ValidationError(f"Room {vote.room_code} does not exist")
        record.votes[vote.participant_name] = replace(vote)

    async def delete_vote(self, code: str, participant_name: str) -> None:
        record = self._record(code)
        if record:
            record.votes.pop(participant_name, None)

    async def list_votes(self, code: str) -> List[Vote]:
        record = self._record(code)
        return [replace(v) for v in record.votes.values()] if record else []

    async def clear_votes(self, code: str) -> None:
        record = self._record(code)
        if record:
            record.votes.clear()

    # Stories

    async def add_stories(self, code: str, drafts: Sequence[StoryDraft]) -> List[Story]:
        record = self._record(code)
        if record is None:
            raise ValidationError(f"Room {code} does not exist")
        async with record.lock:
            next_index = max((s.order_index for s in record.stories.values()), default=-1) + 1
            added = []
            for offset, draft in enumerate(drafts):
                story = Story(
                    id=next(self._story_ids),
                    room_code=code,
                    title=draft.title,
                    external_link=draft.external_link,
                    order_index=next_index + offset,
                )
                record.stories[story.id] = story
                added.append(replace(story))
            return added

    async def get_story(self, code: str, story_id: int) -> Optional[Story]:
        record = self._record(code)
        if record is None or story_id not in record.stories:
            return None
        return replace(record.stories[story_id])

    async def list_stories(self, code: str) -> List[Story]:
        record = self._record(code)
        return [replace(s) for s in record.ordered_stories()] if record else []

    async def update_story(self, code: str, story_id: int, **fields: Any) -> Optional[Story]:
        _check_fields(fields, STORY_FIELDS)
        record = self._record(code)
        if record is None or story_id not in record.stories:
            return None
        record.stories[story_id] = replace(record.stories[story_id], **fields)
        return replace(record.stories[story_id])

    async def delete_story(self, code: str, story_id: int) -> bool:
        record = self._record(code)
        if record is None or story_id not in record.stories:
            return False
        async with record.lock:
            del record.stories[story_id]
            for index, story in enumerate(record.ordered_stories()):
                story.order_index = index
        return True

    async def reorder_stories(self, code: str, story_ids: Sequence[int]) -> List[Story]:
        record = self._record(code)
        if record is None:
            raise ValidationError(f"Room {code} does not exist")
        async with record.lock:
            if sorted(story_ids) != sorted(record.stories) or len(set(story_ids)) != len(story_ids):
                raise ValidationError("Reorder must list every story of the room exactly once")
            for index, story_id in enumerate(story_ids):
                record.stories[story_id].order_index = index
            return [replace(s) for s in record.ordered_stories()]

    # History

    async def append_history(self, entries: Sequence[VoteHistoryEntry]) -> None:
        for entry in entries:
            record = self._record(entry.room_code)
            if record is None:
                raise ValidationError(f"Room {entry.room_code} does not exist")
            record.history.append(replace(entry, id=next(self._history_ids)))

    async def list_history(self, code: str) -> List[VoteHistoryEntry]:
        record = self._record(code)
        return list(record.history) if record else []
