"""Postgres adapter for room repository."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import asyncpg

from pokerroom.core.exceptions import TransportError, ValidationError
from pokerroom.domain.enums import VotingPhase
from pokerroom.domain.participant import Participant
from pokerroom.domain.room import Room
from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.domain.story import Story, StoryDraft
from pokerroom.domain.vote import Vote, VoteHistoryEntry
from pokerroom.ports.room_repository import RoomRepository

logger = logging.getLogger(__name__)

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

SCHEMA = """
CREATE TABLE IF NOT EXISTS rooms (
    code TEXT PRIMARY KEY,
    voting_phase TEXT NOT NULL DEFAULT 'idle',
    current_story_index INTEGER NOT NULL DEFAULT 0,
    timer_duration INTEGER,
    timer_end_ms BIGINT,
    issue_tracker_base_url TEXT,
    last_activity TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS idx_rooms_last_activity ON rooms(last_activity);

CREATE TABLE IF NOT EXISTS participants (
    room_code TEXT NOT NULL REFERENCES rooms(code) ON DELETE CASCADE,
    name TEXT NOT NULL,
    is_facilitator BOOLEAN NOT NULL DEFAULT FALSE,
    is_voter BOOLEAN NOT NULL DEFAULT TRUE,
    joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    last_seen TIMESTAMPTZ,
    PRIMARY KEY (room_code, name)
);

CREATE TABLE IF NOT EXISTS stories (
    id BIGSERIAL PRIMARY KEY,
    room_code TEXT NOT NULL REFERENCES rooms(code) ON DELETE CASCADE,
    title TEXT NOT NULL,
    external_link TEXT,
    order_index INTEGER NOT NULL,
    final_estimate DOUBLE PRECISION,
    voted_at TIMESTAMPTZ
);
CREATE INDEX IF NOT EXISTS idx_stories_room_order ON stories(room_code, order_index);

CREATE TABLE IF NOT EXISTS votes (
    room_code TEXT NOT NULL,
    participant_name TEXT NOT NULL,
    value DOUBLE PRECISION NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    PRIMARY KEY (room_code, participant_name),
    FOREIGN KEY (room_code, participant_name)
        REFERENCES participants(room_code, name) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS vote_history (
    id BIGSERIAL PRIMARY KEY,
    room_code TEXT NOT NULL REFERENCES rooms(code) ON DELETE CASCADE,
    story_id BIGINT NOT NULL,
    story_title TEXT NOT NULL,
    participant_name TEXT NOT NULL,
    value DOUBLE PRECISION NOT NULL,
    voted_at TIMESTAMPTZ,
    revealed_at TIMESTAMPTZ NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_vote_history_room ON vote_history(room_code, revealed_at DESC);
"""


def _db_value(value: Any) -> Any:
    return value.value if isinstance(value, VotingPhase) else value


def _row_to_room(row: asyncpg.Record) -> Room:
    return Room(
        code=row["code"],
        voting_phase=VotingPhase(row["voting_phase"]),
        current_story_index=row["current_story_index"],
        timer_duration=row["timer_duration"],
        timer_end_ms=row["timer_end_ms"],
        issue_tracker_base_url=row["issue_tracker_base_url"],
        last_activity=row["last_activity"],
        created_at=row["created_at"],
    )


def _row_to_participant(row: asyncpg.Record) -> Participant:
    return Participant(
        room_code=row["room_code"],
        name=row["name"],
        is_facilitator=row["is_facilitator"],
        is_voter=row["is_voter"],
        joined_at=row["joined_at"],
        last_seen=row["last_seen"],
    )


def _row_to_story(row: asyncpg.Record) -> Story:
    return Story(
        id=row["id"],
        room_code=row["room_code"],
        title=row["title"],
        external_link=row["external_link"],
        order_index=row["order_index"],
        final_estimate=row["final_estimate"],
        voted_at=row["voted_at"],
    )


def _row_to_vote(row: asyncpg.Record) -> Vote:
    return Vote(
        room_code=row["room_code"],
        participant_name=row["participant_name"],
        value=row["value"],
        created_at=row["created_at"],
    )


def _row_to_history(row: asyncpg.Record) -> VoteHistoryEntry:
    return VoteHistoryEntry(
        id=row["id"],
        room_code=row["room_code"],
        story_id=row["story_id"],
        story_title=row["story_title"],
        participant_name=row["participant_name"],
        value=row["value"],
        voted_at=row["voted_at"],
        revealed_at=row["revealed_at"],
    )


def _check_fields(fields: Dict[str, Any], allowed: set) -> None:
    unknown = set(fields) - allowed
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


class PostgresRoomRepository(RoomRepository):
    """Postgres implementation of room repository."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    @classmethod
    async def create(cls, dsn: str, min_size: int = 1, max_size: int = 10) -> "PostgresRoomRepository":
        """Create repository with connection pool."""
        try:
            pool = await asyncpg.create_pool(dsn, min_size=min_size, max_size=max_size)
        except (asyncpg.PostgresError, OSError) as e:
            raise TransportError(f"Cannot connect to Postgres: {e}") from e
        repo = cls(pool)
        await repo._ensure_schema()
        return repo

    async def _ensure_schema(self) -> None:
        """Ensure database schema exists."""
        async with self._connection() as conn:
            await conn.execute(SCHEMA)

    async def close(self) -> None:
        await self.pool.close()

    @asynccontextmanager
    async def _connection(
        self, transaction: bool = False, isolation: str = "read_committed", readonly: bool = False
    ) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection, translating driver failures into TransportError."""
        try:
            async with self.pool.acquire() as conn:
                if transaction:
                    async with conn.transaction(isolation=isolation, readonly=readonly):
                        yield conn
                else:
                    yield conn
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
            logger.error("Postgres operation failed: %s", e)
            raise TransportError(f"Database error: {e}") from e

    # Rooms

    async def create_room(self, room: Room) -> bool:
        async with self._connection() as conn:
            result = await conn.execute(
                """
                INSERT INTO rooms (code, voting_phase, current_story_index, timer_duration,
                                   timer_end_ms, issue_tracker_base_url, last_activity, created_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                ON CONFLICT (code) DO NOTHING
                """,
                room.code,
                room.voting_phase.value,
                room.current_story_index,
                room.timer_duration,
                room.timer_end_ms,
                room.issue_tracker_base_url,
                room.last_activity,
                room.created_at,
            )
        return result.endswith(" 1")

    async def get_room(self, code: str) -> Optional[Room]:
        async with self._connection() as conn:
            row = await conn.fetchrow("SELECT * FROM rooms WHERE code = $1", code)
        return _row_to_room(row) if row else None

    async def compare_and_update_room(
        self,
        code: str,
        expected: Dict[str, Any],
        updates: Dict[str, Any],
    ) -> Optional[Room]:
        _check_fields(expected, ROOM_FIELDS)
        _check_fields(updates, ROOM_FIELDS)
        if not updates:
            return await self.get_room(code)

        params: List[Any] = []
        assignments = []
        for name, value in updates.items():
            params.append(_db_value(value))
            assignments.append(f"{name} = ${len(params)}")

        params.append(code)
        conditions = [f"code = ${len(params)}"]
        for name, value in expected.items():
            if isinstance(value, (set, frozenset, list, tuple)):
                params.append([_db_value(v) for v in value])
                conditions.append(f"{name} = ANY(${len(params)})")
            elif value is None:
                conditions.append(f"{name} IS NULL")
            else:
                params.append(_db_value(value))
                conditions.append(f"{name} = ${len(params)}")

        query = (
            f"UPDATE rooms SET {', '.join(assignments)} "
            f"WHERE {' AND '.join(conditions)} RETURNING *"
        )
        async with self._connection() as conn:
            row = await conn.fetchrow(query, *params)
        return _row_to_room(row) if row else None

    async def touch_room(self, code: str, at: datetime) -> None:
        async with self._connection() as conn:
            await conn.execute("UPDATE rooms SET last_activity = $2 WHERE code = $1", code, at)

    async def delete_rooms_inactive_since(self, cutoff: datetime) -> List[str]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                "DELETE FROM rooms WHERE last_activity < $1 RETURNING code", cutoff
            )
        return [row["code"] for row in rows]

    async def get_snapshot(self, code: str) -> Optional[RoomSnapshot]:
        async with self._connection(transaction=True, isolation="repeatable_read", readonly=True) as conn:
            room_row = await conn.fetchrow("SELECT * FROM rooms WHERE code = $1", code)
            if room_row is None:
                return None
            participant_rows = await conn.fetch(
                "SELECT * FROM participants WHERE room_code = $1 ORDER BY joined_at, name", code
            )
            story_rows = await conn.fetch(
                "SELECT * FROM stories WHERE room_code = $1 ORDER BY order_index, id", code
            )
            vote_rows = await conn.fetch("SELECT * FROM votes WHERE room_code = $1", code)
        return RoomSnapshot(
            room=_row_to_room(room_row),
            participants=[_row_to_participant(r) for r in participant_rows],
            stories=[_row_to_story(r) for r in story_rows],
            votes={r["participant_name"]: _row_to_vote(r) for r in vote_rows},
        )

    # Participants

    async def upsert_participant(self, participant: Participant) -> Participant:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO participants (room_code, name, is_facilitator, is_voter, joined_at, last_seen)
                VALUES ($1, $2, $3, $4, $5, $6)
                ON CONFLICT (room_code, name)
                DO UPDATE SET is_facilitator = EXCLUDED.is_facilitator,
                              is_voter = EXCLUDED.is_voter,
                              last_seen = COALESCE(EXCLUDED.last_seen, participants.last_seen)
                RETURNING *
                """,
                participant.room_code,
                participant.name,
                participant.is_facilitator,
                participant.is_voter,
                participant.joined_at,
                participant.last_seen,
            )
        return _row_to_participant(row)

    async def get_participant(self, code: str, name: str) -> Optional[Participant]:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM participants WHERE room_code = $1 AND name = $2", code, name
            )
        return _row_to_participant(row) if row else None

    async def update_participant(self, code: str, name: str, **fields: Any) -> Optional[Participant]:
        _check_fields(fields, PARTICIPANT_FIELDS)
        if not fields:
            return await self.get_participant(code, name)
        params: List[Any] = [code, name]
        assignments = []
        for field_name, value in fields.items():
            params.append(value)
            assignments.append(f"{field_name} = ${len(params)}")
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"UPDATE participants SET {', '.join(assignments)} "
                "WHERE room_code = $1 AND name = $2 RETURNING *",
                *params,
            )
        return _row_to_participant(row) if row else None

    async def delete_participant(self, code: str, name: str) -> bool:
        # votes cascade through the composite foreign key
        async with self._connection() as conn:
            result = await conn.execute(
                "DELETE FROM participants WHERE room_code = $1 AND name = $2", code, name
            )
        return result.endswith(" 1")

    # Votes

    async def upsert_vote(self, vote: Vote) -> None:
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO votes (room_code, participant_name, value, created_at)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (room_code, participant_name)
                DO UPDATE SET value = EXCLUDED.value, created_at = EXCLUDED.created_at
                """,
                vote.room_code,
                vote.participant_name,
                vote.value,
                vote.created_at,
            )

    async def delete_vote(self, code: str, participant_name: str) -> None:
        async with self._connection() as conn:
            await conn.execute(
                "DELETE FROM votes WHERE room_code = $1 AND participant_name = $2",
                code,
                participant_name,
            )

    async def list_votes(self, code: str) -> List[Vote]:
        async with self._connection() as conn:
            rows = await conn.fetch("SELECT * FROM votes WHERE room_code = $1", code)
        return [_row_to_vote(r) for r in rows]

    async def clear_votes(self, code: str) -> None:
        async with self._connection() as conn:
            await conn.execute("DELETE FROM votes WHERE room_code = $1", code)

    # Stories

    async def add_stories(self, code: str, drafts: Sequence[StoryDraft]) -> List[Story]:
        async with self._connection(transaction=True) as conn:
            await conn.execute("SELECT code FROM rooms WHERE code = $1 FOR UPDATE", code)
            max_order = await conn.fetchval(
                "SELECT COALESCE(MAX(order_index), -1) FROM stories WHERE room_code = $1", code
            )
            added = []
            for offset, draft in enumerate(drafts):
                row = await conn.fetchrow(
                    """
                    INSERT INTO stories (room_code, title, external_link, order_index)
                    VALUES ($1, $2, $3, $4)
                    RETURNING *
                    """,
                    code,
                    draft.title,
                    draft.external_link,
                    max_order + 1 + offset,
                )
                added.append(_row_to_story(row))
        return added

    async def get_story(self, code: str, story_id: int) -> Optional[Story]:
        async with self._connection() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM stories WHERE room_code = $1 AND id = $2", code, story_id
            )
        return _row_to_story(row) if row else None

    async def list_stories(self, code: str) -> List[Story]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                "SELECT * FROM stories WHERE room_code = $1 ORDER BY order_index, id", code
            )
        return [_row_to_story(r) for r in rows]

    async def update_story(self, code: str, story_id: int, **fields: Any) -> Optional[Story]:
        _check_fields(fields, STORY_FIELDS)
        if not fields:
            return await self.get_story(code, story_id)
        params: List[Any] = [code, story_id]
        assignments = []
        for field_name, value in fields.items():
            params.append(value)
            assignments.append(f"{field_name} = ${len(params)}")
        async with self._connection() as conn:
            row = await conn.fetchrow(
                f"UPDATE stories SET {', '.join(assignments)} "
                "WHERE room_code = $1 AND id = $2 RETURNING *",
                *params,
            )
        return _row_to_story(row) if row else None

    async def delete_story(self, code: str, story_id: int) -> bool:
        async with self._connection(transaction=True) as conn:
            await conn.execute("SELECT code FROM rooms WHERE code = $1 FOR UPDATE", code)
            result = await conn.execute(
                "DELETE FROM stories WHERE room_code = $1 AND id = $2", code, story_id
            )
            if not result.endswith(" 1"):
                return False
            await conn.execute(
                """
                UPDATE stories AS s SET order_index = ranked.position - 1
                FROM (
                    SELECT id, ROW_NUMBER() OVER (ORDER BY order_index, id) AS position
                    FROM stories WHERE room_code = $1
                ) AS ranked
                WHERE s.id = ranked.id
                """,
                code,
            )
        return True

    async def reorder_stories(self, code: str, story_ids: Sequence[int]) -> List[Story]:
        ids = [int(story_id) for story_id in story_ids]
        async with self._connection(transaction=True) as conn:
            await conn.execute("SELECT code FROM rooms WHERE code = $1 FOR UPDATE", code)
            existing = await conn.fetch("SELECT id FROM stories WHERE room_code = $1", code)
            if sorted(r["id"] for r in existing) != sorted(ids) or len(set(ids)) != len(ids):
                raise ValidationError("Reorder must list every story of the room exactly once")
            await conn.execute(
                """
                UPDATE stories AS s SET order_index = v.position
                FROM unnest($2::bigint[], $3::int[]) AS v(id, position)
                WHERE s.room_code = $1 AND s.id = v.id
                """,
                code,
                ids,
                list(range(len(ids))),
            )
            rows = await conn.fetch(
                "SELECT * FROM stories WHERE room_code = $1 ORDER BY order_index, id", code
            )
        return [_row_to_story(r) for r in rows]

    # History

    async def append_history(self, entries: Sequence[VoteHistoryEntry]) -> None:
        if not entries:
            return
        async with self._connection(transaction=True) as conn:
            await conn.executemany(
                """
                INSERT INTO vote_history (room_code, story_id, story_title, participant_name,
                                          value, voted_at, revealed_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7)
                """,
                [
                    (
                        e.room_code,
                        e.story_id,
                        e.story_title,
                        e.participant_name,
                        e.value,
                        e.voted_at,
                        e.revealed_at,
                    )
                    for e in entries
                ],
            )

    async def list_history(self, code: str) -> List[VoteHistoryEntry]:
        async with self._connection() as conn:
            rows = await conn.fetch(
                "SELECT * FROM vote_history WHERE room_code = $1 ORDER BY revealed_at, id", code
            )
        return [_row_to_history(r) for r in rows]
