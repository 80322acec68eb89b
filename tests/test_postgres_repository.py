"""Tests for the Postgres adapter against a fake asyncpg pool."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from pokerroom.adapters.postgres_repository import PostgresRoomRepository
from pokerroom.core.exceptions import TransportError, ValidationError
from pokerroom.domain import Room, VotingPhase

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def room_row(**overrides):
    row = {
        "code": "ABCDEF",
        "voting_phase": "revealed",
        "current_story_index": 0,
        "timer_duration": None,
        "timer_end_ms": None,
        "issue_tracker_base_url": None,
        "last_activity": NOW,
        "created_at": NOW,
    }
    row.update(overrides)
    return row


class FakePool:
    def __init__(self):
        self.conn = MagicMock()
        self.conn.fetchrow = AsyncMock()
        self.conn.fetch = AsyncMock(return_value=[])
        self.conn.fetchval = AsyncMock()
        self.conn.execute = AsyncMock(return_value="UPDATE 1")
        self.conn.executemany = AsyncMock()

        @asynccontextmanager
        async def transaction(**kwargs):
            self.transaction_kwargs = kwargs
            yield

        self.conn.transaction = transaction
        self.transaction_kwargs = None

    @asynccontextmanager
    async def acquire(self):
        yield self.conn

    async def close(self):
        pass


class TestPostgresRoomRepository:
    def setup_method(self):
        self.pool = FakePool()
        self.repo = PostgresRoomRepository(self.pool)

    @pytest.mark.asyncio
    async def test_compare_and_update_builds_guarded_update(self):
        self.pool.conn.fetchrow.return_value = room_row(voting_phase="voting")

        room = await self.repo.compare_and_update_room(
            "ABCDEF",
            expected={"voting_phase": {VotingPhase.IDLE}},
            updates={"voting_phase": VotingPhase.VOTING, "timer_duration": 60},
        )

        query, *params = self.pool.conn.fetchrow.await_args.args
        assert query.startswith("UPDATE rooms SET voting_phase = $1, timer_duration = $2")
        assert "WHERE code = $3 AND voting_phase = ANY($4) RETURNING *" in query
        assert params == ["voting", 60, "ABCDEF", ["idle"]]
        assert room.voting_phase == VotingPhase.VOTING

    @pytest.mark.asyncio
    async def test_compare_and_update_lost_race_returns_none(self):
        self.pool.conn.fetchrow.return_value = None
        result = await self.repo.compare_and_update_room(
            "ABCDEF", expected={"current_story_index": 0}, updates={"current_story_index": 1}
        )
        assert result is None

    @pytest.mark.asyncio
    async def test_unknown_fields_rejected_before_sql(self):
        with pytest.raises(ValidationError):
            await self.repo.compare_and_update_room("ABCDEF", expected={}, updates={"code": "X"})
        self.pool.conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_driver_errors_become_transport_errors(self):
        self.pool.conn.fetchrow.side_effect = asyncpg.InterfaceError("pool is closed")
        with pytest.raises(TransportError):
            await self.repo.get_room("ABCDEF")

    @pytest.mark.asyncio
    async def test_connection_errors_become_transport_errors(self):
        self.pool.conn.execute.side_effect = ConnectionRefusedError("refused")
        with pytest.raises(TransportError):
            await self.repo.clear_votes("ABCDEF")

    @pytest.mark.asyncio
    async def test_snapshot_uses_repeatable_read(self):
        self.pool.conn.fetchrow.return_value = room_row()

        snapshot = await self.repo.get_snapshot("ABCDEF")

        assert snapshot.code == "ABCDEF"
        assert self.pool.transaction_kwargs == {
            "isolation": "repeatable_read",
            "readonly": True,
        }

    @pytest.mark.asyncio
    async def test_missing_room_snapshot(self):
        self.pool.conn.fetchrow.return_value = None
        assert await self.repo.get_snapshot("ABCDEF") is None

    @pytest.mark.asyncio
    async def test_reorder_validates_inside_transaction(self):
        self.pool.conn.fetch.return_value = [{"id": 1}, {"id": 2}]
        with pytest.raises(ValidationError):
            await self.repo.reorder_stories("ABCDEF", [1, 3])

    @pytest.mark.asyncio
    async def test_create_room_reports_conflict(self):
        self.pool.conn.execute.return_value = "INSERT 0 0"
        assert await self.repo.create_room(Room(code="ABCDEF")) is False
        self.pool.conn.execute.return_value = "INSERT 0 1"
        assert await self.repo.create_room(Room(code="ABCDEF")) is True
