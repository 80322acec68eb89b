"""Tests for the room synchronizer."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from helpers import make_room
from pokerroom.adapters.identity_file import InMemoryIdentityStore
from pokerroom.services.sync import RoomSynchronizer
from pokerroom.core.exceptions import TransportError
from pokerroom.usecases.base import ActionResult


def make_sync(container, code, name="Bob", **kwargs):
    identity = InMemoryIdentityStore({code: name} if name else None)
    sync = RoomSynchronizer(
        code,
        container.get_room_state,
        container.notifier,
        identity,
        debounce_ms=kwargs.pop("debounce_ms", 20),
        **kwargs,
    )
    return sync, identity


class TestRoomSynchronizer:
    @pytest.mark.asyncio
    async def test_start_loads_snapshot(self, container):
        code = await make_room(container)
        seen = []
        sync, _ = make_sync(container, code, on_snapshot=seen.append)

        await sync.start()

        assert sync.snapshot.code == code
        assert sync.refresh_count == 1
        assert len(seen) == 1
        await sync.stop()

    @pytest.mark.asyncio
    async def test_burst_costs_one_refresh(self, container):
        code = await make_room(container)
        sync, _ = make_sync(container, code)
        await sync.start()

        for value in (1, 2, 3, 5, 8):
            await container.submit_vote.execute(code, "Carol", value)
        await asyncio.sleep(0.1)

        assert sync.refresh_count == 2
        assert sync.snapshot.votes["Carol"].value == 8
        await sync.stop()

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self, container):
        code = await make_room(container)
        sync, _ = make_sync(container, code)
        await sync.start()
        assert container.notifier.subscriber_count(code) == 1

        await sync.stop()
        await container.submit_vote.execute(code, "Carol", 3)
        await asyncio.sleep(0.05)

        assert container.notifier.subscriber_count(code) == 0
        assert sync.refresh_count == 1

    @pytest.mark.asyncio
    async def test_kick_detected_once(self, container):
        code = await make_room(container)
        kicked = AsyncMock()
        seen = []
        sync, identity = make_sync(container, code, on_snapshot=seen.append, on_kicked=kicked)
        await sync.start()

        await container.kick_participant.execute(code, "Bob")
        await asyncio.sleep(0.05)
        await container.submit_vote.execute(code, "Carol", 3)
        await asyncio.sleep(0.05)

        assert sync.kicked
        kicked.assert_awaited_once()
        assert identity.get_identity(code) is None
        assert len(seen) == 1
        await sync.stop()

    @pytest.mark.asyncio
    async def test_room_deleted_counts_as_kick(self, container, repository):
        code = await make_room(container)
        kicked = []
        sync, _ = make_sync(container, code, on_kicked=lambda: kicked.append(True))
        await sync.start()

        await repository.delete_rooms_inactive_since(datetime(2100, 1, 1, tzinfo=timezone.utc))
        await sync.refresh()

        assert sync.snapshot is None
        assert kicked == [True]
        await sync.stop()

    @pytest.mark.asyncio
    async def test_observer_without_identity_is_never_kicked(self, container):
        code = await make_room(container)
        sync, _ = make_sync(container, code, name=None)

        await sync.start()
        await container.kick_participant.execute(code, "Bob")
        await sync.refresh()

        assert not sync.kicked
        await sync.stop()

    @pytest.mark.asyncio
    async def test_optimistic_vote_replaced_by_refresh(self, container):
        code = await make_room(container)
        sync, _ = make_sync(container, code)
        await sync.start()

        local = sync.apply_optimistic_vote(13)
        assert local.votes["Bob"].value == 13
        assert sync.has_pending_vote

        await container.submit_vote.execute(code, "Bob", 8)
        await asyncio.sleep(0.05)

        assert not sync.has_pending_vote
        assert sync.pending_vote is None
        assert sync.snapshot.votes["Bob"].value == 8
        await sync.stop()

    @pytest.mark.asyncio
    async def test_refetch_failure_keeps_view(self, container):
        code = await make_room(container)
        sync, _ = make_sync(container, code)
        await sync.start()
        before = sync.snapshot

        sync.get_room_state = AsyncMock()
        sync.get_room_state.execute = AsyncMock(
            return_value=ActionResult.fail(TransportError("connection refused"))
        )
        await sync.refresh()

        assert sync.snapshot is before
        assert sync.refresh_count == 1
        await sync.stop()


class SlowSecondRead:
    """Wraps GetRoomStateUseCase; the second read stalls after fetching."""

    def __init__(self, inner, delay):
        self.inner = inner
        self.delay = delay
        self.calls = 0

    async def execute(self, code):
        self.calls += 1
        call = self.calls
        result = await self.inner.execute(code)
        if call == 2:
            await asyncio.sleep(self.delay)
        return result


class TestRefreshOrdering:
    @pytest.mark.asyncio
    async def test_slow_refetch_never_overwrites_newer_view(self, container):
        code = await make_room(container)
        reader = SlowSecondRead(container.get_room_state, delay=0.2)
        sync = RoomSynchronizer(code, reader, container.notifier, InMemoryIdentityStore(), debounce_ms=10)
        await sync.start()

        await container.submit_vote.execute(code, "Bob", 3)
        await asyncio.sleep(0.05)
        await container.submit_vote.execute(code, "Bob", 8)
        await asyncio.sleep(0.4)

        assert reader.calls == 3
        assert sync.snapshot.votes["Bob"].value == 8
        await sync.stop()

    @pytest.mark.asyncio
    async def test_direct_refreshes_are_serialized(self, container):
        code = await make_room(container)
        reader = SlowSecondRead(container.get_room_state, delay=0.1)
        sync = RoomSynchronizer(code, reader, container.notifier, InMemoryIdentityStore(), debounce_ms=10)
        await sync.start()

        slow = asyncio.create_task(sync.refresh())
        await asyncio.sleep(0)
        await container.submit_vote.execute(code, "Carol", 13)
        await asyncio.gather(slow, sync.refresh())

        assert sync.snapshot.votes["Carol"].value == 13
        await sync.stop()
