"""Tests for the in-memory room repository."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from pokerroom.adapters.memory_repository import InMemoryRoomRepository
from pokerroom.core.exceptions import ValidationError
from pokerroom.domain import Participant, Room, StoryDraft, Vote, VoteHistoryEntry, VotingPhase

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


async def seeded_repository():
    repo = InMemoryRoomRepository()
    await repo.create_room(Room(code="ABCDEF", last_activity=NOW, created_at=NOW))
    await repo.upsert_participant(Participant("ABCDEF", "Alice", is_facilitator=True, joined_at=NOW))
    await repo.upsert_participant(Participant("ABCDEF", "Bob", joined_at=NOW + timedelta(seconds=1)))
    await repo.add_stories("ABCDEF", [StoryDraft("One"), StoryDraft("Two"), StoryDraft("Three")])
    return repo


class TestRooms:
    @pytest.mark.asyncio
    async def test_create_rejects_duplicate_code(self):
        repo = InMemoryRoomRepository()
        assert await repo.create_room(Room(code="ABCDEF")) is True
        assert await repo.create_room(Room(code="ABCDEF")) is False

    @pytest.mark.asyncio
    async def test_instances_do_not_share_state(self):
        first = InMemoryRoomRepository()
        second = InMemoryRoomRepository()
        await first.create_room(Room(code="ABCDEF"))
        assert await second.get_room("ABCDEF") is None

    @pytest.mark.asyncio
    async def test_returned_room_is_a_copy(self):
        repo = await seeded_repository()
        room = await repo.get_room("ABCDEF")
        room.current_story_index = 99
        assert (await repo.get_room("ABCDEF")).current_story_index == 0

    @pytest.mark.asyncio
    async def test_compare_and_update_applies_when_expected_matches(self):
        repo = await seeded_repository()
        updated = await repo.compare_and_update_room(
            "ABCDEF",
            expected={"voting_phase": {VotingPhase.IDLE, VotingPhase.REVEALED}},
            updates={"voting_phase": VotingPhase.VOTING},
        )
        assert updated.voting_phase == VotingPhase.VOTING

    @pytest.mark.asyncio
    async def test_compare_and_update_rejects_stale_expectation(self):
        repo = await seeded_repository()
        result = await repo.compare_and_update_room(
            "ABCDEF", expected={"voting_phase": VotingPhase.VOTING}, updates={"voting_phase": VotingPhase.REVEALED}
        )
        assert result is None
        assert (await repo.get_room("ABCDEF")).voting_phase == VotingPhase.IDLE

    @pytest.mark.asyncio
    async def test_concurrent_pointer_increment_moves_once(self):
        repo = await seeded_repository()

        async def advance():
            return await repo.compare_and_update_room(
                "ABCDEF", expected={"current_story_index": 0}, updates={"current_story_index": 1}
            )

        results = await asyncio.gather(advance(), advance())
        assert sum(1 for r in results if r is not None) == 1
        assert (await repo.get_room("ABCDEF")).current_story_index == 1

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self):
        repo = await seeded_repository()
        with pytest.raises(ValidationError):
            await repo.compare_and_update_room("ABCDEF", expected={}, updates={"code": "ZZZZZZ"})

    @pytest.mark.asyncio
    async def test_delete_inactive_rooms_cascades(self):
        repo = await seeded_repository()
        await repo.create_room(Room(code="GHJKLM", last_activity=NOW + timedelta(hours=30)))

        deleted = await repo.delete_rooms_inactive_since(NOW + timedelta(hours=1))

        assert deleted == ["ABCDEF"]
        assert await repo.get_snapshot("ABCDEF") is None
        assert await repo.list_stories("ABCDEF") == []
        assert await repo.get_room("GHJKLM") is not None


class TestParticipantsAndVotes:
    @pytest.mark.asyncio
    async def test_snapshot_orders_participants_by_join_time(self):
        repo = await seeded_repository()
        await repo.upsert_participant(Participant("ABCDEF", "Aaron", joined_at=NOW - timedelta(seconds=5)))
        snapshot = await repo.get_snapshot("ABCDEF")
        assert [p.name for p in snapshot.participants] == ["Aaron", "Alice", "Bob"]

    @pytest.mark.asyncio
    async def test_rejoin_overwrites_flags_but_keeps_join_time(self):
        repo = await seeded_repository()
        stored = await repo.upsert_participant(
            Participant("ABCDEF", "Bob", is_voter=False, joined_at=NOW + timedelta(hours=1))
        )
        assert stored.is_voter is False
        assert stored.joined_at == NOW + timedelta(seconds=1)

    @pytest.mark.asyncio
    async def test_delete_participant_removes_vote(self):
        repo = await seeded_repository()
        await repo.upsert_vote(Vote("ABCDEF", "Bob", 5))

        assert await repo.delete_participant("ABCDEF", "Bob") is True
        assert await repo.list_votes("ABCDEF") == []
        assert await repo.delete_participant("ABCDEF", "Bob") is False

    @pytest.mark.asyncio
    async def test_vote_upsert_is_last_write_wins(self):
        repo = await seeded_repository()
        await repo.upsert_vote(Vote("ABCDEF", "Bob", 5))
        await repo.upsert_vote(Vote("ABCDEF", "Bob", 8))
        votes = await repo.list_votes("ABCDEF")
        assert [(v.participant_name, v.value) for v in votes] == [("Bob", 8)]

    @pytest.mark.asyncio
    async def test_clear_votes(self):
        repo = await seeded_repository()
        await repo.upsert_vote(Vote("ABCDEF", "Alice", 3))
        await repo.upsert_vote(Vote("ABCDEF", "Bob", 5))
        await repo.clear_votes("ABCDEF")
        assert await repo.list_votes("ABCDEF") == []


class TestStories:
    @pytest.mark.asyncio
    async def test_append_at_end(self):
        repo = await seeded_repository()
        added = await repo.add_stories("ABCDEF", [StoryDraft("Four")])
        assert added[0].order_index == 3

    @pytest.mark.asyncio
    async def test_delete_compacts_order(self):
        repo = await seeded_repository()
        stories = await repo.list_stories("ABCDEF")

        assert await repo.delete_story("ABCDEF", stories[1].id) is True

        remaining = await repo.list_stories("ABCDEF")
        assert [(s.title, s.order_index) for s in remaining] == [("One", 0), ("Three", 1)]

    @pytest.mark.asyncio
    async def test_reorder_rewrites_every_index(self):
        repo = await seeded_repository()
        ids = [s.id for s in await repo.list_stories("ABCDEF")]

        reordered = await repo.reorder_stories("ABCDEF", list(reversed(ids)))

        assert [s.title for s in reordered] == ["Three", "Two", "One"]
        assert [s.order_index for s in reordered] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_reorder_requires_every_story_once(self):
        repo = await seeded_repository()
        ids = [s.id for s in await repo.list_stories("ABCDEF")]

        with pytest.raises(ValidationError):
            await repo.reorder_stories("ABCDEF", ids[:2])
        with pytest.raises(ValidationError):
            await repo.reorder_stories("ABCDEF", [ids[0], ids[0], ids[1]])

    @pytest.mark.asyncio
    async def test_update_story(self):
        repo = await seeded_repository()
        story = (await repo.list_stories("ABCDEF"))[0]
        updated = await repo.update_story("ABCDEF", story.id, final_estimate=8)
        assert updated.final_estimate == 8
        assert await repo.update_story("ABCDEF", 999, final_estimate=8) is None


class TestHistory:
    @pytest.mark.asyncio
    async def test_history_entries_get_ids(self):
        repo = await seeded_repository()
        entry = VoteHistoryEntry("ABCDEF", 1, "One", "Bob", 5, revealed_at=NOW)

        await repo.append_history([entry, entry])

        history = await repo.list_history("ABCDEF")
        assert [h.id for h in history] == [1, 2]
