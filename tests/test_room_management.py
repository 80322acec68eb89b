"""Tests for room lifecycle, roster and story queue use cases."""

import pytest

from helpers import make_room, sequential_codes
from pokerroom.domain import StoryDraft
from pokerroom.providers import DIContainer


class TestCreateAndJoin:
    @pytest.mark.asyncio
    async def test_create_room(self, container):
        result = await container.create_room.execute("https://jira.example.com")

        assert result.success
        code = result.payload["code"]
        assert len(code) == 6
        assert result.room.room.issue_tracker_base_url == "https://jira.example.com"

    @pytest.mark.asyncio
    async def test_create_retries_on_collision(self, repository, notifier, clock, tmp_path):
        codes = iter(["ABCDE2", "ABCDE2", "ABCDE3"])
        container = DIContainer(
            repository=repository,
            notifier=notifier,
            clock=clock,
            code_generator=lambda: next(codes),
            identity_file=tmp_path / "id.json",
        )

        first = await container.create_room.execute()
        second = await container.create_room.execute()

        assert first.payload["code"] == "ABCDE2"
        assert second.payload["code"] == "ABCDE3"

    @pytest.mark.asyncio
    async def test_create_gives_up_after_five_attempts(self, repository, notifier, clock, tmp_path):
        container = DIContainer(
            repository=repository,
            notifier=notifier,
            clock=clock,
            code_generator=lambda: "ABCDE2",
            identity_file=tmp_path / "id.json",
        )
        await container.create_room.execute()

        result = await container.create_room.execute()

        assert result.error_code == "conflict"

    @pytest.mark.asyncio
    async def test_create_rejects_bad_tracker_url(self, container):
        result = await container.create_room.execute("ftp://jira")
        assert result.error_code == "validation_error"

    @pytest.mark.asyncio
    async def test_join_normalizes_code(self, repository, notifier, clock, tmp_path):
        container = DIContainer(
            repository=repository,
            notifier=notifier,
            clock=clock,
            code_generator=sequential_codes(),
            identity_file=tmp_path / "id.json",
        )
        code = (await container.create_room.execute()).payload["code"]

        result = await container.join_room.execute(f"  {code.lower()} ", "  Bob ")

        assert result.success
        assert result.room.has_participant("Bob")

    @pytest.mark.asyncio
    async def test_join_unknown_room(self, container):
        result = await container.join_room.execute("ZZZZZZ", "Bob")
        assert result.error_code == "not_found"

    @pytest.mark.asyncio
    async def test_join_invalid_name(self, container):
        code = await make_room(container)
        result = await container.join_room.execute(code, "   ")
        assert result.error_code == "validation_error"

    @pytest.mark.asyncio
    async def test_rejoin_last_writer_wins(self, container):
        code = await make_room(container)
        await container.submit_vote.execute(code, "Bob", 5)

        result = await container.join_room.execute(code, "Bob", is_voter=False)

        bob = result.room.get_participant("Bob")
        assert bob.is_voter is False
        assert "Bob" not in result.room.votes
        assert [p.name for p in result.room.participants].count("Bob") == 1

    @pytest.mark.asyncio
    async def test_get_room_state_is_passive(self, container, repository, notifier):
        code = await make_room(container)
        before = (await repository.get_room(code)).last_activity
        seen = []
        await notifier.subscribe(code, seen.append)

        result = await container.get_room_state.execute(code)

        assert result.success
        assert (await repository.get_room(code)).last_activity == before
        assert seen == []

    @pytest.mark.asyncio
    async def test_mutation_bumps_last_activity(self, container, repository):
        code = await make_room(container)
        before = (await repository.get_room(code)).last_activity
        await container.submit_vote.execute(code, "Bob", 3)
        assert (await repository.get_room(code)).last_activity > before


class TestStoryQueue:
    @pytest.mark.asyncio
    async def test_bulk_add(self, container):
        code = await make_room(container, stories=())
        result = await container.add_stories.execute(
            code, [StoryDraft("A"), StoryDraft("B", "https://jira.example.com/browse/PROJ-2")]
        )
        assert [s.title for s in result.room.stories] == ["A", "B"]
        assert len(result.payload["stories"]) == 2

    @pytest.mark.asyncio
    async def test_empty_bulk_add(self, container):
        code = await make_room(container)
        result = await container.add_stories.execute(code, [])
        assert result.error_code == "validation_error"

    @pytest.mark.asyncio
    async def test_import_text_auto_links_keys(self, container):
        created = await container.create_room.execute("https://jira.example.com")
        code = created.payload["code"]

        result = await container.import_stories.execute_text(code, "- PROJ-7 Login\n- Logout\n")

        stories = result.room.stories
        assert stories[0].external_link == "https://jira.example.com/browse/PROJ-7"
        assert stories[1].external_link is None

    @pytest.mark.asyncio
    async def test_edit_story(self, container):
        code = await make_room(container)
        story = (await container.get_room_state.execute(code)).room.stories[0]

        renamed = await container.edit_story.execute(code, story.id, title="Renamed", external_link="https://x.io/1")
        assert renamed.room.stories[0].title == "Renamed"
        assert renamed.room.stories[0].external_link == "https://x.io/1"

        unlinked = await container.edit_story.execute(code, story.id, external_link=None)
        assert unlinked.room.stories[0].external_link is None
        assert unlinked.room.stories[0].title == "Renamed"

    @pytest.mark.asyncio
    async def test_edit_nothing(self, container):
        code = await make_room(container)
        story = (await container.get_room_state.execute(code)).room.stories[0]
        result = await container.edit_story.execute(code, story.id)
        assert result.error_code == "validation_error"

    @pytest.mark.asyncio
    async def test_delete_compacts(self, container):
        code = await make_room(container, stories=("A", "B", "C"))
        stories = (await container.get_room_state.execute(code)).room.stories

        result = await container.delete_story.execute(code, stories[0].id, actor="Alice")

        assert [(s.title, s.order_index) for s in result.room.stories] == [("B", 0), ("C", 1)]
        missing = await container.delete_story.execute(code, stories[0].id)
        assert missing.error_code == "not_found"

    @pytest.mark.asyncio
    async def test_reorder(self, container):
        code = await make_room(container, stories=("A", "B", "C"))
        ids = [s.id for s in (await container.get_room_state.execute(code)).room.stories]

        result = await container.reorder_stories.execute(code, [ids[2], ids[0], ids[1]])

        assert [s.title for s in result.room.stories] == ["C", "A", "B"]
        bad = await container.reorder_stories.execute(code, ids[:1])
        assert bad.error_code == "validation_error"

    @pytest.mark.asyncio
    async def test_story_ops_require_facilitator_actor(self, container):
        code = await make_room(container)
        result = await container.add_stories.add_one(code, "Sneaky", actor="Bob")
        assert result.error_code == "conflict"


class TestRoster:
    @pytest.mark.asyncio
    async def test_promote(self, container):
        code = await make_room(container)
        result = await container.promote_participant.execute(code, "Bob", actor="Alice")
        assert result.room.get_participant("Bob").is_facilitator

    @pytest.mark.asyncio
    async def test_promote_unknown(self, container):
        code = await make_room(container)
        result = await container.promote_participant.execute(code, "Nobody")
        assert result.error_code == "not_found"

    @pytest.mark.asyncio
    async def test_observer_loses_live_vote(self, container):
        code = await make_room(container)
        await container.submit_vote.execute(code, "Bob", 8)

        result = await container.set_voter_status.execute(code, "Bob", False)

        assert "Bob" not in result.room.votes
        assert result.room.progress == (0, 2)

    @pytest.mark.asyncio
    async def test_kick_removes_participant_and_vote(self, container):
        code = await make_room(container)
        await container.submit_vote.execute(code, "Bob", 8)

        result = await container.kick_participant.execute(code, "Bob", actor="Alice")

        assert result.success
        assert not result.room.has_participant("Bob")
        assert "Bob" not in result.room.votes

    @pytest.mark.asyncio
    async def test_kick_facilitator_rejected(self, container):
        code = await make_room(container)
        await container.promote_participant.execute(code, "Bob")

        result = await container.kick_participant.execute(code, "Bob", actor="Alice")

        assert result.error_code == "conflict"
        snapshot = (await container.get_room_state.execute(code)).room
        assert snapshot.has_participant("Bob")

    @pytest.mark.asyncio
    async def test_heartbeat(self, container, clock):
        code = await make_room(container)
        clock.advance(seconds=30)

        result = await container.heartbeat.execute(code, "Bob")

        assert result.success
        snapshot = (await container.get_room_state.execute(code)).room
        assert snapshot.get_participant("Bob").is_online(clock.now, 15)

    @pytest.mark.asyncio
    async def test_heartbeat_after_kick(self, container):
        code = await make_room(container)
        await container.kick_participant.execute(code, "Bob")

        result = await container.heartbeat.execute(code, "Bob")

        assert result.error_code == "kicked"


class TestCleanup:
    @pytest.mark.asyncio
    async def test_inactive_rooms_deleted(self, container, clock, repository):
        stale = await make_room(container)
        clock.advance(hours=23)
        fresh = await make_room(container)
        clock.advance(hours=2)

        result = await container.cleanup_rooms.execute()

        assert result.payload["deleted"] == [stale]
        assert await repository.get_room(stale) is None
        assert await repository.get_room(fresh) is not None
        assert (await container.get_room_state.execute(stale)).error_code == "not_found"
