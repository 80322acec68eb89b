"""Dependency injection container."""

import logging
from pathlib import Path
from typing import Callable, Optional

from pokerroom.adapters.identity_file import FileIdentityStore
from pokerroom.adapters.jira_http import JiraHttpClient
from pokerroom.adapters.local_notifier import LocalChangeNotifier
from pokerroom.adapters.memory_repository import InMemoryRoomRepository
from pokerroom.ports.change_notifier import ChangeNotifier
from pokerroom.ports.identity_store import IdentityStore
from pokerroom.ports.issue_tracker import IssueTrackerClient
from pokerroom.ports.room_repository import RoomRepository
from pokerroom.services.history import VoteHistoryAggregator
from pokerroom.services.story_import import StoryImportService
from pokerroom.services.sync import KickedCallback, RoomSynchronizer, SnapshotCallback
from pokerroom.usecases import (
    AddStoriesUseCase,
    AdvanceStoryUseCase,
    CleanupInactiveRoomsUseCase,
    CreateRoomUseCase,
    DeleteStoryUseCase,
    EditStoryUseCase,
    GetRoomStateUseCase,
    GetVoteHistoryUseCase,
    HeartbeatUseCase,
    ImportStoriesUseCase,
    JoinRoomUseCase,
    KickParticipantUseCase,
    PromoteParticipantUseCase,
    PublishEstimateUseCase,
    ReorderStoriesUseCase,
    RevealVotesUseCase,
    SetFinalEstimateUseCase,
    SetVoterStatusUseCase,
    StartVotingUseCase,
    SubmitVoteUseCase,
)
from pokerroom.usecases.base import Clock
from config import (
    ALLOWED_SCALE,
    IDENTITY_FILE,
    JIRA_COMMENT_TEMPLATE,
    JIRA_DEFAULT_BASE_URL,
    JIRA_STORY_POINTS_FIELDS,
    JIRA_TIMEOUT_SECONDS,
    MAX_TIMER_SECONDS,
    POSTGRES_DSN,
    REDIS_URL,
    ROOM_TTL_HOURS,
    STRONG_CONSENSUS_THRESHOLD,
    SYNC_DEBOUNCE_MS,
)

logger = logging.getLogger(__name__)


class DIContainer:
    """Dependency injection container."""

    def __init__(
        self,
        repository: Optional[RoomRepository] = None,
        notifier: Optional[ChangeNotifier] = None,
        issue_tracker: Optional[IssueTrackerClient] = None,
        clock: Optional[Clock] = None,
        code_generator: Optional[Callable[[], str]] = None,
        identity_file: Path = IDENTITY_FILE,
    ):
        self._repository = repository or InMemoryRoomRepository()
        self._notifier = notifier or LocalChangeNotifier()
        self._issue_tracker = issue_tracker or JiraHttpClient(
            story_points_fields=JIRA_STORY_POINTS_FIELDS,
            comment_template=JIRA_COMMENT_TEMPLATE,
            timeout=JIRA_TIMEOUT_SECONDS,
        )
        self._identity_file = identity_file
        self._local_identity: Optional[IdentityStore] = None
        self.allowed_scale = list(ALLOWED_SCALE)
        self.consensus_threshold = STRONG_CONSENSUS_THRESHOLD

        repo = self._repository
        notify = self._notifier
        self.history = VoteHistoryAggregator(repo, self.allowed_scale, self.consensus_threshold)
        self.story_importer = StoryImportService()

        # Use cases
        create_kwargs = {"code_generator": code_generator} if code_generator else {}
        self.create_room = CreateRoomUseCase(repo, notify, clock, **create_kwargs)
        self.join_room = JoinRoomUseCase(repo, notify, clock)
        self.get_room_state = GetRoomStateUseCase(repo, notify, clock)
        self.submit_vote = SubmitVoteUseCase(repo, notify, self.allowed_scale, clock)
        self.start_voting = StartVotingUseCase(repo, notify, MAX_TIMER_SECONDS, clock)
        self.reveal_votes = RevealVotesUseCase(repo, self.history, notify, clock)
        self.advance_story = AdvanceStoryUseCase(repo, notify, self.allowed_scale, clock)
        self.set_final_estimate = SetFinalEstimateUseCase(repo, notify, clock)
        self.add_stories = AddStoriesUseCase(repo, notify, clock)
        self.import_stories = ImportStoriesUseCase(repo, self.story_importer, notify, clock)
        self.edit_story = EditStoryUseCase(repo, notify, clock)
        self.delete_story = DeleteStoryUseCase(repo, notify, clock)
        self.reorder_stories = ReorderStoriesUseCase(repo, notify, clock)
        self.promote_participant = PromoteParticipantUseCase(repo, notify, clock)
        self.set_voter_status = SetVoterStatusUseCase(repo, notify, clock)
        self.kick_participant = KickParticipantUseCase(repo, notify, clock)
        self.heartbeat = HeartbeatUseCase(repo, notify, clock)
        self.vote_history = GetVoteHistoryUseCase(repo, self.history)
        self.publish_estimate = PublishEstimateUseCase(
            repo, self._issue_tracker, default_base_url=JIRA_DEFAULT_BASE_URL or None
        )
        self.cleanup_rooms = CleanupInactiveRoomsUseCase(repo, ROOM_TTL_HOURS, clock)

    @classmethod
    async def create(cls, **overrides) -> "DIContainer":
        """Build the container with backends picked from configuration."""
        if "repository" not in overrides and POSTGRES_DSN:
            # Lazy import keeps asyncpg out of in-memory deployments
            from pokerroom.adapters.postgres_repository import PostgresRoomRepository

            overrides["repository"] = await PostgresRoomRepository.create(POSTGRES_DSN)
            logger.info("Using Postgres room repository")
        if "notifier" not in overrides and REDIS_URL:
            from pokerroom.adapters.redis_notifier import RedisChangeNotifier

            overrides["notifier"] = RedisChangeNotifier(REDIS_URL)
            logger.info("Using Redis change notifier")
        return cls(**overrides)

    @property
    def repository(self) -> RoomRepository:
        """Get room repository."""
        return self._repository

    @property
    def notifier(self) -> ChangeNotifier:
        """Get change notifier."""
        return self._notifier

    @property
    def issue_tracker(self) -> IssueTrackerClient:
        """Get issue tracker client."""
        return self._issue_tracker

    @property
    def local_identity(self) -> IdentityStore:
        """Identity of this process's own user, persisted in IDENTITY_FILE."""
        if self._local_identity is None:
            self._local_identity = FileIdentityStore(self._identity_file)
        return self._local_identity

    def create_synchronizer(
        self,
        room_code: str,
        identity_store: Optional[IdentityStore] = None,
        on_snapshot: Optional[SnapshotCallback] = None,
        on_kicked: Optional[KickedCallback] = None,
    ) -> RoomSynchronizer:
        return RoomSynchronizer(
            room_code,
            self.get_room_state,
            self._notifier,
            identity_store or self.local_identity,
            debounce_ms=SYNC_DEBOUNCE_MS,
            on_snapshot=on_snapshot,
            on_kicked=on_kicked,
        )

    async def cleanup(self) -> None:
        """Cleanup resources."""
        await self._issue_tracker.close()
        await self._notifier.close()
        if hasattr(self._repository, "close"):
            await self._repository.close()
