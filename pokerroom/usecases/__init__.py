"""Use cases (application layer)."""

from pokerroom.usecases.add_stories import AddStoriesUseCase, ImportStoriesUseCase
from pokerroom.usecases.advance_story import AdvanceStoryUseCase
from pokerroom.usecases.base import ActionResult
from pokerroom.usecases.cleanup_rooms import CleanupInactiveRoomsUseCase
from pokerroom.usecases.create_room import CreateRoomUseCase
from pokerroom.usecases.delete_story import DeleteStoryUseCase
from pokerroom.usecases.edit_story import EditStoryUseCase
from pokerroom.usecases.get_room_state import GetRoomStateUseCase
from pokerroom.usecases.heartbeat import HeartbeatUseCase
from pokerroom.usecases.join_room import JoinRoomUseCase
from pokerroom.usecases.manage_participants import (
    KickParticipantUseCase,
    PromoteParticipantUseCase,
    SetVoterStatusUseCase,
)
from pokerroom.usecases.publish_estimate import PublishEstimateUseCase
from pokerroom.usecases.reorder_stories import ReorderStoriesUseCase
from pokerroom.usecases.reveal_votes import RevealVotesUseCase
from pokerroom.usecases.set_final_estimate import SetFinalEstimateUseCase
from pokerroom.usecases.start_voting import StartVotingUseCase
from pokerroom.usecases.submit_vote import SubmitVoteUseCase
from pokerroom.usecases.vote_history import GetVoteHistoryUseCase

__all__ = [
    "ActionResult",
    "CreateRoomUseCase",
    "JoinRoomUseCase",
    "GetRoomStateUseCase",
    "SubmitVoteUseCase",
    "StartVotingUseCase",
    "RevealVotesUseCase",
    "AdvanceStoryUseCase",
    "SetFinalEstimateUseCase",
    "AddStoriesUseCase",
    "ImportStoriesUseCase",
    "EditStoryUseCase",
    "DeleteStoryUseCase",
    "ReorderStoriesUseCase",
    "PromoteParticipantUseCase",
    "SetVoterStatusUseCase",
    "KickParticipantUseCase",
    "HeartbeatUseCase",
    "GetVoteHistoryUseCase",
    "PublishEstimateUseCase",
    "CleanupInactiveRoomsUseCase",
]
