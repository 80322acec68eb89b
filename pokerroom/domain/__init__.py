"""Domain models and business rules."""

from pokerroom.domain.enums import ChangeEntity, VotingPhase
from pokerroom.domain.participant import Participant
from pokerroom.domain.room import Room
from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.domain.story import Story, StoryDraft
from pokerroom.domain.vote import Vote, VoteHistoryEntry

__all__ = [
    "ChangeEntity",
    "Participant",
    "Room",
    "RoomSnapshot",
    "Story",
    "StoryDraft",
    "Vote",
    "VoteHistoryEntry",
    "VotingPhase",
]
