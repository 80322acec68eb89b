"""Enumerations for the room domain."""

from enum import Enum


class VotingPhase(Enum):
    IDLE = "idle"
    VOTING = "voting"
    REVEALED = "revealed"


class ChangeEntity(Enum):
    """Entity tags carried by change notifications (informational only)."""

    ROOM = "room"
    PARTICIPANTS = "participants"
    STORIES = "stories"
    VOTES = "votes"
