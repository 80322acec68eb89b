"""Ports (interfaces) for dependency inversion."""

from pokerroom.ports.change_notifier import ChangeNotifier
from pokerroom.ports.identity_store import IdentityStore
from pokerroom.ports.issue_tracker import IssueTrackerClient
from pokerroom.ports.room_repository import RoomRepository

__all__ = ["ChangeNotifier", "IdentityStore", "IssueTrackerClient", "RoomRepository"]
