"""
Custom exceptions for the application
"""
from typing import Optional


class PokerRoomError(Exception):
    """Base exception for the room service"""

    default_code = "error"

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code or self.default_code
        super().__init__(self.message)


class NotFoundError(PokerRoomError):
    """Room, story or participant does not exist"""

    default_code = "not_found"


class ConflictError(PokerRoomError):
    """Operation conflicts with the current room state"""

    default_code = "conflict"


class ValidationError(PokerRoomError):
    """Malformed input"""

    default_code = "validation_error"


class TransportError(PokerRoomError):
    """Persistence or network failure"""

    default_code = "transport_error"


class UpstreamError(PokerRoomError):
    """Issue tracker failure"""

    default_code = "upstream_error"


class IssueTrackerAuthError(UpstreamError):
    """Issue tracker rejected the credentials"""

    default_code = "upstream_auth"


class IssueTrackerPermissionError(UpstreamError):
    """Issue tracker denied access to the issue"""

    default_code = "upstream_permission"


class IssueTrackerNotFoundError(UpstreamError):
    """Issue does not exist in the tracker"""

    default_code = "upstream_not_found"


class IssueTrackerNetworkError(UpstreamError):
    """Issue tracker unreachable"""

    default_code = "upstream_network"
