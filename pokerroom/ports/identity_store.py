"""Local participant identity interface."""

from abc import ABC, abstractmethod
from typing import Optional


class IdentityStore(ABC):
    """Remembers which participant name this client joined a room as."""

    @abstractmethod
    def get_identity(self, room_code: str) -> Optional[str]:
        pass

    @abstractmethod
    def set_identity(self, room_code: str, participant_name: str) -> None:
        pass

    @abstractmethod
    def clear_identity(self, room_code: str) -> None:
        pass
