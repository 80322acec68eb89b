"""Identity store adapters."""

import json
import logging
from pathlib import Path
from typing import Dict, Optional

from pokerroom.ports.identity_store import IdentityStore

logger = logging.getLogger(__name__)


class InMemoryIdentityStore(IdentityStore):
    """Identity store kept for the lifetime of one connection or test."""

    def __init__(self, identities: Optional[Dict[str, str]] = None):
        self._identities: Dict[str, str] = dict(identities or {})

    def get_identity(self, room_code: str) -> Optional[str]:
        return self._identities.get(room_code)

    def set_identity(self, room_code: str, participant_name: str) -> None:
        self._identities[room_code] = participant_name

    def clear_identity(self, room_code: str) -> None:
        self._identities.pop(room_code, None)


class FileIdentityStore(IdentityStore):
    """Persists room code -> participant name in a JSON file across restarts."""

    def __init__(self, state_path: Path):
        self.state_path = state_path
        self._identities: Dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        if not self.state_path.exists():
            return

        try:
            with self.state_path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable identity file %s: %s", self.state_path, e)
            return

        if not isinstance(payload, dict):
            return

        self._identities = {
            str(code): str(name) for code, name in payload.items() if isinstance(name, str)
        }

    def save(self) -> None:
        self.state_path.parent.mkdir(parents=True, exist_ok=True)
        with self.state_path.open("w", encoding="utf-8") as fh:
            json.dump(self._identities, fh, ensure_ascii=False, indent=2)

    def get_identity(self, room_code: str) -> Optional[str]:
        return self._identities.get(room_code)

    def set_identity(self, room_code: str, participant_name: str) -> None:
        self._identities[room_code] = participant_name
        self.save()

    def clear_identity(self, room_code: str) -> None:
        if room_code in self._identities:
            del self._identities[room_code]
            self.save()
