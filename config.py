# Configuration for the Planning Poker room service. Values come from the
# environment (a `.env` file is loaded by the entry point).

import os
from pathlib import Path
from typing import List, Optional, Tuple


def _parse_scale(raw_value: str) -> Tuple[float, ...]:
    """Return the sorted allowed scale, ignoring malformed entries."""
    values = set()
    for item in (raw_value or "").split(","):
        item = item.strip()
        if not item:
            continue
        try:
            value = float(item)
        except ValueError:
            continue
        if value < 0:
            continue
        values.add(int(value) if value.is_integer() else value)
    return tuple(sorted(values))


def _parse_csv(raw_value: str) -> List[str]:
    return [item.strip() for item in (raw_value or "").split(",") if item.strip()]


def _parse_int(raw_value: Optional[str], default: int) -> int:
    try:
        return int(raw_value) if raw_value is not None else default
    except (TypeError, ValueError):
        return default


def _parse_float(raw_value: Optional[str], default: float) -> float:
    try:
        return float(raw_value) if raw_value is not None else default
    except (TypeError, ValueError):
        return default


DEFAULT_SCALE: Tuple[float, ...] = (0, 1, 2, 3, 5, 8, 13, 20, 40, 100)

# Voting
ALLOWED_SCALE = _parse_scale(os.getenv("ALLOWED_SCALE", "")) or DEFAULT_SCALE
STRONG_CONSENSUS_THRESHOLD = _parse_float(os.getenv("STRONG_CONSENSUS_THRESHOLD"), 70.0)
MAX_TIMER_SECONDS = _parse_int(os.getenv("MAX_TIMER_SECONDS"), 3600)

# Room lifecycle
ROOM_TTL_HOURS = _parse_int(os.getenv("ROOM_TTL_HOURS"), 24)
CLEANUP_INTERVAL_SECONDS = _parse_int(os.getenv("CLEANUP_INTERVAL_SECONDS"), 3600)

# Synchronization / presence
SYNC_DEBOUNCE_MS = _parse_int(os.getenv("SYNC_DEBOUNCE_MS"), 150)
PRESENCE_TIMEOUT_SECONDS = _parse_int(os.getenv("PRESENCE_TIMEOUT_SECONDS"), 15)

# Storage and realtime backends (in-memory / in-process when unset)
POSTGRES_DSN = os.getenv("POSTGRES_DSN")
REDIS_URL = os.getenv("REDIS_URL")
IDENTITY_FILE = Path(os.getenv("IDENTITY_FILE", "data/identity.json"))

# Jira bridge. Credentials are supplied per request and never configured here.
JIRA_DEFAULT_BASE_URL = os.getenv("JIRA_DEFAULT_BASE_URL", "")
JIRA_STORY_POINTS_FIELDS = _parse_csv(os.getenv("JIRA_STORY_POINTS_FIELDS", "customfield_10166"))
JIRA_COMMENT_TEMPLATE = os.getenv(
    "JIRA_COMMENT_TEMPLATE",
    "Planning Poker: the team voted *{points}* points for this story.",
)
JIRA_TIMEOUT_SECONDS = _parse_int(os.getenv("JIRA_TIMEOUT_SECONDS"), 30)

# HTTP service
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _parse_int(os.getenv("PORT"), 8002)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = _parse_csv(os.getenv("CORS_ORIGINS", "*"))
