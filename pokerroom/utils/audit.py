"""Audit logging for facilitator actions."""

import json
import logging
from typing import Any, Dict, Optional

from pokerroom.domain.timeutils import to_iso, utc_now

logger = logging.getLogger("pokerroom.audit")


def audit_log(
    action: str,
    room_code: str,
    actor: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log a facilitator action as a single ``[AUDIT]`` line.

    Args:
        action: Action name (e.g., 'reveal_votes', 'kick_participant', 'add_stories')
        room_code: Room the action was applied to
        actor: Participant name that requested the action, when known
        extra: Additional data (e.g., story_id, participant, count)
    """
    timestamp = to_iso(utc_now())
    log_line = f"[AUDIT] {timestamp} | {action} | room:{room_code}"
    if actor:
        log_line += f" | actor:{actor}"

    if extra:
        extra_str = json.dumps(extra, ensure_ascii=False, default=str)
        log_line += f" | {extra_str}"

    logger.info(log_line)
