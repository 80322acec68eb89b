"""Use case for creating a room."""

import logging
from typing import Callable, Optional

from pokerroom.core.exceptions import ConflictError
from pokerroom.core.validators import validate_external_link
from pokerroom.domain.room import Room
from pokerroom.services.room_codes import generate_room_code
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5


class CreateRoomUseCase(RoomUseCase):
    """Create a room under a fresh random code, retrying on collision."""

    def __init__(
        self,
        repository,
        notifier=None,
        clock=None,
        code_generator: Callable[[], str] = generate_room_code,
    ):
        super().__init__(repository, notifier, clock)
        self.code_generator = code_generator

    @returns_result
    async def execute(self, issue_tracker_base_url: Optional[str] = None) -> ActionResult:
        base_url = validate_external_link(issue_tracker_base_url)
        now = self.clock()
        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            code = self.code_generator()
            room = Room(code=code, issue_tracker_base_url=base_url, last_activity=now, created_at=now)
            if await self.repository.create_room(room):
                logger.info("Created room %s (attempt %s)", code, attempt)
                return ActionResult.ok(await self.repository.get_snapshot(code), code=code)
            logger.debug("Room code %s already taken", code)
        raise ConflictError("Could not allocate a unique room code")
