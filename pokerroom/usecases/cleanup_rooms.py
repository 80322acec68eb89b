"""Use case for sweeping inactive rooms."""

import logging
from datetime import timedelta

from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result

logger = logging.getLogger(__name__)


class CleanupInactiveRoomsUseCase(RoomUseCase):
    """Delete rooms whose last activity is older than the TTL (cascades to children)."""

    def __init__(self, repository, ttl_hours: int = 24, clock=None):
        super().__init__(repository, clock=clock)
        self.ttl_hours = ttl_hours

    @returns_result
    async def execute(self) -> ActionResult:
        cutoff = self.clock() - timedelta(hours=self.ttl_hours)
        deleted = await self.repository.delete_rooms_inactive_since(cutoff)
        if deleted:
            logger.info("Deleted %s inactive rooms: %s", len(deleted), ", ".join(deleted))
        return ActionResult.ok(deleted=deleted)
