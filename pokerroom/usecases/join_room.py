"""Use case for joining a room."""

import logging

from pokerroom.core.validators import validate_participant_name
from pokerroom.domain.enums import ChangeEntity
from pokerroom.domain.participant import Participant
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result

logger = logging.getLogger(__name__)


class JoinRoomUseCase(RoomUseCase):
    """Add a participant or overwrite an existing one with the same name."""

    @returns_result
    async def execute(
        self,
        code: str,
        name: str,
        is_facilitator: bool = False,
        is_voter: bool = True,
    ) -> ActionResult:
        code = self._code(code)
        name = validate_participant_name(name)
        await self._require_room(code)

        now = self.clock()
        participant = await self.repository.upsert_participant(
            Participant(
                room_code=code,
                name=name,
                is_facilitator=is_facilitator,
                is_voter=is_voter,
                joined_at=now,
                last_seen=now,
            )
        )
        if not participant.is_voter:
            await self.repository.delete_vote(code, name)
        logger.info("%s joined room %s", name, code)
        return await self._finish(code, ChangeEntity.PARTICIPANTS, participant=participant.to_dict())
