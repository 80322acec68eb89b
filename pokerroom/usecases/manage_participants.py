"""Use cases for facilitator roster management."""

from typing import Optional

from pokerroom.core.exceptions import ConflictError, NotFoundError
from pokerroom.domain.enums import ChangeEntity
from pokerroom.usecases.base import ActionResult, RoomUseCase, returns_result
from pokerroom.utils.audit import audit_log


class PromoteParticipantUseCase(RoomUseCase):
    """Make a participant a (co-)facilitator."""

    @returns_result
    async def execute(self, code: str, name: str, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)
        participant = await self.repository.update_participant(code, name, is_facilitator=True)
        if participant is None:
            raise NotFoundError(f"Participant {name} is not in room {code}")
        audit_log("promote_participant", code, actor, {"participant": name})
        return await self._finish(code, ChangeEntity.PARTICIPANTS)


class SetVoterStatusUseCase(RoomUseCase):
    """Toggle voter/observer. Becoming an observer drops the live vote."""

    @returns_result
    async def execute(self, code: str, name: str, is_voter: bool, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)
        participant = await self.repository.update_participant(code, name, is_voter=is_voter)
        if participant is None:
            raise NotFoundError(f"Participant {name} is not in room {code}")
        if not is_voter:
            await self.repository.delete_vote(code, name)
        audit_log("set_voter_status", code, actor, {"participant": name, "is_voter": is_voter})
        return await self._finish(code, ChangeEntity.PARTICIPANTS)


class KickParticipantUseCase(RoomUseCase):
    """Remove a participant and their vote. Facilitators cannot be kicked."""

    @returns_result
    async def execute(self, code: str, name: str, actor: Optional[str] = None) -> ActionResult:
        code = self._code(code)
        await self._require_room(code)
        await self._require_facilitator(code, actor)
        participant = await self._require_participant(code, name)
        if participant.is_facilitator:
            raise ConflictError(f"Cannot remove facilitator {name}")
        if not await self.repository.delete_participant(code, name):
            raise NotFoundError(f"Participant {name} is not in room {code}")
        audit_log("kick_participant", code, actor, {"participant": name})
        return await self._finish(code, ChangeEntity.PARTICIPANTS)
