"""Websocket fan-out of room snapshots."""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from pokerroom.adapters.identity_file import InMemoryIdentityStore
from pokerroom.core.exceptions import ValidationError
from pokerroom.core.validators import normalize_room_code
from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.transport.http.api import render_snapshot

logger = logging.getLogger(__name__)

router = APIRouter()

CLOSE_KICKED = 4001
CLOSE_NOT_FOUND = 4404
CLOSE_INVALID = 4422


async def _drain(websocket: WebSocket) -> None:
    """Consume client frames until the client goes away."""
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/ws/rooms/{code}")
async def room_updates(websocket: WebSocket, code: str, participant: Optional[str] = None) -> None:
    """Push the room snapshot (as seen by ``participant``) after every change.

    A ``{"type": "kicked"}`` message followed by close means the participant
    was removed and must rejoin.
    """
    container = websocket.app.state.container
    await websocket.accept()
    try:
        code = normalize_room_code(code)
    except ValidationError as e:
        await websocket.send_json({"type": "error", "error": e.message, "error_code": e.error_code})
        await websocket.close(code=CLOSE_INVALID)
        return

    identity = InMemoryIdentityStore({code: participant} if participant else None)
    kicked = asyncio.Event()

    async def send_snapshot(snapshot: RoomSnapshot) -> None:
        await websocket.send_json({"type": "snapshot", "room": render_snapshot(container, snapshot, participant)})

    async def send_kicked() -> None:
        await websocket.send_json({"type": "kicked", "room_code": code})
        kicked.set()

    synchronizer = container.create_synchronizer(code, identity, send_snapshot, send_kicked)
    receiver: Optional[asyncio.Task] = None
    waiter: Optional[asyncio.Task] = None
    try:
        await synchronizer.start()
        if synchronizer.snapshot is None and not kicked.is_set():
            await websocket.send_json(
                {"type": "error", "error": f"Room {code} not found", "error_code": "not_found"}
            )
            await websocket.close(code=CLOSE_NOT_FOUND)
            return

        receiver = asyncio.create_task(_drain(websocket))
        waiter = asyncio.create_task(kicked.wait())
        await asyncio.wait({receiver, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except WebSocketDisconnect:
        logger.debug("Client left room %s during startup", code)
    finally:
        for task in (receiver, waiter):
            if task is not None and not task.done():
                task.cancel()
        await synchronizer.stop()

    if kicked.is_set():
        await websocket.close(code=CLOSE_KICKED)
