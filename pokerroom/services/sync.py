"""Room synchronization: debounced snapshot refetch with kick detection."""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from pokerroom.domain.snapshot import RoomSnapshot
from pokerroom.ports.change_notifier import ChangeNotifier, Unsubscribe
from pokerroom.ports.identity_store import IdentityStore
from pokerroom.usecases.get_room_state import GetRoomStateUseCase

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[RoomSnapshot], Union[None, Awaitable[None]]]
KickedCallback = Callable[[], Union[None, Awaitable[None]]]


async def _call(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class RoomSynchronizer:
    """Keeps one subscriber's view of a room current.

    Every change notification (re)schedules a trailing-edge timer; when it
    fires a single full snapshot is read through ``GetRoomStateUseCase``.
    A burst of notifications inside the debounce window costs one read.
    The synchronizer only reads; mutations go through use cases.
    """

    def __init__(
        self,
        room_code: str,
        get_room_state: GetRoomStateUseCase,
        notifier: ChangeNotifier,
        identity_store: IdentityStore,
        debounce_ms: int = 150,
        on_snapshot: Optional[SnapshotCallback] = None,
        on_kicked: Optional[KickedCallback] = None,
    ):
        self.room_code = room_code
        self.get_room_state = get_room_state
        self.notifier = notifier
        self.identity_store = identity_store
        self.debounce_seconds = debounce_ms / 1000
        self.on_snapshot = on_snapshot
        self.on_kicked = on_kicked

        self.snapshot: Optional[RoomSnapshot] = None
        self.kicked = False
        self.refresh_count = 0
        self.pending_vote: Optional[float] = None
        self.has_pending_vote = False

        self._unsubscribe: Optional[Unsubscribe] = None
        self._timer: Optional[asyncio.TimerHandle] = None
        self._refresh_task: Optional[asyncio.Task] = None
        self._refresh_lock = asyncio.Lock()
        self._dirty = False

    @property
    def participant_name(self) -> Optional[str]:
        return self.identity_store.get_identity(self.room_code)

    async def start(self) -> None:
        """Subscribe and load the initial snapshot."""
        self._unsubscribe = await self.notifier.subscribe(self.room_code, self.on_change)
        await self.refresh()

    async def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._unsubscribe is not None:
            await self._unsubscribe()
            self._unsubscribe = None
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass

    def on_change(self, entity: str) -> None:
        """Notifier callback: restart the debounce window."""
        logger.debug("Room %s changed (%s)", self.room_code, entity)
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire)

    def _fire(self) -> None:
        self._timer = None
        if self._refresh_task is not None and not self._refresh_task.done():
            # the running refetch may predate this change; run once more after it
            self._dirty = True
            return
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_logged())

    async def _refresh_logged(self) -> None:
        while True:
            self._dirty = False
            try:
                await self.refresh()
            except Exception:
                logger.exception("Refreshing room %s failed", self.room_code)
            if not self._dirty:
                return

    async def refresh(self) -> Optional[RoomSnapshot]:
        """Read the canonical snapshot; failures keep the current view.

        Refetches are serialized so an older read never replaces a newer one.
        """
        async with self._refresh_lock:
            return await self._refresh_locked()

    async def _refresh_locked(self) -> Optional[RoomSnapshot]:
        result = await self.get_room_state.execute(self.room_code)
        if not result.success and result.error_code != "not_found":
            logger.warning("Cannot refresh room %s: %s", self.room_code, result.error)
            return self.snapshot

        self.refresh_count += 1
        self.snapshot = result.room
        self.pending_vote = None
        self.has_pending_vote = False

        await self._detect_kick()
        if self.snapshot is not None and not self.kicked:
            await _call(self.on_snapshot, self.snapshot)
        return self.snapshot

    async def _detect_kick(self) -> None:
        name = self.participant_name
        if self.kicked or name is None:
            return
        if self.snapshot is not None and self.snapshot.has_participant(name):
            return
        self.kicked = True
        self.identity_store.clear_identity(self.room_code)
        logger.info("%s is no longer in room %s", name, self.room_code)
        await _call(self.on_kicked)

    def apply_optimistic_vote(self, value: Optional[float]) -> Optional[RoomSnapshot]:
        """Show our own vote locally before the canonical snapshot arrives."""
        name = self.participant_name
        if self.snapshot is None or name is None:
            return self.snapshot
        self.snapshot = self.snapshot.with_vote(name, value)
        self.pending_vote = value
        self.has_pending_vote = True
        return self.snapshot
