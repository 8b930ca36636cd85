"""
Debounced autosave.

``AutosaveCoordinator`` watches snapshots of an editor's state and persists the
latest one after a quiet period. Its lifecycle is an explicit state machine:

    IDLE -> PENDING_TIMER -> SAVING -> IDLE | ERROR
    any  -> CLOSED

``AutosaveRegistry`` keeps one coordinator per (user, draft kind, entity id) and
wires it to the note and mind map upserts.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Set, Tuple, TypeVar, Union

from pydantic import BaseModel

from ..models.autosave import AutosaveStatus, DraftKind
from ..models.mindmap import MindMapWrite
from ..models.note import CornellNoteWrite
from .config import get_config
from .mindmaps import MindMapService, get_mind_map_service
from .notes import NoteService, get_note_service

logger = logging.getLogger(__name__)

S = TypeVar("S")

DEFAULT_DELAY_MS = 2000


class AutosaveState(str, Enum):
    IDLE = "idle"
    PENDING_TIMER = "pending_timer"
    SAVING = "saving"
    ERROR = "error"
    CLOSED = "closed"


class AutosaveEvent(str, Enum):
    CHANGED = "changed"
    TIMER_FIRED = "timer_fired"
    PERSIST_OK = "persist_ok"
    PERSIST_FAILED = "persist_failed"
    CLOSE = "close"


_TRANSITIONS: Dict[Tuple[AutosaveState, AutosaveEvent], AutosaveState] = {
    (AutosaveState.IDLE, AutosaveEvent.CHANGED): AutosaveState.PENDING_TIMER,
    (AutosaveState.PENDING_TIMER, AutosaveEvent.CHANGED): AutosaveState.PENDING_TIMER,
    (AutosaveState.SAVING, AutosaveEvent.CHANGED): AutosaveState.PENDING_TIMER,
    (AutosaveState.ERROR, AutosaveEvent.CHANGED): AutosaveState.PENDING_TIMER,
    (AutosaveState.PENDING_TIMER, AutosaveEvent.TIMER_FIRED): AutosaveState.SAVING,
    (AutosaveState.SAVING, AutosaveEvent.PERSIST_OK): AutosaveState.IDLE,
    (AutosaveState.SAVING, AutosaveEvent.PERSIST_FAILED): AutosaveState.ERROR,
    # A slow persist finishing after a newer change was armed
    (AutosaveState.PENDING_TIMER, AutosaveEvent.PERSIST_OK): AutosaveState.PENDING_TIMER,
    (AutosaveState.PENDING_TIMER, AutosaveEvent.PERSIST_FAILED): AutosaveState.PENDING_TIMER,
}


def transition(state: AutosaveState, event: AutosaveEvent) -> AutosaveState:
    """Next state for ``event``. Unknown combinations leave the state unchanged."""
    if state is AutosaveState.CLOSED:
        return state
    if event is AutosaveEvent.CLOSE:
        return AutosaveState.CLOSED
    return _TRANSITIONS.get((state, event), state)


_UNSET: Any = object()


class AutosaveCoordinator(Generic[S]):
    """
    Debounce persistence of a structurally comparable snapshot.

    The first snapshot is the baseline and is never saved. Every later snapshot
    that differs from the last one seen becomes pending and (re)arms a single
    timer of ``delay_ms``. When the timer fires ``persist`` is invoked; on
    success the pending snapshot becomes the baseline. Failures are logged, not
    retried, and leave the snapshot pending for the next change or ``close``.

    Must be used from a running event loop.
    """

    def __init__(
        self,
        persist: Callable[[S], Union[Awaitable[None], None]],
        *,
        delay_ms: int = DEFAULT_DELAY_MS,
        enabled: bool = True,
        name: str = "autosave",
    ):
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._persist = persist
        self.delay_ms = delay_ms
        self.enabled = enabled
        self.name = name

        self.state = AutosaveState.IDLE
        self.last_saved_at: Optional[datetime] = None
        self._baseline: Any = _UNSET
        self._pending: Any = _UNSET
        self._timer: Optional[asyncio.TimerHandle] = None
        self._in_flight = 0
        self._tasks: Set[asyncio.Task] = set()
        self._last_spawn: Optional[Tuple[Any, asyncio.Task]] = None
        self._issued = 0
        self._saved_seq = 0

    # Introspection ------------------------------------------------------------

    @property
    def is_saving(self) -> bool:
        return self._in_flight > 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not _UNSET

    @property
    def closed(self) -> bool:
        return self.state is AutosaveState.CLOSED

    @property
    def baseline(self) -> Optional[S]:
        return None if self._baseline is _UNSET else self._baseline

    def _apply(self, event: AutosaveEvent) -> None:
        previous = self.state
        self.state = transition(self.state, event)
        if previous is not self.state:
            logger.debug(f"{self.name}: {previous.value} -> {self.state.value} on {event.value}")

    # Input --------------------------------------------------------------------

    def update(self, snapshot: S) -> bool:
        """Supply the current snapshot. Returns True when a save was (re)scheduled."""
        if self.closed or not self.enabled:
            return False
        if self._baseline is _UNSET:
            self._baseline = snapshot
            return False

        last_seen = self._pending if self.has_pending else self._baseline
        if snapshot == last_seen:
            return False

        self._pending = snapshot
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay_ms / 1000, self._on_timer)
        self._apply(AutosaveEvent.CHANGED)
        return True

    # Timer and persistence ------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self.closed or not self.has_pending:
            return
        self._apply(AutosaveEvent.TIMER_FIRED)
        self._spawn(self._pending)

    def _spawn(self, snapshot: S) -> asyncio.Task:
        self._issued += 1
        self._in_flight += 1
        task = asyncio.get_running_loop().create_task(self._run_persist(snapshot, self._issued))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._last_spawn = (snapshot, task)
        return task

    async def _run_persist(self, snapshot: S, seq: int) -> None:
        failed = False
        try:
            result = self._persist(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(f"{self.name}: persist failed")
            failed = True
        finally:
            self._in_flight -= 1

        if failed:
            if not self.is_saving:
                self._apply(AutosaveEvent.PERSIST_FAILED)
            return

        # An older save finishing after a newer one must not roll the baseline back
        if not self.closed and seq > self._saved_seq:
            self._saved_seq = seq
            self.last_saved_at = datetime.now(timezone.utc)
            self._baseline = snapshot
            # Only clear if no newer snapshot arrived while saving
            if self.has_pending and self._pending == snapshot and self._timer is None:
                self._pending = _UNSET
        if not self.is_saving:
            self._apply(AutosaveEvent.PERSIST_OK)

    # Teardown -----------------------------------------------------------------

    def close(self) -> Optional[asyncio.Task]:
        """
        Cancel the timer and flush a pending snapshot that differs from the baseline.

        The final persist is fire-and-forget; the returned task may be awaited by
        callers that want to (tests, shutdown) but nothing here waits for it.
        When the pending snapshot is already being written, that save is
        returned instead of starting a second one.
        """
        if self.closed:
            return None
        self._cancel_timer()
        flush: Optional[asyncio.Task] = None
        if self.has_pending and self._pending != self._baseline:
            flush = self._in_flight_save(self._pending) or self._spawn(self._pending)
        self._apply(AutosaveEvent.CLOSE)
        return flush

    def _in_flight_save(self, snapshot: S) -> Optional[asyncio.Task]:
        if self._last_spawn is None:
            return None
        spawned, task = self._last_spawn
        if task.done() or spawned != snapshot:
            return None
        return task

    async def drain(self) -> None:
        """Wait for every persist currently in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


@dataclass
class _Session:
    coordinator: AutosaveCoordinator
    kind: DraftKind
    # list position -> id handed out for an item the editor sent without one
    item_ids: Dict[int, str] = field(default_factory=dict)
    last_used: float = 0.0


DRAFT_MODELS = {
    "cornell": CornellNoteWrite,
    "mindmap": MindMapWrite,
}

# Draft list whose items get an id during validation when the editor omits it
DRAFT_ITEM_FIELDS = {
    "cornell": "keywords",
    "mindmap": "nodes",
}

SESSION_IDLE_SECONDS = 30 * 60


class AutosaveRegistry:
    """
    One autosave coordinator per (user, kind, entity id).

    Drafts are validated payloads (``CornellNoteWrite`` / ``MindMapWrite``).
    Coordinators see them as JSON snapshots so that resending the same draft
    compares equal; keywords and nodes sent without an id keep the id first
    given to their list position. The persist step revalidates the snapshot
    and runs the blocking upsert in a worker thread.

    Sessions untouched for ``idle_seconds`` with nothing pending or saving are
    dropped on the next request.
    """

    def __init__(
        self,
        note_service: NoteService | None = None,
        mind_map_service: MindMapService | None = None,
        *,
        delay_ms: Optional[int] = None,
        idle_seconds: float = SESSION_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._notes = note_service or get_note_service()
        self._mind_maps = mind_map_service or get_mind_map_service()
        self.delay_ms = delay_ms if delay_ms is not None else get_config().autosave_delay_ms
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._sessions: Dict[Tuple[str, str, str], _Session] = {}
        self._flushes: Set[asyncio.Task] = set()

    def _persist_fn(self, user_id: str, kind: DraftKind, entity_id: str):
        model = DRAFT_MODELS[kind]

        async def persist(snapshot: Dict[str, Any]) -> None:
            draft = model.model_validate(snapshot)
            if kind == "cornell":
                await asyncio.to_thread(self._notes.upsert_note, user_id, entity_id, draft)
            else:
                await asyncio.to_thread(
                    self._mind_maps.upsert_mind_map, user_id, entity_id, draft
                )
            logger.info(f"Autosaved {kind} {entity_id} for user {user_id}")

        return persist

    def _session(self, user_id: str, kind: DraftKind, entity_id: str, create: bool):
        self._evict_idle()
        key = (user_id, kind, entity_id)
        session = self._sessions.get(key)
        if session is None and create:
            coordinator = AutosaveCoordinator(
                self._persist_fn(user_id, kind, entity_id),
                delay_ms=self.delay_ms,
                name=f"autosave[{kind}:{entity_id}]",
            )
            session = _Session(coordinator=coordinator, kind=kind)
            self._sessions[key] = session
        if session is not None:
            session.last_used = self._clock()
        return session

    def _evict_idle(self) -> None:
        cutoff = self._clock() - self.idle_seconds
        for key, session in list(self._sessions.items()):
            coordinator = session.coordinator
            if session.last_used > cutoff or coordinator.has_pending or coordinator.is_saving:
                continue
            del self._sessions[key]
            coordinator.close()
            logger.debug(f"Evicted idle autosave session {key[1]}:{key[2]} of user {key[0]}")

    @staticmethod
    def _snapshot(session: _Session, draft: BaseModel) -> Dict[str, Any]:
        field_name = DRAFT_ITEM_FIELDS[session.kind]
        items = []
        for position, item in enumerate(getattr(draft, field_name)):
            if "id" not in item.model_fields_set:
                item = item.model_copy(
                    update={"id": session.item_ids.setdefault(position, item.id)}
                )
            items.append(item)
        return draft.model_copy(update={field_name: items}).model_dump(mode="json")

    def submit(
        self, user_id: str, kind: DraftKind, entity_id: str, draft: BaseModel
    ) -> AutosaveStatus:
        """Feed a draft into the entity's session (created on first use)."""
        session = self._session(user_id, kind, entity_id, create=True)
        session.coordinator.update(self._snapshot(session, draft))
        return self._status(kind, entity_id, session)

    def status(self, user_id: str, kind: DraftKind, entity_id: str) -> Optional[AutosaveStatus]:
        session = self._session(user_id, kind, entity_id, create=False)
        if session is None:
            return None
        return self._status(kind, entity_id, session)

    @staticmethod
    def _status(kind: DraftKind, entity_id: str, session: _Session) -> AutosaveStatus:
        coordinator = session.coordinator
        return AutosaveStatus(
            kind=kind,
            entity_id=entity_id,
            state=coordinator.state.value,
            is_saving=coordinator.is_saving,
            has_pending=coordinator.has_pending,
            last_saved_at=coordinator.last_saved_at,
        )

    def close(self, user_id: str, kind: DraftKind, entity_id: str) -> Optional[bool]:
        """Close a session. Returns whether a final flush was scheduled, None if unknown."""
        session = self._sessions.pop((user_id, kind, entity_id), None)
        if session is None:
            return None
        flush = session.coordinator.close()
        if flush is None:
            return False
        self._flushes.add(flush)
        flush.add_done_callback(self._flushes.discard)
        return True

    async def close_all(self) -> None:
        """Close every session and wait for the final flushes (application shutdown)."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        for session in sessions:
            session.coordinator.close()
        for session in sessions:
            await session.coordinator.drain()
        if self._flushes:
            await asyncio.gather(*list(self._flushes), return_exceptions=True)
        if sessions:
            logger.info(f"Closed {len(sessions)} autosave session(s)")

    def __len__(self) -> int:
        return len(self._sessions)


_autosave_registry: Optional[AutosaveRegistry] = None


def get_autosave_registry() -> AutosaveRegistry:
    """Get or create the autosave registry singleton."""
    global _autosave_registry
    if _autosave_registry is None:
        _autosave_registry = AutosaveRegistry()
    return _autosave_registry


__all__ = [
    "AutosaveCoordinator",
    "AutosaveEvent",
    "AutosaveRegistry",
    "AutosaveState",
    "DRAFT_MODELS",
    "get_autosave_registry",
    "transition",
]
