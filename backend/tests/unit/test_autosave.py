import asyncio
import logging

import pytest

from backend.src.models.mindmap import MindMapWrite
from backend.src.models.note import CornellNoteWrite, Keyword
from backend.src.services.autosave import (
    AutosaveCoordinator,
    AutosaveEvent,
    AutosaveRegistry,
    AutosaveState,
    transition,
)
from backend.src.services.database import NotFoundError
from backend.src.services.mindmaps import MindMapService
from backend.src.services.notes import NoteService

USER_ID = "user-123"


class RecordingPersist:
    """Async persist callable that records what it saved."""

    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.saved = []

    async def __call__(self, snapshot) -> None:
        await asyncio.sleep(snapshot.get("wait", 0))
        if self.fail:
            raise RuntimeError("disk full")
        self.saved.append(snapshot)


@pytest.mark.parametrize(
    "state, event, expected",
    [
        (AutosaveState.IDLE, AutosaveEvent.CHANGED, AutosaveState.PENDING_TIMER),
        (AutosaveState.PENDING_TIMER, AutosaveEvent.CHANGED, AutosaveState.PENDING_TIMER),
        (AutosaveState.PENDING_TIMER, AutosaveEvent.TIMER_FIRED, AutosaveState.SAVING),
        (AutosaveState.SAVING, AutosaveEvent.PERSIST_OK, AutosaveState.IDLE),
        (AutosaveState.SAVING, AutosaveEvent.PERSIST_FAILED, AutosaveState.ERROR),
        (AutosaveState.SAVING, AutosaveEvent.CHANGED, AutosaveState.PENDING_TIMER),
        (AutosaveState.ERROR, AutosaveEvent.CHANGED, AutosaveState.PENDING_TIMER),
        (AutosaveState.IDLE, AutosaveEvent.PERSIST_OK, AutosaveState.IDLE),
        (AutosaveState.SAVING, AutosaveEvent.CLOSE, AutosaveState.CLOSED),
        (AutosaveState.CLOSED, AutosaveEvent.CHANGED, AutosaveState.CLOSED),
    ],
)
def test_transition_table(state, event, expected) -> None:
    assert transition(state, event) is expected


def test_negative_delay_is_rejected() -> None:
    with pytest.raises(ValueError):
        AutosaveCoordinator(RecordingPersist(), delay_ms=-1)


@pytest.mark.asyncio
async def test_first_snapshot_is_baseline_and_never_saved() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=10)

    assert coordinator.update({"title": "Draft"}) is False
    assert coordinator.update({"title": "Draft"}) is False
    await asyncio.sleep(0.05)

    assert persist.saved == []
    assert coordinator.state is AutosaveState.IDLE
    assert coordinator.baseline == {"title": "Draft"}
    assert coordinator.has_pending is False


@pytest.mark.asyncio
async def test_rapid_changes_collapse_into_one_save_of_the_latest() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=30)

    coordinator.update({"title": "A"})
    for title in ("AB", "ABC", "ABCD"):
        assert coordinator.update({"title": title}) is True
    assert coordinator.state is AutosaveState.PENDING_TIMER

    await asyncio.sleep(0.15)
    await coordinator.drain()

    assert persist.saved == [{"title": "ABCD"}]
    assert coordinator.state is AutosaveState.IDLE
    assert coordinator.baseline == {"title": "ABCD"}
    assert coordinator.has_pending is False
    assert coordinator.last_saved_at is not None


@pytest.mark.asyncio
async def test_each_change_restarts_the_quiet_period() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=200)

    coordinator.update({"v": 0})
    coordinator.update({"v": 1})
    await asyncio.sleep(0.12)
    coordinator.update({"v": 2})
    await asyncio.sleep(0.12)

    # The first timer would have fired by now had it not been rearmed
    assert persist.saved == []

    await asyncio.sleep(0.25)
    await coordinator.drain()
    assert persist.saved == [{"v": 2}]


@pytest.mark.asyncio
async def test_reverting_to_the_saved_state_is_not_a_change() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=10)

    coordinator.update({"v": 0})
    coordinator.update({"v": 1})
    await asyncio.sleep(0.05)
    await coordinator.drain()

    assert coordinator.update({"v": 1}) is False
    assert persist.saved == [{"v": 1}]


@pytest.mark.asyncio
async def test_failed_save_keeps_snapshot_pending(caplog) -> None:
    persist = RecordingPersist(fail=True)
    coordinator = AutosaveCoordinator(persist, delay_ms=10, name="autosave[test]")

    coordinator.update({"v": 0})
    with caplog.at_level(logging.ERROR):
        coordinator.update({"v": 1})
        await asyncio.sleep(0.05)
        await coordinator.drain()

    assert coordinator.state is AutosaveState.ERROR
    assert coordinator.has_pending is True
    assert coordinator.baseline == {"v": 0}
    assert coordinator.last_saved_at is None
    assert "autosave[test]: persist failed" in caplog.text

    # The next change schedules a new attempt
    persist.fail = False
    assert coordinator.update({"v": 2}) is True
    await asyncio.sleep(0.05)
    await coordinator.drain()
    assert persist.saved == [{"v": 2}]
    assert coordinator.state is AutosaveState.IDLE


@pytest.mark.asyncio
async def test_older_save_finishing_last_does_not_roll_back() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=10)

    coordinator.update({"v": 0})
    coordinator.update({"v": 1, "wait": 0.2})
    await asyncio.sleep(0.05)
    assert coordinator.is_saving is True

    coordinator.update({"v": 2})
    await asyncio.sleep(0.05)
    await coordinator.drain()

    assert [snapshot["v"] for snapshot in persist.saved] == [2, 1]
    assert coordinator.baseline == {"v": 2}
    assert coordinator.has_pending is False
    assert coordinator.is_saving is False
    assert coordinator.state is AutosaveState.IDLE


@pytest.mark.asyncio
async def test_close_flushes_unsaved_snapshot_immediately() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=10_000)

    coordinator.update({"v": 0})
    coordinator.update({"v": 1})
    flush = coordinator.close()

    assert flush is not None
    await flush
    assert persist.saved == [{"v": 1}]
    assert coordinator.state is AutosaveState.CLOSED
    assert coordinator.update({"v": 2}) is False


@pytest.mark.asyncio
async def test_close_without_changes_does_nothing() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=10)

    coordinator.update({"v": 0})

    assert coordinator.close() is None
    assert coordinator.closed is True
    assert coordinator.close() is None
    assert persist.saved == []


@pytest.mark.asyncio
async def test_disabled_coordinator_ignores_updates() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=10, enabled=False)

    coordinator.update({"v": 0})
    assert coordinator.update({"v": 1}) is False
    await asyncio.sleep(0.05)

    assert persist.saved == []
    assert coordinator.state is AutosaveState.IDLE


@pytest.mark.asyncio
async def test_synchronous_persist_is_supported() -> None:
    saved = []
    coordinator = AutosaveCoordinator(saved.append, delay_ms=10)

    coordinator.update("first")
    coordinator.update("second")
    await asyncio.sleep(0.05)
    await coordinator.drain()

    assert saved == ["second"]


@pytest.mark.asyncio
async def test_registry_persists_note_drafts(db) -> None:
    notes = NoteService(db)
    registry = AutosaveRegistry(notes, MindMapService(db), delay_ms=10)

    baseline = CornellNoteWrite(title="Anatomy")
    registry.submit(USER_ID, "cornell", "note-1", baseline)
    with pytest.raises(NotFoundError):
        notes.get_note(USER_ID, "note-1")

    status = registry.submit(
        USER_ID, "cornell", "note-1", baseline.model_copy(update={"summary": "Bones"})
    )
    assert status.state == "pending_timer"
    assert status.has_pending is True

    await asyncio.sleep(0.1)
    await registry.close_all()

    saved = notes.get_note(USER_ID, "note-1")
    assert saved.title == "Anatomy"
    assert saved.summary == "Bones"
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_registry_close_flushes_and_forgets_session(db) -> None:
    notes = NoteService(db)
    registry = AutosaveRegistry(notes, MindMapService(db), delay_ms=10_000)

    registry.submit(USER_ID, "cornell", "note-2", CornellNoteWrite(title="Draft"))
    registry.submit(USER_ID, "cornell", "note-2", CornellNoteWrite(title="Draft v2"))

    assert registry.close(USER_ID, "cornell", "note-2") is True
    assert registry.status(USER_ID, "cornell", "note-2") is None
    assert registry.close(USER_ID, "cornell", "note-2") is None

    await registry.close_all()
    assert notes.get_note(USER_ID, "note-2").title == "Draft v2"


@pytest.mark.asyncio
async def test_registry_sessions_are_scoped_per_user(db) -> None:
    registry = AutosaveRegistry(NoteService(db), MindMapService(db), delay_ms=10_000)

    registry.submit(USER_ID, "mindmap", "map-1", MindMapWrite(central_concept="Cells"))

    assert registry.status(USER_ID, "mindmap", "map-1") is not None
    assert registry.status("someone-else", "mindmap", "map-1") is None
    assert registry.close(USER_ID, "mindmap", "map-1") is False


@pytest.mark.asyncio
async def test_close_after_failed_save_flushes_pending_snapshot() -> None:
    persist = RecordingPersist(fail=True)
    coordinator = AutosaveCoordinator(persist, delay_ms=10)

    coordinator.update({"v": 0})
    coordinator.update({"v": 1})
    await asyncio.sleep(0.05)
    await coordinator.drain()
    assert coordinator.state is AutosaveState.ERROR

    persist.fail = False
    flush = coordinator.close()

    assert flush is not None
    await flush
    assert persist.saved == [{"v": 1}]
    assert coordinator.state is AutosaveState.CLOSED


@pytest.mark.asyncio
async def test_close_during_save_reuses_the_write_in_flight() -> None:
    persist = RecordingPersist()
    coordinator = AutosaveCoordinator(persist, delay_ms=10)

    coordinator.update({"v": 0})
    coordinator.update({"v": 1, "wait": 0.1})
    await asyncio.sleep(0.04)
    assert coordinator.is_saving is True

    flush = coordinator.close()

    assert flush is not None
    await flush
    await coordinator.drain()
    assert persist.saved == [{"v": 1, "wait": 0.1}]


async def settle(registry: AutosaveRegistry, kind: str, entity_id: str, timeout: float = 2.0):
    """Wait until the session has nothing pending or saving."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        status = registry.status(USER_ID, kind, entity_id)
        if not status.has_pending and not status.is_saving:
            return status
        await asyncio.sleep(0.01)
    raise AssertionError("autosave session did not settle")


@pytest.mark.asyncio
async def test_resending_a_draft_without_item_ids_is_not_a_change(db) -> None:
    notes = NoteService(db)
    registry = AutosaveRegistry(notes, MindMapService(db), delay_ms=10)
    draft = {"title": "Anatomia", "keywords": [{"text": "Osso"}]}

    registry.submit(USER_ID, "cornell", "note-3", CornellNoteWrite.model_validate(draft))
    status = registry.submit(USER_ID, "cornell", "note-3", CornellNoteWrite.model_validate(draft))

    assert status.has_pending is False
    assert status.state == "idle"

    registry.submit(
        USER_ID, "cornell", "note-3", CornellNoteWrite.model_validate({**draft, "summary": "Fêmur"})
    )
    await settle(registry, "cornell", "note-3")
    keyword_id = notes.get_note(USER_ID, "note-3").keywords[0].id

    registry.submit(
        USER_ID, "cornell", "note-3", CornellNoteWrite.model_validate({**draft, "summary": "Tíbia"})
    )
    await settle(registry, "cornell", "note-3")
    await registry.close_all()

    saved = notes.get_note(USER_ID, "note-3")
    assert saved.summary == "Tíbia"
    assert [keyword.id for keyword in saved.keywords] == [keyword_id]


@pytest.mark.asyncio
async def test_explicit_item_ids_are_kept(db) -> None:
    mind_maps = MindMapService(db)
    registry = AutosaveRegistry(NoteService(db), mind_maps, delay_ms=10_000)

    registry.submit(USER_ID, "mindmap", "map-2", MindMapWrite(central_concept="Cells"))
    registry.submit(
        USER_ID,
        "mindmap",
        "map-2",
        MindMapWrite.model_validate(
            {"central_concept": "Cells", "nodes": [{"id": "n1", "text": "Nucleus"}, {"text": "Wall"}]}
        ),
    )
    assert registry.close(USER_ID, "mindmap", "map-2") is True
    await registry.close_all()

    nodes = mind_maps.get_mind_map(USER_ID, "map-2").nodes
    assert nodes[0].id == "n1"
    assert nodes[1].id and nodes[1].id != "n1"


@pytest.mark.asyncio
async def test_idle_sessions_without_pending_changes_are_evicted(db) -> None:
    now = [1000.0]
    registry = AutosaveRegistry(
        NoteService(db), MindMapService(db), delay_ms=10_000, idle_seconds=60, clock=lambda: now[0]
    )

    registry.submit(USER_ID, "cornell", "idle-note", CornellNoteWrite(title="Untouched"))
    registry.submit(USER_ID, "cornell", "busy-note", CornellNoteWrite(title="Draft"))
    registry.submit(USER_ID, "cornell", "busy-note", CornellNoteWrite(title="Draft v2"))
    now[0] += 30
    assert registry.status(USER_ID, "cornell", "idle-note") is not None

    now[0] += 61
    assert registry.status(USER_ID, "cornell", "other-note") is None

    assert len(registry) == 1
    assert registry.status(USER_ID, "cornell", "idle-note") is None
    assert registry.status(USER_ID, "cornell", "busy-note").has_pending is True

    await registry.close_all()
    assert NoteService(db).get_note(USER_ID, "busy-note").title == "Draft v2"
