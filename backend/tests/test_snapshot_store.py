import asyncio
import threading
import time

import pytest

from app.models.task import Task
from app.models.user import User
from app.schemas.records import UserRecord
from app.services import lifecycle
from app.services.snapshot_loader import (
    Snapshot,
    SnapshotStore,
    SnapshotUnavailable,
    TrackerContext,
    install_change_listener,
    load_snapshot,
)

CONTEXT = TrackerContext(user_id="u1", realm_id="realm-1")


def _marked(marker: str) -> Snapshot:
    return Snapshot(users=(UserRecord(id=marker),))


class CountingLoader:
    def __init__(self, delay: float = 0.0):
        self.calls = 0
        self.delay = delay
        self._lock = threading.Lock()

    def __call__(self, context: TrackerContext) -> Snapshot:
        with self._lock:
            self.calls += 1
            call = self.calls
        if self.delay:
            time.sleep(self.delay)
        return _marked(f"call-{call}")


def test_concurrent_callers_share_one_fetch():
    loader = CountingLoader(delay=0.05)

    async def scenario():
        store = SnapshotStore(loader)
        first, second = await asyncio.gather(store.get(CONTEXT), store.get(CONTEXT))
        await store.close()
        return first, second

    first, second = asyncio.run(scenario())
    assert loader.calls == 1
    assert first is second


def test_cache_is_reused_until_a_tracked_table_changes():
    loader = CountingLoader()

    async def scenario():
        store = SnapshotStore(loader, debounce_seconds=10)
        await store.get(CONTEXT)
        await store.get(CONTEXT)
        assert loader.calls == 1

        store.notify_change(["action_history", "app_config"])
        await store.get(CONTEXT)
        assert loader.calls == 1

        store.notify_change(["milestones"])
        snapshot = await store.get(CONTEXT)
        assert loader.calls == 2
        assert store.status(CONTEXT)["stale"] is False
        await store.close()
        return snapshot

    snapshot = asyncio.run(scenario())
    assert snapshot.users[0].id == "call-2"


def test_superseded_fetch_is_cancelled_and_never_cached():
    started = threading.Event()
    release = threading.Event()
    calls = []

    def loader(context):
        calls.append(context)
        if len(calls) == 1:
            started.set()
            release.wait(2)
            return _marked("stale")
        return _marked("fresh")

    async def scenario():
        store = SnapshotStore(loader, debounce_seconds=10)
        store.bind(asyncio.get_running_loop())
        pending = asyncio.ensure_future(store.get(CONTEXT))
        await asyncio.to_thread(started.wait, 2)

        store.notify_change(["tasks"])
        snapshot = await pending
        release.set()

        cached = await store.get(CONTEXT)
        await store.close()
        return snapshot, cached

    snapshot, cached = asyncio.run(scenario())
    assert snapshot.users[0].id == "fresh"
    assert cached is snapshot
    assert len(calls) == 2


def test_burst_of_changes_triggers_one_refresh():
    loader = CountingLoader()

    async def scenario():
        store = SnapshotStore(loader, debounce_seconds=0.05)
        store.bind(asyncio.get_running_loop())
        await store.get(CONTEXT)
        for _ in range(5):
            store.notify_change(["milestones"])
        await asyncio.sleep(0.3)
        status = store.status(CONTEXT)
        await store.close()
        return status

    status = asyncio.run(scenario())
    assert loader.calls == 2
    assert status["loaded"] is True
    assert status["stale"] is False
    assert status["generation"] == 5


def test_failed_fetch_surfaces_opaque_error():
    def loader(context):
        raise RuntimeError("connection refused")

    async def scenario():
        store = SnapshotStore(loader)
        with pytest.raises(SnapshotUnavailable):
            await store.get(CONTEXT)
        status = store.status(CONTEXT)
        await store.close()
        return status

    status = asyncio.run(scenario())
    assert status["loaded"] is False
    assert status["error"] == "connection refused"


def test_load_snapshot_is_scoped_to_the_realm(db, admin_context):
    db.add(User(email="other@example.com", full_name="Other", realm_id="realm-2"))
    lifecycle.create_task(db, admin_context, "Mine")
    lifecycle.create_task(
        db, TrackerContext(user_id="x", realm_id="realm-2"), "Theirs"
    )
    db.add(Task(name="Shared"))
    db.commit()

    snapshot = load_snapshot(db, admin_context)
    assert sorted(t.name for t in snapshot.tasks) == ["Mine", "Shared"]
    assert [u.full_name for u in snapshot.users] == ["Admin"]
    assert len(snapshot.subtasks) == 3
    assert [node.task.name for node in snapshot.hierarchy()] == ["Mine", "Shared"]


def test_change_listener_publishes_on_commit_only(session_factory, admin_context):
    store = SnapshotStore(CountingLoader())
    install_change_listener(session_factory, store)

    with session_factory() as session:
        lifecycle.create_task(session, admin_context, "Rolled back")
        session.rollback()
    assert store.generation == 0

    with session_factory() as session:
        lifecycle.create_task(session, admin_context, "Kept")
        session.commit()
    assert store.generation == 1
