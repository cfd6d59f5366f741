"""Snapshot loading and change-driven refresh.

A snapshot is a full, immutable copy of the tracker rows visible to one
realm. Views never query the database themselves; they read the snapshot
held by :class:`SnapshotStore`, which re-fetches after every committed
change to a tracker table.

Refreshes are coalesced: any burst of change notifications arms a single
debounced refresh. A fetch started before the most recent change is
superseded; it is cancelled and its result is never cached.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable

from sqlalchemy import event, or_
from sqlalchemy.orm import Session, sessionmaker

from app.models.milestone import Milestone
from app.models.subtask import SubSubtask, Subtask
from app.models.task import Task
from app.models.user import User, UserRole
from app.schemas.records import (
    MilestoneRecord,
    SubSubtaskRecord,
    SubtaskRecord,
    TaskNode,
    TaskRecord,
    UserRecord,
)
from app.services.hierarchy import assemble_hierarchy

logger = logging.getLogger(__name__)

TRACKED_TABLES = frozenset({"users", "tasks", "subtasks", "sub_subtasks", "milestones"})

_PENDING_TABLES_KEY = "tracker_changed_tables"


class SnapshotUnavailable(RuntimeError):
    """The latest fetch failed; carries an opaque message only."""


@dataclass(frozen=True)
class TrackerContext:
    """Who is looking: replaces any ambient current-user/realm state."""

    user_id: str
    realm_id: str | None
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def cache_key(self) -> str:
        return self.realm_id or ""


@dataclass(frozen=True)
class Snapshot:
    tasks: tuple[TaskRecord, ...] = ()
    subtasks: tuple[SubtaskRecord, ...] = ()
    sub_subtasks: tuple[SubSubtaskRecord, ...] = ()
    milestones: tuple[MilestoneRecord, ...] = ()
    users: tuple[UserRecord, ...] = ()
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def hierarchy(self) -> list[TaskNode]:
        return assemble_hierarchy(
            self.tasks, self.subtasks, self.sub_subtasks, self.milestones, self.users
        )


def load_snapshot(db: Session, context: TrackerContext) -> Snapshot:
    """Fetch every tracker row visible from ``context``'s realm."""
    user_query = db.query(User)
    if context.realm_id is None:
        user_query = user_query.filter(User.realm_id.is_(None))
    else:
        user_query = user_query.filter(User.realm_id == context.realm_id)
    users = user_query.order_by(User.full_name).all()

    task_query = db.query(Task)
    if context.realm_id is not None:
        task_query = task_query.filter(or_(Task.realm_id == context.realm_id, Task.realm_id.is_(None)))
    tasks = task_query.order_by(Task.category, Task.name).all()
    task_ids = [task.id for task in tasks]

    subtasks = (
        db.query(Subtask)
        .filter(Subtask.task_id.in_(task_ids))
        .order_by(Subtask.created_at, Subtask.name)
        .all()
        if task_ids
        else []
    )
    subtask_ids = [subtask.id for subtask in subtasks]

    sub_subtasks = (
        db.query(SubSubtask)
        .filter(SubSubtask.subtask_id.in_(subtask_ids))
        .order_by(SubSubtask.order_index)
        .all()
        if subtask_ids
        else []
    )
    sub_subtask_ids = [child.id for child in sub_subtasks]

    milestones = []
    if subtask_ids:
        milestones = (
            db.query(Milestone)
            .filter(
                or_(
                    Milestone.subtask_id.in_(subtask_ids),
                    Milestone.sub_subtask_id.in_(sub_subtask_ids),
                )
            )
            .order_by(Milestone.milestone_date, Milestone.created_at)
            .all()
        )

    return Snapshot(
        tasks=tuple(TaskRecord.model_validate(row) for row in tasks),
        subtasks=tuple(SubtaskRecord.model_validate(row) for row in subtasks),
        sub_subtasks=tuple(SubSubtaskRecord.model_validate(row) for row in sub_subtasks),
        milestones=tuple(MilestoneRecord.model_validate(row) for row in milestones),
        users=tuple(UserRecord.model_validate(row) for row in users),
    )


def session_loader(session_factory: sessionmaker) -> Callable[[TrackerContext], Snapshot]:
    """A blocking loader that opens its own session for each fetch."""

    def _load(context: TrackerContext) -> Snapshot:
        with session_factory() as db:
            return load_snapshot(db, context)

    return _load


@dataclass
class _Entry:
    context: TrackerContext
    snapshot: Snapshot | None = None
    generation: int = -1
    error: str | None = None


class SnapshotStore:
    def __init__(
        self,
        loader: Callable[[TrackerContext], Snapshot],
        debounce_seconds: float = 0.25,
    ) -> None:
        self._loader = loader
        self._debounce = debounce_seconds
        self._lock = threading.Lock()
        self._generation = 0
        self._entries: dict[str, _Entry] = {}
        self._inflight: dict[str, tuple[int, asyncio.Future]] = {}
        self._pending: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    async def get(self, context: TrackerContext) -> Snapshot:
        """The current snapshot for the context's realm, fetching if stale."""
        if self._loop is None:
            self.bind(asyncio.get_running_loop())
        key = context.cache_key
        while True:
            generation = self.generation
            entry = self._entries.get(key)
            if entry is not None and entry.snapshot is not None and entry.generation == generation:
                return entry.snapshot

            task = self._fetch_task(context, generation)
            try:
                snapshot = await asyncio.shield(task)
            except asyncio.CancelledError:
                if task.cancelled():
                    # Superseded by a newer change, wait for the fresh fetch
                    continue
                raise
            except Exception as exc:
                self._record_error(context, generation, exc)
                raise SnapshotUnavailable("Tracker data could not be loaded") from exc

            if generation != self.generation:
                # Changed while fetching, usable for this caller only
                return snapshot
            self._entries[key] = _Entry(context=context, snapshot=snapshot, generation=generation)
            return snapshot

    def _fetch_task(self, context: TrackerContext, generation: int) -> asyncio.Future:
        key = context.cache_key
        inflight = self._inflight.get(key)
        if inflight is not None and inflight[0] == generation and not inflight[1].done():
            return inflight[1]
        if inflight is not None and not inflight[1].done():
            logger.debug(f"Cancelling superseded snapshot fetch for realm '{key}'")
            inflight[1].cancel()
        task = asyncio.ensure_future(asyncio.to_thread(self._loader, context))
        self._inflight[key] = (generation, task)
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = _Entry(context=context)
        return task

    def _record_error(self, context: TrackerContext, generation: int, exc: Exception) -> None:
        logger.exception(
            f"Snapshot fetch failed for realm '{context.cache_key}'",
            exc_info=exc,
            extra={"realm_id": context.realm_id, "user_id": context.user_id},
        )
        entry = self._entries.setdefault(context.cache_key, _Entry(context=context))
        entry.error = str(exc) or exc.__class__.__name__
        entry.generation = generation
        entry.snapshot = None

    def status(self, context: TrackerContext) -> dict[str, object]:
        entry = self._entries.get(context.cache_key)
        generation = self.generation
        return {
            "loaded": bool(entry and entry.snapshot is not None),
            "stale": not (entry and entry.generation == generation),
            "generation": generation,
            "loaded_at": entry.snapshot.loaded_at if entry and entry.snapshot else None,
            "error": entry.error if entry else None,
        }

    def notify_change(self, tables: Iterable[str]) -> None:
        """Mark every snapshot stale after a change. Safe from any thread."""
        changed = TRACKED_TABLES.intersection(tables)
        if not changed:
            return
        with self._lock:
            self._generation += 1
        logger.debug(f"Tracker tables changed: {sorted(changed)}", extra={"tables": sorted(changed)})
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self._schedule_refresh)

    def _schedule_refresh(self) -> None:
        generation = self.generation
        for key, (started_at, task) in list(self._inflight.items()):
            if started_at < generation and not task.done():
                logger.debug(f"Cancelling superseded snapshot fetch for realm '{key}'")
                task.cancel()
        if self._pending is not None:
            # A refresh is already armed; this notification rides along
            return
        self._pending = self._loop.call_later(self._debounce, self._run_refresh)

    def _run_refresh(self) -> None:
        self._pending = None
        for entry in list(self._entries.values()):
            asyncio.ensure_future(self._refresh(entry.context))

    async def _refresh(self, context: TrackerContext) -> None:
        try:
            await self.get(context)
        except SnapshotUnavailable:
            # Already logged and recorded as the realm's error state
            pass

    async def close(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        for _, task in self._inflight.values():
            task.cancel()
        self._inflight.clear()


def install_change_listener(session_factory: sessionmaker, store: SnapshotStore) -> None:
    """Publish committed changes to tracker tables to ``store``."""

    def _collect(session: Session, flush_context) -> None:
        touched = session.info.setdefault(_PENDING_TABLES_KEY, set())
        for instance in (*session.new, *session.dirty, *session.deleted):
            table = getattr(instance, "__tablename__", None)
            if table:
                touched.add(table)

    def _publish(session: Session) -> None:
        touched = session.info.pop(_PENDING_TABLES_KEY, None)
        if touched:
            store.notify_change(touched)

    def _discard(session: Session) -> None:
        session.info.pop(_PENDING_TABLES_KEY, None)

    event.listen(session_factory, "after_flush", _collect)
    event.listen(session_factory, "after_commit", _publish)
    event.listen(session_factory, "after_rollback", _discard)
