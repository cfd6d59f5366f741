"""Read-only dashboard views computed from the realm snapshot."""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.models.task import TaskCategory
from app.schemas.calendar import CalendarFilters, CalendarView
from app.schemas.config import MilestoneOption
from app.schemas.delay import TaskDelay, UserPerformance
from app.schemas.gantt import GanttChart
from app.schemas.kanban import KanbanBoard
from app.schemas.task_list import GridSort, TaskListItem, TimelineGrid
from app.schemas.workload import ResourceReport, UserBreakdown
from app.services import (
    calendar_view,
    delay_analysis,
    gantt,
    kanban,
    task_list,
    workload,
)
from app.services.actual_rollup import ActualRow, actual_row
from app.services.config_store import get_tracker_config
from app.services.date_ranges import RangePreset, ViewMode, date_range, preset_range, resolve_range
from app.services.snapshot_loader import (
    Snapshot,
    SnapshotStore,
    SnapshotUnavailable,
    TrackerContext,
)

logger = logging.getLogger(__name__)

router = APIRouter()


async def _snapshot(store: SnapshotStore, context: TrackerContext) -> Snapshot:
    try:
        return await store.get(context)
    except SnapshotUnavailable as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )


def _visible_dates(
    view_mode: ViewMode,
    start: date | None,
    end: date | None,
    preset: RangePreset | None,
) -> list[date]:
    today = date.today()
    if preset is not None:
        return date_range(*preset_range(preset, today))
    return resolve_range(view_mode, start, end, today)


@router.get("/status")
def snapshot_status(
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> dict[str, Any]:
    return store.status(context)


@router.get("/calendar", response_model=CalendarView)
async def calendar(
    filters: CalendarFilters = Depends(),
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> CalendarView:
    snapshot = await _snapshot(store, context)
    return calendar_view.build_calendar(snapshot.hierarchy(), filters)


@router.get("/gantt", response_model=GanttChart)
async def gantt_chart(
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> GanttChart:
    snapshot = await _snapshot(store, context)
    return gantt.build_gantt(snapshot.hierarchy())


@router.get("/delays", response_model=list[TaskDelay])
async def delays(
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> list[TaskDelay]:
    snapshot = await _snapshot(store, context)
    return delay_analysis.task_delays(snapshot.hierarchy())


@router.get("/performance", response_model=list[UserPerformance])
async def performance(
    user_id: str | None = None,
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> list[UserPerformance]:
    snapshot = await _snapshot(store, context)
    return delay_analysis.user_performance(snapshot.hierarchy(), snapshot.users, user_id)


def _milestone_options(db: Session = Depends(get_db)) -> list[MilestoneOption]:
    return get_tracker_config(db).milestone_options


@router.get("/kanban", response_model=KanbanBoard)
async def kanban_board(
    engineer_name: str | None = None,
    hide_closed: bool = False,
    options: list[MilestoneOption] = Depends(_milestone_options),
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> KanbanBoard:
    snapshot = await _snapshot(store, context)
    return kanban.build_kanban(snapshot.hierarchy(), options, engineer_name, hide_closed)


@router.get("/workload", response_model=ResourceReport)
async def resource_workload(
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> ResourceReport:
    snapshot = await _snapshot(store, context)
    return workload.resource_metrics(snapshot.hierarchy(), snapshot.users)


@router.get("/breakdown", response_model=list[UserBreakdown])
async def breakdown(
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> list[UserBreakdown]:
    snapshot = await _snapshot(store, context)
    return workload.engineer_breakdown(snapshot.hierarchy())


@router.get("/task-list", response_model=list[TaskListItem])
async def tracker_task_list(
    category: TaskCategory | None = None,
    assignee: str | None = None,
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> list[TaskListItem]:
    snapshot = await _snapshot(store, context)
    return task_list.build_task_list(snapshot.hierarchy(), category, assignee)


@router.get("/grid", response_model=TimelineGrid)
async def timeline_grid(
    view_mode: ViewMode = "month",
    start: date | None = None,
    end: date | None = None,
    preset: RangePreset | None = None,
    engineer_id: str | None = None,
    sort_by: GridSort = "category",
    hide_closed: bool = False,
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> TimelineGrid:
    dates = _visible_dates(view_mode, start, end, preset)
    snapshot = await _snapshot(store, context)
    return task_list.build_timeline_grid(
        snapshot.hierarchy(), dates, engineer_id, sort_by, hide_closed
    )


@router.get("/actual/{task_id}", response_model=ActualRow)
async def actual(
    task_id: str,
    context: TrackerContext = Depends(deps.get_tracker_context),
    store: SnapshotStore = Depends(deps.get_snapshot_store),
) -> ActualRow:
    snapshot = await _snapshot(store, context)
    node = next((n for n in snapshot.hierarchy() if n.task.id == task_id), None)
    if node is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found",
        )
    return actual_row(node)


@router.get("/dates", response_model=list[date])
def dates(
    view_mode: ViewMode = "month",
    start: date | None = None,
    end: date | None = None,
    preset: RangePreset | None = None,
    _: TrackerContext = Depends(deps.get_tracker_context),
) -> list[date]:
    return _visible_dates(view_mode, start, end, preset)
