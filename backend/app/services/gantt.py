"""Gantt intervals and progress roll-up."""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Iterable

from app.schemas.gantt import BarPosition, GanttChart, GanttRow
from app.schemas.records import MilestoneRecord, TaskNode
from app.services.date_ranges import date_range

AXIS_PADDING_DAYS = 3


def _interval(dates: Iterable[date]) -> tuple[date | None, date | None, int]:
    dates = list(dates)
    if not dates:
        return None, None, 0
    start, end = min(dates), max(dates)
    return start, end, (end - start).days


def _closed(milestones: Iterable[MilestoneRecord]) -> bool:
    return any(m.is_closed for m in milestones)


def _average_progress(children: list[GanttRow]) -> int:
    if not children:
        return 0
    # Half-up rounding, 62.5 shows as 63
    return math.floor(sum(child.progress for child in children) / len(children) + 0.5)


def _task_row(node: TaskNode) -> GanttRow:
    task_dates: list[date] = []
    subtask_rows: list[GanttRow] = []

    for subtask in node.subtasks:
        if subtask.subtask.is_planned:
            continue
        assignee = subtask.assigned_user.full_name if subtask.assigned_user else None

        child_rows = []
        for child in subtask.sub_subtasks:
            child_dates = [m.milestone_date for m in child.milestones]
            task_dates.extend(child_dates)
            start, end, duration = _interval(child_dates)
            child_rows.append(
                GanttRow(
                    id=child.sub_subtask.id,
                    name=child.sub_subtask.name,
                    kind="subsubtask",
                    task_id=node.task.id,
                    assigned_to=assignee,
                    start_date=start,
                    end_date=end,
                    duration=duration,
                    progress=100 if _closed(child.milestones) else 0,
                )
            )

        own_dates = [m.milestone_date for m in subtask.milestones]
        task_dates.extend(own_dates)
        start, end, duration = _interval(own_dates)
        if _closed(subtask.milestones):
            progress = 100
        else:
            progress = _average_progress(child_rows)
        subtask_rows.append(
            GanttRow(
                id=subtask.subtask.id,
                name=subtask.subtask.name,
                kind="subtask",
                task_id=node.task.id,
                assigned_to=assignee,
                start_date=start,
                end_date=end,
                duration=duration,
                progress=progress,
                children=child_rows,
            )
        )

    start, end, duration = _interval(task_dates)
    return GanttRow(
        id=node.task.id,
        name=node.task.name,
        kind="task",
        task_id=node.task.id,
        category=node.task.category,
        start_date=start,
        end_date=end,
        duration=duration,
        progress=_average_progress(subtask_rows),
        children=subtask_rows,
    )


def _collect_dates(rows: list[GanttRow]) -> list[date]:
    dates = []
    for row in rows:
        if row.start_date:
            dates.append(row.start_date)
        if row.end_date:
            dates.append(row.end_date)
        dates.extend(_collect_dates(row.children))
    return dates


def gantt_axis(rows: list[GanttRow]) -> list[date]:
    dates = _collect_dates(rows)
    if not dates:
        return []
    padding = timedelta(days=AXIS_PADDING_DAYS)
    return date_range(min(dates) - padding, max(dates) + padding)


def build_gantt(grouped: list[TaskNode]) -> GanttChart:
    rows = [_task_row(node) for node in grouped]
    return GanttChart(rows=rows, axis=gantt_axis(rows))


def bar_position(row: GanttRow, axis: list[date]) -> BarPosition | None:
    """Horizontal placement of a row's bar, or None when it has no dates."""
    if row.start_date is None or row.end_date is None or not axis:
        return None
    try:
        start = axis.index(row.start_date)
        end = axis.index(row.end_date)
    except ValueError:
        return None
    return BarPosition(
        left=start / len(axis) * 100,
        width=(end - start + 1) / len(axis) * 100,
    )
