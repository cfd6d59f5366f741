"""Flat task list and the date-column timeline grid."""

from __future__ import annotations

from collections import defaultdict
from datetime import date

from app.models.subtask import ACTUAL, SubtaskRole
from app.models.task import DEFAULT_PRIORITY, TaskCategory
from app.schemas.records import MilestoneRecord, SubtaskNode, TaskNode
from app.schemas.task_list import (
    GridRow,
    GridSort,
    GridTask,
    ItemStatus,
    TaskListItem,
    TimelineGrid,
)
from app.services.actual_rollup import actual_milestones
from app.services.hierarchy import is_task_closed, planned_subtask


def _status(milestones: list[MilestoneRecord]) -> ItemStatus:
    if any(m.is_closed for m in milestones):
        return "CLOSED"
    if milestones:
        return "IN PROGRESS"
    return "NOT STARTED"


def _task_status(node: TaskNode) -> ItemStatus:
    if is_task_closed(node):
        return "CLOSED"
    if any(subtask.milestones for subtask in node.subtasks):
        return "IN PROGRESS"
    return "NOT STARTED"


def build_task_list(
    grouped: list[TaskNode],
    category: TaskCategory | None = None,
    assignee: str | None = None,
) -> list[TaskListItem]:
    """Tasks followed by their work subtasks and sub-subtasks.

    ``assignee`` matches the subtask assignee's name; a task is kept when
    at least one of its subtasks matches, and only matching subtasks are
    listed.
    """
    items: list[TaskListItem] = []
    for node in grouped:
        if category is not None and node.task.category != category:
            continue
        subtasks = [s for s in node.subtasks if not s.subtask.is_planned]
        if assignee is not None:
            subtasks = [
                s for s in subtasks
                if s.assigned_user is not None and s.assigned_user.full_name == assignee
            ]
            if not subtasks:
                continue

        items.append(
            TaskListItem(
                id=node.task.id,
                name=node.task.name,
                kind="task",
                category=node.task.category,
                priority=node.task.priority,
                status=_task_status(node),
            )
        )
        for subtask in subtasks:
            assigned_to = subtask.assigned_user.full_name if subtask.assigned_user else None
            items.append(
                TaskListItem(
                    id=subtask.subtask.id,
                    name=subtask.subtask.name,
                    kind="subtask",
                    assigned_to=assigned_to,
                    milestones=[m.milestone_text for m in subtask.milestones],
                    status=_status(subtask.milestones),
                    parent_id=node.task.id,
                )
            )
            for child in subtask.sub_subtasks:
                items.append(
                    TaskListItem(
                        id=child.sub_subtask.id,
                        name=child.sub_subtask.name,
                        kind="subsubtask",
                        assigned_to=assigned_to,
                        milestones=[m.milestone_text for m in child.milestones],
                        status=_status(child.milestones),
                        parent_id=subtask.subtask.id,
                    )
                )
    return items


def _cells(milestones: list[MilestoneRecord], visible: set[date]) -> dict[date, list[str]]:
    cells: dict[date, list[str]] = defaultdict(list)
    for milestone in milestones:
        if milestone.milestone_date in visible:
            cells[milestone.milestone_date].append(milestone.milestone_text)
    return dict(cells)


def _subtask_rows(subtask: SubtaskNode, visible: set[date]) -> list[GridRow]:
    assigned_to = subtask.assigned_user.full_name if subtask.assigned_user else None
    rows = [
        GridRow(
            row_id=subtask.subtask.id,
            name=subtask.subtask.name,
            role=subtask.subtask.role,
            assigned_to=assigned_to,
            cells=_cells(subtask.milestones, visible),
        )
    ]
    for child in subtask.sub_subtasks:
        rows.append(
            GridRow(
                row_id=child.sub_subtask.id,
                name=child.sub_subtask.name,
                role=subtask.subtask.role,
                is_sub_subtask=True,
                assigned_to=child.assigned_user.full_name if child.assigned_user else None,
                cells=_cells(child.milestones, visible),
            )
        )
    return rows


def _grid_task(node: TaskNode, visible: set[date]) -> GridTask:
    rows: list[GridRow] = []
    planned = planned_subtask(node)
    if planned is not None:
        rows.extend(_subtask_rows(planned, visible))
    if node.subtasks:
        rows.append(
            GridRow(
                row_id=f"{node.task.id}:actual",
                name=ACTUAL,
                role=SubtaskRole.ACTUAL,
                cells={
                    day: [text]
                    for day, text in actual_milestones(node).items()
                    if day in visible
                },
            )
        )
    for subtask in node.subtasks:
        if subtask.subtask.is_planned:
            continue
        rows.extend(_subtask_rows(subtask, visible))
    return GridTask(
        task_id=node.task.id,
        task_name=node.task.name,
        category=node.task.category,
        priority=node.task.priority or DEFAULT_PRIORITY,
        closed=is_task_closed(node),
        rows=rows,
    )


def build_timeline_grid(
    grouped: list[TaskNode],
    dates: list[date],
    engineer_id: str | None = None,
    sort_by: GridSort = "category",
    hide_closed: bool = False,
) -> TimelineGrid:
    """The main tracker table: one column per date, one row per lane.

    Each task shows its PLANNED lane first, then the computed ACTUAL row,
    then the remaining subtasks. ``engineer_id`` keeps tasks with at least
    one subtask assigned to that user.
    """
    selected = []
    for node in grouped:
        if hide_closed and is_task_closed(node):
            continue
        if engineer_id is not None and not any(
            s.assigned_user is not None and s.assigned_user.id == engineer_id
            for s in node.subtasks
        ):
            continue
        selected.append(node)

    if sort_by == "priority":
        selected.sort(key=lambda n: n.task.priority or DEFAULT_PRIORITY, reverse=True)
    else:
        selected.sort(key=lambda n: n.task.category.value)

    visible = set(dates)
    return TimelineGrid(dates=list(dates), tasks=[_grid_task(node, visible) for node in selected])
