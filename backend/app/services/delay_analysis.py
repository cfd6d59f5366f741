"""Planned-versus-actual delay analysis.

Planned dates come from the task's PLANNED lane. The actual date of a
milestone on a work subtask is the latest occurrence of that milestone text
on the subtask or any of its sub-subtasks. Only positive delays feed the
averages and the worst delay; early or on-time milestones are still listed.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from app.schemas.delay import (
    DelayBand,
    DelayStatus,
    MilestoneComparison,
    SubtaskDelay,
    TaskDelay,
    UserPerformance,
    UserTask,
)
from app.schemas.records import SubtaskNode, TaskNode, UserRecord
from app.services.actual_rollup import latest_in_subtask
from app.services.hierarchy import planned_subtask, work_subtasks


def days_delay(planned: date, actual: date) -> int:
    return (actual - planned).days


def planned_dates(node: TaskNode) -> dict[str, date]:
    """``{milestone_text: planned date}`` from the PLANNED lane."""
    planned = planned_subtask(node)
    if planned is None:
        return {}
    # A repeated text keeps its last row, like a dict built from the rows
    return {m.milestone_text: m.milestone_date for m in planned.milestones}


def _positive(values: Iterable[int | None]) -> list[int]:
    return [value for value in values if value is not None and value > 0]


def _average(values: list[int]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _status(milestones: list[MilestoneComparison], worst: int) -> DelayStatus:
    if not milestones:
        return "pending"
    return "delayed" if worst > 0 else "on-time"


def compare_milestones(subtask: SubtaskNode, planned: dict[str, date]) -> list[MilestoneComparison]:
    names: dict[str, None] = {}
    for milestone in subtask.all_milestones():
        names.setdefault(milestone.milestone_text, None)

    comparisons = []
    for name in names:
        planned_date = planned.get(name)
        actual_date = latest_in_subtask(subtask, name)
        if planned_date is None and actual_date is None:
            continue
        delay = None
        if planned_date is not None and actual_date is not None:
            delay = days_delay(planned_date, actual_date)
        comparisons.append(
            MilestoneComparison(
                milestone_name=name,
                planned_date=planned_date,
                actual_date=actual_date,
                days_delay=delay,
            )
        )
    return comparisons


def subtask_delay(subtask: SubtaskNode, planned: dict[str, date]) -> SubtaskDelay:
    milestones = compare_milestones(subtask, planned)
    delays = _positive(m.days_delay for m in milestones)
    worst = max(delays) if delays else 0
    return SubtaskDelay(
        subtask_id=subtask.subtask.id,
        subtask_name=subtask.subtask.name,
        assigned_to=subtask.assigned_user.full_name if subtask.assigned_user else None,
        milestones=milestones,
        average_delay=_average(delays),
        worst_delay=worst,
        status=_status(milestones, worst),
    )


def delay_band(worst_delay: int) -> DelayBand:
    if worst_delay <= 0:
        return "on-track"
    if worst_delay <= 5:
        return "minor"
    if worst_delay <= 10:
        return "moderate"
    return "severe"


def task_delay(node: TaskNode) -> TaskDelay:
    planned = planned_dates(node)
    subtasks = [subtask_delay(subtask, planned) for subtask in work_subtasks(node)]
    delays = _positive(
        m.days_delay for subtask in subtasks for m in subtask.milestones
    )
    worst = max(delays) if delays else 0
    return TaskDelay(
        task_id=node.task.id,
        task_name=node.task.name,
        category=node.task.category,
        subtasks=subtasks,
        average_delay=_average(delays),
        worst_delay=worst,
        total_delayed=len([s for s in subtasks if s.worst_delay > 0]),
        total_subtasks=len(subtasks),
        band=delay_band(worst),
    )


def task_delays(grouped: list[TaskNode]) -> list[TaskDelay]:
    """Per-task delay report, most delayed first."""
    return sorted(
        (task_delay(node) for node in grouped),
        key=lambda item: item.worst_delay,
        reverse=True,
    )


def user_performance(
    grouped: list[TaskNode],
    users: Iterable[UserRecord],
    user_id: str | None = None,
) -> list[UserPerformance]:
    """The delay engine keyed by assignee instead of by task.

    Users without any assigned work subtask are left out.
    """
    report = []
    for user in users:
        if user_id is not None and user.id != user_id:
            continue
        tasks: list[UserTask] = []
        for node in grouped:
            planned = planned_dates(node)
            for subtask in work_subtasks(node):
                if subtask.assigned_user is None or subtask.assigned_user.id != user.id:
                    continue
                delay = subtask_delay(subtask, planned)
                tasks.append(
                    UserTask(
                        task_id=node.task.id,
                        task_name=node.task.name,
                        subtask_name=delay.subtask_name,
                        milestones=delay.milestones,
                        average_delay=delay.average_delay,
                        worst_delay=delay.worst_delay,
                        status=delay.status,
                    )
                )
        if not tasks:
            continue
        delayed = [t.worst_delay for t in tasks if t.worst_delay > 0]
        report.append(
            UserPerformance(
                user=user,
                tasks=tasks,
                average_delay=_average(delayed),
                total_delayed=len(delayed),
            )
        )
    return report
