"""Calendar view: milestones bucketed by day."""

from __future__ import annotations

from collections import defaultdict
from datetime import date

from app.models.subtask import ACTUAL, SubtaskRole
from app.schemas.calendar import CalendarFilters, CalendarView, DayBucket, DayEntry
from app.schemas.records import SubtaskNode, TaskNode
from app.services.actual_rollup import actual_milestones
from app.services.date_ranges import calendar_weeks
from app.services.hierarchy import is_task_closed

UNASSIGNED = "Unassigned"
SUBTASK_SEPARATOR = " → "

_TASK_LEVEL_ROLES = (SubtaskRole.PLANNED, SubtaskRole.ACTUAL)


def _subtask_entries(node: TaskNode, subtask: SubtaskNode) -> list[tuple[date, DayEntry]]:
    # Sub-subtask entries are attributed to the parent subtask's assignee
    engineer_name = subtask.assigned_user.full_name if subtask.assigned_user else UNASSIGNED
    engineer_id = subtask.assigned_user.id if subtask.assigned_user else ""

    def _entry(subtask_name: str, milestone_text: str) -> DayEntry:
        return DayEntry(
            task_name=node.task.name,
            subtask_name=subtask_name,
            subtask_role=subtask.subtask.role,
            milestone_text=milestone_text,
            engineer_name=engineer_name,
            engineer_id=engineer_id,
            category=node.task.category,
        )

    entries = [
        (milestone.milestone_date, _entry(subtask.subtask.name, milestone.milestone_text))
        for milestone in subtask.milestones
    ]
    for child in subtask.sub_subtasks:
        name = f"{subtask.subtask.name}{SUBTASK_SEPARATOR}{child.sub_subtask.name}"
        entries.extend(
            (milestone.milestone_date, _entry(name, milestone.milestone_text))
            for milestone in child.milestones
        )
    return entries


def _actual_entries(node: TaskNode) -> list[tuple[date, DayEntry]]:
    return [
        (
            day,
            DayEntry(
                task_name=node.task.name,
                subtask_name=ACTUAL,
                subtask_role=SubtaskRole.ACTUAL,
                milestone_text=text,
                engineer_name=UNASSIGNED,
                engineer_id="",
                category=node.task.category,
            ),
        )
        for day, text in actual_milestones(node).items()
    ]


def bucket_by_day(
    grouped: list[TaskNode],
    hide_closed: bool = False,
    include_actual_row: bool = False,
) -> dict[date, list[DayEntry]]:
    """All entries keyed by milestone date, before entry-level filters."""
    days: dict[date, list[DayEntry]] = defaultdict(list)
    for node in grouped:
        if hide_closed and is_task_closed(node):
            continue
        for subtask in node.subtasks:
            for day, entry in _subtask_entries(node, subtask):
                days[day].append(entry)
        if include_actual_row:
            for day, entry in _actual_entries(node):
                days[day].append(entry)
    return dict(days)


def _keep(entry: DayEntry, filters: CalendarFilters) -> bool:
    if filters.engineer_id and entry.engineer_id != filters.engineer_id:
        return False
    if filters.milestone_text and entry.milestone_text != filters.milestone_text:
        return False
    if not filters.show_planned and entry.subtask_role == SubtaskRole.PLANNED:
        return False
    if not filters.show_actual and entry.subtask_role == SubtaskRole.ACTUAL:
        return False
    if filters.task_level_only and entry.subtask_role not in _TASK_LEVEL_ROLES:
        return False
    return True


def _engineer_ids(entries: list[DayEntry]) -> list[str]:
    seen: dict[str, None] = {}
    for entry in entries:
        if entry.engineer_id:
            seen.setdefault(entry.engineer_id, None)
    return list(seen)


def build_calendar(grouped: list[TaskNode], filters: CalendarFilters | None = None) -> CalendarView:
    filters = filters or CalendarFilters()
    all_days = bucket_by_day(grouped, filters.hide_closed, filters.include_actual_row)

    milestone_types = sorted(
        {entry.milestone_text for entries in all_days.values() for entry in entries}
    )

    days: dict[date, DayBucket] = {}
    for day in sorted(all_days):
        entries = [entry for entry in all_days[day] if _keep(entry, filters)]
        if not entries:
            continue
        days[day] = DayBucket(date=day, entries=entries, engineer_ids=_engineer_ids(entries))

    return CalendarView(
        days=days,
        milestone_types=milestone_types,
        weeks=calendar_weeks(days.keys()),
    )
