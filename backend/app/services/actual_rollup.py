"""The computed ACTUAL row of a task.

The ACTUAL row is never stored. For every milestone text recorded on a work
subtask or its sub-subtasks it keeps the latest date, i.e. the most advanced
occurrence of that milestone across the whole task.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable

from pydantic import BaseModel

from app.schemas.records import MilestoneRecord, SubtaskNode, TaskNode
from app.services.hierarchy import work_subtasks


class ActualRow(BaseModel):
    task_id: str
    latest_by_text: dict[str, date]
    by_date: dict[date, str]


def latest_date(milestones: Iterable[MilestoneRecord], milestone_text: str) -> date | None:
    latest: date | None = None
    for milestone in milestones:
        if milestone.milestone_text != milestone_text:
            continue
        if latest is None or milestone.milestone_date > latest:
            latest = milestone.milestone_date
    return latest


def latest_in_subtask(subtask: SubtaskNode, milestone_text: str) -> date | None:
    """Latest date of a text across a subtask and its sub-subtasks."""
    return latest_date(subtask.all_milestones(), milestone_text)


def latest_dates_by_text(node: TaskNode) -> dict[str, date]:
    latest: dict[str, date] = {}
    for subtask in work_subtasks(node):
        for milestone in subtask.all_milestones():
            current = latest.get(milestone.milestone_text)
            if current is None or milestone.milestone_date > current:
                latest[milestone.milestone_text] = milestone.milestone_date
    return latest


def actual_milestones(node: TaskNode) -> dict[date, str]:
    """``{date: milestone_text}`` for the ACTUAL row.

    Two texts whose latest dates coincide share one cell; the text seen
    last wins.
    """
    return {value: text for text, value in latest_dates_by_text(node).items()}


def actual_row(node: TaskNode) -> ActualRow:
    latest = latest_dates_by_text(node)
    return ActualRow(
        task_id=node.task.id,
        latest_by_text=latest,
        by_date={value: text for text, value in latest.items()},
    )
