"""Kanban board: milestones placed into configured columns."""

from __future__ import annotations

import re
from typing import Iterable

from app.schemas.config import MilestoneOption
from app.schemas.kanban import KanbanBoard, KanbanCard, KanbanColumn
from app.schemas.records import TaskNode
from app.services.hierarchy import is_task_closed

COLOR_PALETTE = [
    "bg-blue-600",
    "bg-teal-600",
    "bg-purple-600",
    "bg-pink-600",
    "bg-orange-600",
    "bg-green-600",
    "bg-emerald-600",
    "bg-cyan-600",
    "bg-indigo-600",
    "bg-rose-600",
]

_WHITESPACE = re.compile(r"\s+")


def column_key(milestone_text: str) -> str:
    """``"Dev Complete"`` → ``"dev-complete"``."""
    return _WHITESPACE.sub("-", milestone_text.lower())


def _cards(grouped: list[TaskNode], hide_closed: bool) -> Iterable[tuple[str, KanbanCard]]:
    for node in grouped:
        if hide_closed and is_task_closed(node):
            continue
        for subtask in node.subtasks:
            assignee = subtask.assigned_user.full_name if subtask.assigned_user else None
            for milestone in subtask.milestones:
                yield column_key(milestone.milestone_text), KanbanCard(
                    milestone_id=milestone.id,
                    milestone_date=milestone.milestone_date,
                    milestone_text=milestone.milestone_text,
                    task_name=node.task.name,
                    subtask_name=subtask.subtask.name,
                    assigned_user_name=assignee,
                )
            for child in subtask.sub_subtasks:
                for milestone in child.milestones:
                    yield column_key(milestone.milestone_text), KanbanCard(
                        milestone_id=milestone.id,
                        milestone_date=milestone.milestone_date,
                        milestone_text=milestone.milestone_text,
                        task_name=node.task.name,
                        subtask_name=subtask.subtask.name,
                        sub_subtask_name=child.sub_subtask.name,
                        assigned_user_name=assignee,
                    )


def build_kanban(
    grouped: list[TaskNode],
    options: list[MilestoneOption],
    engineer_name: str | None = None,
    hide_closed: bool = False,
) -> KanbanBoard:
    """Cards whose milestone text matches no configured column are dropped."""
    columns = [
        KanbanColumn(
            id=option.value,
            label=option.label,
            color=COLOR_PALETTE[index % len(COLOR_PALETTE)],
            cards=[],
        )
        for index, option in enumerate(options)
    ]
    by_id = {column.id: column for column in columns}

    for key, card in _cards(grouped, hide_closed):
        column = by_id.get(key)
        if column is None:
            continue
        if engineer_name is not None and card.assigned_user_name != engineer_name:
            continue
        column.cards.append(card)
    return KanbanBoard(columns=columns)
