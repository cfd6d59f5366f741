"""Join flat tracker rows into the task → subtask → sub-subtask tree.

Every dashboard consumes the output of :func:`assemble_hierarchy`. The join
is recomputed from scratch on every snapshot; there is no incremental update.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from app.schemas.records import (
    MilestoneRecord,
    SubSubtaskNode,
    SubSubtaskRecord,
    SubtaskNode,
    SubtaskRecord,
    TaskNode,
    TaskRecord,
    UserRecord,
)


def assemble_hierarchy(
    tasks: Iterable[TaskRecord],
    subtasks: Iterable[SubtaskRecord],
    sub_subtasks: Iterable[SubSubtaskRecord],
    milestones: Iterable[MilestoneRecord],
    users: Iterable[UserRecord],
) -> list[TaskNode]:
    """Build one :class:`TaskNode` per task, preserving the task order.

    Assignees that do not resolve to a known user are treated as unassigned.
    Milestones attach to exactly one owner: subtask milestones never include
    the ones recorded on its sub-subtasks.
    """
    users_by_id = {user.id: user for user in users}

    subtasks_by_task: dict[str, list[SubtaskRecord]] = defaultdict(list)
    for subtask in subtasks:
        subtasks_by_task[subtask.task_id].append(subtask)

    children_by_subtask: dict[str, list[SubSubtaskRecord]] = defaultdict(list)
    for sub_subtask in sub_subtasks:
        children_by_subtask[sub_subtask.subtask_id].append(sub_subtask)

    by_subtask: dict[str, list[MilestoneRecord]] = defaultdict(list)
    by_sub_subtask: dict[str, list[MilestoneRecord]] = defaultdict(list)
    for milestone in milestones:
        if milestone.sub_subtask_id:
            by_sub_subtask[milestone.sub_subtask_id].append(milestone)
        elif milestone.subtask_id:
            by_subtask[milestone.subtask_id].append(milestone)

    def _user(user_id: str | None) -> UserRecord | None:
        if not user_id:
            return None
        return users_by_id.get(user_id)

    grouped: list[TaskNode] = []
    for task in tasks:
        subtask_nodes = []
        for subtask in subtasks_by_task.get(task.id, []):
            # sorted() is stable, equal order_index keeps input order
            children = sorted(
                children_by_subtask.get(subtask.id, []), key=lambda s: s.order_index
            )
            subtask_nodes.append(
                SubtaskNode(
                    subtask=subtask,
                    assigned_user=_user(subtask.assigned_to),
                    milestones=list(by_subtask.get(subtask.id, [])),
                    sub_subtasks=[
                        SubSubtaskNode(
                            sub_subtask=child,
                            assigned_user=_user(child.assigned_to),
                            milestones=list(by_sub_subtask.get(child.id, [])),
                        )
                        for child in children
                    ],
                )
            )
        grouped.append(TaskNode(task=task, subtasks=subtask_nodes))
    return grouped


def is_task_closed(node: TaskNode) -> bool:
    """A task is closed once any of its subtasks carries a CLOSED milestone."""
    return any(
        milestone.is_closed
        for subtask in node.subtasks
        for milestone in subtask.milestones
    )


def planned_subtask(node: TaskNode) -> SubtaskNode | None:
    for subtask in node.subtasks:
        if subtask.subtask.is_planned:
            return subtask
    return None


def work_subtasks(node: TaskNode) -> list[SubtaskNode]:
    """Subtasks that are neither the PLANNED lane nor the ACTUAL row."""
    return [subtask for subtask in node.subtasks if subtask.subtask.is_work]
