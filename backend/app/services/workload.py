"""Resource load and per-engineer milestone breakdown."""

from __future__ import annotations

import math
from typing import Iterable

from app.models.task import TaskCategory
from app.schemas.records import TaskNode, UserRecord
from app.schemas.workload import (
    CategoryTotal,
    ResourceMetrics,
    ResourceReport,
    TaskBreakdown,
    UserBreakdown,
)


def workload_percentage(user_total: int, overall_total: int) -> int:
    if overall_total == 0:
        return 0
    return math.floor(user_total / overall_total * 100 + 0.5)


def resource_metrics(grouped: list[TaskNode], users: Iterable[UserRecord]) -> ResourceReport:
    """Assigned work items per user.

    Subtasks count toward the category tally, sub-subtasks only toward the
    item count and the set of touched tasks.
    """
    metrics: dict[str, ResourceMetrics] = {}
    touched: dict[str, dict[str, None]] = {}
    for user in users:
        metrics[user.id] = ResourceMetrics(
            user=user,
            tasks_by_category={category: 0 for category in TaskCategory},
        )
        touched[user.id] = {}

    for node in grouped:
        task = node.task
        for subtask in node.subtasks:
            if subtask.assigned_user and subtask.assigned_user.id in metrics:
                entry = metrics[subtask.assigned_user.id]
                entry.total_subtasks += 1
                entry.tasks_by_category[task.category] += 1
                touched[entry.user.id].setdefault(task.id, None)
            for child in subtask.sub_subtasks:
                if child.assigned_user and child.assigned_user.id in metrics:
                    entry = metrics[child.assigned_user.id]
                    entry.total_sub_subtasks += 1
                    touched[entry.user.id].setdefault(task.id, None)

    total = 0
    for user_id, entry in metrics.items():
        entry.task_ids = list(touched[user_id])
        entry.total_items = entry.total_subtasks + entry.total_sub_subtasks
        total += entry.total_items
    for entry in metrics.values():
        entry.percentage = workload_percentage(entry.total_items, total)

    category_totals = []
    for category in TaskCategory:
        category_total = sum(entry.tasks_by_category[category] for entry in metrics.values())
        category_totals.append(
            CategoryTotal(
                category=category,
                total=category_total,
                percentage=workload_percentage(category_total, total),
            )
        )

    members = sorted(metrics.values(), key=lambda m: m.total_items, reverse=True)
    return ResourceReport(
        members=members, total_work_items=total, category_totals=category_totals
    )


def engineer_breakdown(grouped: list[TaskNode]) -> list[UserBreakdown]:
    """Share of each assignee's milestones spent on each task.

    A subtask's count includes the milestones of all its sub-subtasks.
    """
    breakdowns: dict[str, UserBreakdown] = {}
    for node in grouped:
        for subtask in node.subtasks:
            user = subtask.assigned_user
            if user is None:
                continue
            data = breakdowns.get(user.id)
            if data is None:
                data = UserBreakdown(
                    user_id=user.id, user_name=user.full_name, total_milestones=0, tasks=[]
                )
                breakdowns[user.id] = data

            item = next((t for t in data.tasks if t.task_id == node.task.id), None)
            if item is None:
                item = TaskBreakdown(
                    task_id=node.task.id,
                    task_name=node.task.name,
                    category=node.task.category,
                    milestone_count=0,
                    percentage=0.0,
                )
                data.tasks.append(item)

            count = len(subtask.all_milestones())
            item.milestone_count += count
            data.total_milestones += count

    for data in breakdowns.values():
        for item in data.tasks:
            if data.total_milestones > 0:
                item.percentage = item.milestone_count / data.total_milestones * 100
            else:
                item.percentage = 0.0
        data.tasks.sort(key=lambda t: t.percentage, reverse=True)

    return sorted(breakdowns.values(), key=lambda d: d.user_name.lower())
