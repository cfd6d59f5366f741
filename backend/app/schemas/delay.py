from datetime import date
from typing import Literal

from pydantic import BaseModel

from app.models.task import TaskCategory
from app.schemas.records import UserRecord

DelayStatus = Literal["on-time", "delayed", "pending"]
DelayBand = Literal["on-track", "minor", "moderate", "severe"]


class MilestoneComparison(BaseModel):
    milestone_name: str
    planned_date: date | None = None
    actual_date: date | None = None
    days_delay: int | None = None  # negative when early


class SubtaskDelay(BaseModel):
    subtask_id: str
    subtask_name: str
    assigned_to: str | None = None
    milestones: list[MilestoneComparison]
    average_delay: float
    worst_delay: int
    status: DelayStatus


class TaskDelay(BaseModel):
    task_id: str
    task_name: str
    category: TaskCategory
    subtasks: list[SubtaskDelay]
    average_delay: float
    worst_delay: int
    total_delayed: int
    total_subtasks: int
    band: DelayBand


class UserTask(BaseModel):
    task_id: str
    task_name: str
    subtask_name: str
    milestones: list[MilestoneComparison]
    average_delay: float
    worst_delay: int
    status: DelayStatus


class UserPerformance(BaseModel):
    user: UserRecord
    tasks: list[UserTask]
    average_delay: float
    total_delayed: int
