from datetime import date
from typing import Literal

from pydantic import BaseModel

from app.models.subtask import SubtaskRole
from app.models.task import TaskCategory

ItemStatus = Literal["CLOSED", "IN PROGRESS", "NOT STARTED"]
GridSort = Literal["category", "priority"]


class TaskListItem(BaseModel):
    id: str
    name: str
    kind: Literal["task", "subtask", "subsubtask"]
    category: TaskCategory | None = None
    priority: int | None = None
    assigned_to: str | None = None
    milestones: list[str] = []
    status: ItemStatus
    parent_id: str | None = None


class GridRow(BaseModel):
    row_id: str  # subtask/sub-subtask id, "<task_id>:actual" for the computed row
    name: str
    role: SubtaskRole
    is_sub_subtask: bool = False
    assigned_to: str | None = None
    cells: dict[date, list[str]]


class GridTask(BaseModel):
    task_id: str
    task_name: str
    category: TaskCategory
    priority: int
    closed: bool
    rows: list[GridRow]


class TimelineGrid(BaseModel):
    dates: list[date]
    tasks: list[GridTask]
