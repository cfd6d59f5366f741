from datetime import date
from typing import Literal

from pydantic import BaseModel

from app.models.task import TaskCategory


class GanttRow(BaseModel):
    id: str
    name: str
    kind: Literal["task", "subtask", "subsubtask"]
    task_id: str
    category: TaskCategory | None = None
    assigned_to: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    duration: int = 0
    progress: int = 0
    children: list["GanttRow"] = []


class GanttChart(BaseModel):
    rows: list[GanttRow]
    axis: list[date]


class BarPosition(BaseModel):
    left: float  # percent of the axis width
    width: float


GanttRow.model_rebuild()
