from datetime import date

from pydantic import BaseModel

from app.models.subtask import SubtaskRole
from app.models.task import TaskCategory


class CalendarFilters(BaseModel):
    engineer_id: str | None = None
    milestone_text: str | None = None
    show_planned: bool = True
    show_actual: bool = True
    task_level_only: bool = False
    hide_closed: bool = False
    include_actual_row: bool = False  # add the computed ACTUAL entries per task


class DayEntry(BaseModel):
    task_name: str
    subtask_name: str  # "parent → child" for sub-subtask entries
    subtask_role: SubtaskRole
    milestone_text: str
    engineer_name: str
    engineer_id: str  # "" when unassigned
    category: TaskCategory


class DayBucket(BaseModel):
    date: date
    entries: list[DayEntry]
    engineer_ids: list[str]


class CalendarView(BaseModel):
    days: dict[date, DayBucket]
    milestone_types: list[str]
    weeks: list[list[date]]
