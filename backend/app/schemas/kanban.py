from datetime import date

from pydantic import BaseModel


class KanbanCard(BaseModel):
    milestone_id: str
    milestone_date: date
    milestone_text: str
    task_name: str
    subtask_name: str
    sub_subtask_name: str | None = None
    assigned_user_name: str | None = None


class KanbanColumn(BaseModel):
    id: str
    label: str
    color: str
    cards: list[KanbanCard]


class KanbanBoard(BaseModel):
    columns: list[KanbanColumn]
