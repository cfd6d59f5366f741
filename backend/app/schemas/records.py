"""Read-side records and the assembled task hierarchy.

Records are immutable copies of database rows. Every derived view is computed
from these, never from live ORM objects, so a snapshot can be shared between
requests without touching a session.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, model_validator

from app.models.milestone import CLOSED
from app.models.subtask import SubtaskRole
from app.models.task import DEFAULT_PRIORITY, TaskCategory
from app.models.user import UserRole


class Record(BaseModel):
    class Config:
        from_attributes = True
        frozen = True


class UserRecord(Record):
    id: str
    email: str = ""
    full_name: str = ""
    role: UserRole = UserRole.USER
    realm_id: str | None = None


class TaskRecord(Record):
    id: str
    name: str
    category: TaskCategory = TaskCategory.DEV
    priority: int = DEFAULT_PRIORITY
    realm_id: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubtaskRecord(Record):
    id: str
    task_id: str
    name: str
    role: SubtaskRole = SubtaskRole.ORDINARY
    assigned_to: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _derive_role(cls, data: Any) -> Any:
        # Rows always carry a stored role; plain payloads get it from the name
        if isinstance(data, dict) and data.get("role") is None:
            data = {**data, "role": SubtaskRole.from_name(data.get("name", ""))}
        return data

    @property
    def is_planned(self) -> bool:
        return self.role == SubtaskRole.PLANNED

    @property
    def is_work(self) -> bool:
        """True for ordinary lanes, the ones that carry actual progress."""
        return self.role == SubtaskRole.ORDINARY


class SubSubtaskRecord(Record):
    id: str
    subtask_id: str
    name: str
    assigned_to: str | None = None
    order_index: int = 0
    created_by: str | None = None
    created_at: datetime | None = None


class MilestoneRecord(Record):
    id: str
    subtask_id: str | None = None
    sub_subtask_id: str | None = None
    milestone_date: date
    milestone_text: str
    created_by: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.milestone_text.upper() == CLOSED


class SubSubtaskNode(BaseModel):
    sub_subtask: SubSubtaskRecord
    assigned_user: UserRecord | None = None
    milestones: list[MilestoneRecord] = []


class SubtaskNode(BaseModel):
    subtask: SubtaskRecord
    assigned_user: UserRecord | None = None
    milestones: list[MilestoneRecord] = []
    sub_subtasks: list[SubSubtaskNode] = []

    def all_milestones(self) -> list[MilestoneRecord]:
        """Own milestones followed by every sub-subtask milestone."""
        collected = list(self.milestones)
        for child in self.sub_subtasks:
            collected.extend(child.milestones)
        return collected


class TaskNode(BaseModel):
    task: TaskRecord
    subtasks: list[SubtaskNode] = []
