from datetime import date, datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.subtask import SubtaskRole
from app.models.task import DEFAULT_PRIORITY, TaskCategory
from app.models.user import UserRole


class TaskCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: TaskCategory = TaskCategory.DEV
    priority: int = Field(default=DEFAULT_PRIORITY, ge=1, le=3)


class TaskUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    category: TaskCategory | None = None
    priority: int | None = Field(default=None, ge=1, le=3)


class TaskPublic(BaseModel):
    id: str
    name: str
    category: TaskCategory
    priority: int
    realm_id: str | None = None
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SubtaskCreate(BaseModel):
    task_id: str
    name: str = Field(..., min_length=1, max_length=255)
    assigned_to: str | None = None


class SubtaskUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    assigned_to: str | None = None

    class Config:
        extra = "ignore"


class SubtaskPublic(BaseModel):
    id: str
    task_id: str
    name: str
    role: SubtaskRole
    assigned_to: str | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SubSubtaskCreate(BaseModel):
    subtask_id: str
    name: str = Field(..., min_length=1, max_length=255)
    assigned_to: str | None = None


class SubSubtaskAssign(BaseModel):
    assigned_to: str | None = None


class SubSubtaskPublic(BaseModel):
    id: str
    subtask_id: str
    name: str
    assigned_to: str | None = None
    order_index: int
    created_at: datetime

    class Config:
        from_attributes = True


class MilestoneCreate(BaseModel):
    subtask_id: str | None = None
    sub_subtask_id: str | None = None
    milestone_date: date
    milestone_text: str = Field(..., min_length=1, max_length=255)


class MilestoneUpdate(BaseModel):
    milestone_date: date | None = None
    milestone_text: str | None = Field(default=None, min_length=1, max_length=255)


class MilestonePublic(BaseModel):
    id: str
    subtask_id: str | None = None
    sub_subtask_id: str | None = None
    milestone_date: date
    milestone_text: str
    created_by: str | None = None

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.USER


class UserPublic(BaseModel):
    id: str
    email: str
    full_name: str
    role: UserRole
    realm_id: str | None = None

    class Config:
        from_attributes = True
