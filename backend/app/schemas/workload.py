from pydantic import BaseModel

from app.models.task import TaskCategory
from app.schemas.records import UserRecord


class ResourceMetrics(BaseModel):
    user: UserRecord
    total_subtasks: int = 0
    total_sub_subtasks: int = 0
    task_ids: list[str] = []
    tasks_by_category: dict[TaskCategory, int]
    total_items: int = 0
    percentage: int = 0  # share of all work items, rounded


class CategoryTotal(BaseModel):
    category: TaskCategory
    total: int
    percentage: int  # of all work items, subtasks and sub-subtasks alike


class ResourceReport(BaseModel):
    members: list[ResourceMetrics]
    total_work_items: int
    category_totals: list[CategoryTotal] = []


class TaskBreakdown(BaseModel):
    task_id: str
    task_name: str
    category: TaskCategory
    milestone_count: int
    percentage: float


class UserBreakdown(BaseModel):
    user_id: str
    user_name: str
    total_milestones: int
    tasks: list[TaskBreakdown]
