from app.models.user import User
from app.models.task import Task
from app.models.subtask import SubSubtask, Subtask
from app.models.milestone import Milestone
from app.models.action_history import ActionHistory
from app.models.app_config import AppConfig

__all__ = [
    "User",
    "Task",
    "Subtask",
    "SubSubtask",
    "Milestone",
    "ActionHistory",
    "AppConfig",
]
