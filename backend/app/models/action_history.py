from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.user import new_id


class ActionType(str, PyEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class EntityType(str, PyEnum):
    TASK = "task"
    SUBTASK = "subtask"
    SUB_SUBTASK = "sub_subtask"
    MILESTONE = "milestone"
    USER = "user"


class ActionHistory(Base):
    __tablename__ = "action_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Stored as plain strings, enum values are lowercase
    action_type: Mapped[str] = mapped_column(String(16), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    entity_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    performed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    realm_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )
