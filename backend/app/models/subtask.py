from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.user import new_id

PLANNED = "PLANNED"
ACTUAL = "ACTUAL"


class SubtaskRole(str, PyEnum):
    PLANNED = "planned"
    ACTUAL = "actual"
    ORDINARY = "ordinary"

    @classmethod
    def from_name(cls, name: str) -> "SubtaskRole":
        normalized = (name or "").strip().upper()
        if normalized == PLANNED:
            return cls.PLANNED
        if normalized == ACTUAL:
            return cls.ACTUAL
        return cls.ORDINARY


class Subtask(Base):
    __tablename__ = "subtasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    task_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Only PLANNED and ORDINARY are ever stored; ACTUAL is a computed row
    role: Mapped[SubtaskRole] = mapped_column(
        SQLEnum(SubtaskRole), nullable=False, default=SubtaskRole.ORDINARY
    )
    assigned_to: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    task = relationship("Task", back_populates="subtasks")
    sub_subtasks = relationship(
        "SubSubtask", back_populates="subtask", order_by="SubSubtask.order_index"
    )


class SubSubtask(Base):
    __tablename__ = "sub_subtasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    subtask_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("subtasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    subtask = relationship("Subtask", back_populates="sub_subtasks")
