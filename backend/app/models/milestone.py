from datetime import date, datetime

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.models.user import new_id

CLOSED = "CLOSED"


class Milestone(Base):
    __tablename__ = "milestones"
    __table_args__ = (
        CheckConstraint(
            "(subtask_id IS NULL) <> (sub_subtask_id IS NULL)",
            name="ck_milestones_single_owner",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    subtask_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("subtasks.id", ondelete="CASCADE"), nullable=True, index=True
    )
    sub_subtask_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("sub_subtasks.id", ondelete="CASCADE"), nullable=True, index=True
    )
    milestone_date: Mapped[date] = mapped_column(Date, nullable=False)
    milestone_text: Mapped[str] = mapped_column(String(255), nullable=False)
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
