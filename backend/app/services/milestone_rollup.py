"""Milestone writes and the sub-subtask to subtask roll-up.

For a subtask with sub-subtasks, the subtask's own milestone of a given
text carries the latest date among its children's milestones of that text.
Every write touching a sub-subtask milestone re-asserts that rule for the
affected text.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from app.models.action_history import ActionType, EntityType
from app.models.milestone import Milestone
from app.models.subtask import SubSubtask, Subtask, SubtaskRole
from app.services.action_logger import log_action
from app.services.errors import InvalidMilestoneOwner, TrackerEntityNotFound

logger = logging.getLogger(__name__)


def _get_milestone(db: Session, milestone_id: str) -> Milestone:
    milestone = db.get(Milestone, milestone_id)
    if milestone is None:
        raise TrackerEntityNotFound("Milestone", milestone_id)
    return milestone


def _owning_subtask(db: Session, milestone: Milestone) -> tuple[Subtask | None, SubSubtask | None]:
    if milestone.sub_subtask_id is not None:
        child = db.get(SubSubtask, milestone.sub_subtask_id)
        return (db.get(Subtask, child.subtask_id) if child else None), child
    return db.get(Subtask, milestone.subtask_id), None


def recompute_parent_milestone(
    db: Session, subtask_id: str, milestone_text: str, force: bool = False
) -> Milestone | None:
    """Make the subtask's ``milestone_text`` milestone the children's latest.

    When no child milestone with that text remains the parent milestone is
    removed. Subtasks without sub-subtasks are left alone unless ``force``
    is set, which the caller removing the last sub-subtask does.
    """
    db.flush()
    child_ids = [
        child_id
        for (child_id,) in db.query(SubSubtask.id).filter(SubSubtask.subtask_id == subtask_id)
    ]
    if not child_ids and not force:
        return None

    child_dates = []
    if child_ids:
        child_dates = [
            milestone_date
            for (milestone_date,) in db.query(Milestone.milestone_date).filter(
                Milestone.sub_subtask_id.in_(child_ids),
                Milestone.milestone_text == milestone_text,
            )
        ]
    parents = (
        db.query(Milestone)
        .filter(Milestone.subtask_id == subtask_id, Milestone.milestone_text == milestone_text)
        .order_by(Milestone.created_at)
        .all()
    )

    if not child_dates:
        for parent in parents:
            logger.debug(f"Removing rolled-up '{milestone_text}' from subtask {subtask_id}")
            db.delete(parent)
        db.flush()
        return None

    latest = max(child_dates)
    if parents:
        parent = parents[0]
        if parent.milestone_date != latest:
            parent.milestone_date = latest
        for duplicate in parents[1:]:
            db.delete(duplicate)
    else:
        parent = Milestone(
            subtask_id=subtask_id,
            milestone_date=latest,
            milestone_text=milestone_text,
        )
        db.add(parent)
    db.flush()
    return parent


def _log_planned(
    db: Session,
    action: ActionType,
    milestone: Milestone,
    subtask: Subtask | None,
    child: SubSubtask | None,
    user_id: str | None,
    realm_id: str | None,
) -> None:
    if subtask is None or subtask.role != SubtaskRole.PLANNED:
        return
    details = {
        "milestone_text": milestone.milestone_text,
        "milestone_date": milestone.milestone_date.isoformat(),
        "subtask_name": subtask.name,
    }
    if child is not None:
        details["sub_subtask_name"] = child.name
    log_action(
        db,
        action,
        EntityType.MILESTONE,
        milestone.id,
        milestone.milestone_text,
        user_id,
        details=details,
        realm_id=realm_id,
    )


def add_milestone(
    db: Session,
    milestone_date: date,
    milestone_text: str,
    subtask_id: str | None = None,
    sub_subtask_id: str | None = None,
    user_id: str | None = None,
    realm_id: str | None = None,
) -> Milestone:
    if (subtask_id is None) == (sub_subtask_id is None):
        raise InvalidMilestoneOwner("Give exactly one of subtask_id or sub_subtask_id")

    if sub_subtask_id is not None:
        child = db.get(SubSubtask, sub_subtask_id)
        if child is None:
            raise TrackerEntityNotFound("Sub-subtask", sub_subtask_id)
        subtask = db.get(Subtask, child.subtask_id)
    else:
        child = None
        subtask = db.get(Subtask, subtask_id)
        if subtask is None:
            raise TrackerEntityNotFound("Subtask", subtask_id)

    milestone = Milestone(
        subtask_id=subtask_id,
        sub_subtask_id=sub_subtask_id,
        milestone_date=milestone_date,
        milestone_text=milestone_text,
        created_by=user_id,
    )
    db.add(milestone)
    db.flush()

    if child is not None:
        recompute_parent_milestone(db, child.subtask_id, milestone_text)
    _log_planned(db, ActionType.CREATE, milestone, subtask, child, user_id, realm_id)
    return milestone


def update_milestone(
    db: Session,
    milestone_id: str,
    milestone_date: date | None = None,
    milestone_text: str | None = None,
    user_id: str | None = None,
    realm_id: str | None = None,
) -> Milestone:
    milestone = _get_milestone(db, milestone_id)
    old_text = milestone.milestone_text
    if milestone_date is not None:
        milestone.milestone_date = milestone_date
    if milestone_text is not None:
        milestone.milestone_text = milestone_text
    db.flush()

    subtask, child = _owning_subtask(db, milestone)
    if child is not None:
        recompute_parent_milestone(db, child.subtask_id, milestone.milestone_text)
        if old_text != milestone.milestone_text:
            recompute_parent_milestone(db, child.subtask_id, old_text)
    _log_planned(db, ActionType.UPDATE, milestone, subtask, child, user_id, realm_id)
    return milestone


def delete_milestone(
    db: Session,
    milestone_id: str,
    user_id: str | None = None,
    realm_id: str | None = None,
) -> None:
    milestone = _get_milestone(db, milestone_id)
    subtask, child = _owning_subtask(db, milestone)
    _log_planned(db, ActionType.DELETE, milestone, subtask, child, user_id, realm_id)

    text = milestone.milestone_text
    db.delete(milestone)
    db.flush()
    if child is not None:
        recompute_parent_milestone(db, child.subtask_id, text)
