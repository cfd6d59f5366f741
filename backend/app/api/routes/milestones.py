from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.models.milestone import Milestone
from app.schemas.tracker import MilestoneCreate, MilestonePublic, MilestoneUpdate
from app.services import lifecycle, milestone_rollup
from app.services.snapshot_loader import TrackerContext

router = APIRouter()


def _check_realm(
    db: Session,
    context: TrackerContext,
    subtask_id: str | None,
    sub_subtask_id: str | None,
) -> None:
    """404 unless the owning task is visible from the caller's realm."""
    if sub_subtask_id is not None:
        subtask_id = lifecycle.get_sub_subtask(db, sub_subtask_id).subtask_id
    if subtask_id is not None:
        lifecycle.get_task(db, lifecycle.get_subtask(db, subtask_id).task_id, context)


def _check_milestone_realm(db: Session, context: TrackerContext, milestone_id: str) -> None:
    milestone = db.get(Milestone, milestone_id)
    if milestone is not None:
        _check_realm(db, context, milestone.subtask_id, milestone.sub_subtask_id)


@router.post("/", response_model=MilestonePublic, status_code=status.HTTP_201_CREATED)
def create_milestone(
    payload: MilestoneCreate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> MilestonePublic:
    _check_realm(db, context, payload.subtask_id, payload.sub_subtask_id)
    milestone = milestone_rollup.add_milestone(
        db,
        payload.milestone_date,
        payload.milestone_text,
        subtask_id=payload.subtask_id,
        sub_subtask_id=payload.sub_subtask_id,
        user_id=context.user_id,
        realm_id=context.realm_id,
    )
    db.commit()
    db.refresh(milestone)
    return milestone


@router.patch("/{milestone_id}", response_model=MilestonePublic)
def update_milestone(
    milestone_id: str,
    payload: MilestoneUpdate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> MilestonePublic:
    _check_milestone_realm(db, context, milestone_id)
    milestone = milestone_rollup.update_milestone(
        db,
        milestone_id,
        milestone_date=payload.milestone_date,
        milestone_text=payload.milestone_text,
        user_id=context.user_id,
        realm_id=context.realm_id,
    )
    db.commit()
    db.refresh(milestone)
    return milestone


@router.delete("/{milestone_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_milestone(
    milestone_id: str,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> None:
    _check_milestone_realm(db, context, milestone_id)
    milestone_rollup.delete_milestone(
        db, milestone_id, user_id=context.user_id, realm_id=context.realm_id
    )
    db.commit()
