from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.models.subtask import SubSubtask
from app.schemas.tracker import SubSubtaskAssign, SubSubtaskCreate, SubSubtaskPublic
from app.services import lifecycle
from app.services.snapshot_loader import TrackerContext

router = APIRouter()


def _get_sub_subtask(db: Session, sub_subtask_id: str, context: TrackerContext) -> SubSubtask:
    child = lifecycle.get_sub_subtask(db, sub_subtask_id)
    subtask = lifecycle.get_subtask(db, child.subtask_id)
    lifecycle.get_task(db, subtask.task_id, context)
    return child


@router.post("/", response_model=SubSubtaskPublic, status_code=status.HTTP_201_CREATED)
def create_sub_subtask(
    payload: SubSubtaskCreate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> SubSubtaskPublic:
    subtask = lifecycle.get_subtask(db, payload.subtask_id)
    lifecycle.get_task(db, subtask.task_id, context)
    child = lifecycle.create_sub_subtask(
        db, context, subtask.id, payload.name, payload.assigned_to
    )
    db.commit()
    db.refresh(child)
    return child


@router.put("/{sub_subtask_id}/assignee", response_model=SubSubtaskPublic)
def assign_sub_subtask(
    sub_subtask_id: str,
    payload: SubSubtaskAssign,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> SubSubtaskPublic:
    child = _get_sub_subtask(db, sub_subtask_id, context)
    lifecycle.assign_sub_subtask(db, context, child, payload.assigned_to)
    db.commit()
    db.refresh(child)
    return child


@router.delete("/{sub_subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sub_subtask(
    sub_subtask_id: str,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> None:
    child = _get_sub_subtask(db, sub_subtask_id, context)
    lifecycle.delete_sub_subtask(db, child, context)
    db.commit()
