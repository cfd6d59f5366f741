from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.schemas.tracker import SubtaskCreate, SubtaskPublic, SubtaskUpdate
from app.services import lifecycle
from app.services.snapshot_loader import TrackerContext

router = APIRouter()


@router.post("/", response_model=SubtaskPublic, status_code=status.HTTP_201_CREATED)
def create_subtask(
    payload: SubtaskCreate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> SubtaskPublic:
    subtask = lifecycle.create_subtask(
        db, context, payload.task_id, payload.name, payload.assigned_to
    )
    db.commit()
    db.refresh(subtask)
    return subtask


@router.patch("/{subtask_id}", response_model=SubtaskPublic)
def update_subtask(
    subtask_id: str,
    payload: SubtaskUpdate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> SubtaskPublic:
    subtask = lifecycle.get_subtask(db, subtask_id)
    lifecycle.get_task(db, subtask.task_id, context)
    # assigned_to may be explicitly null to unassign
    if "name" in payload.model_fields_set and payload.name is not None:
        lifecycle.rename_subtask(db, subtask, payload.name)
    if "assigned_to" in payload.model_fields_set:
        lifecycle.assign_subtask(db, context, subtask, payload.assigned_to)
    db.commit()
    db.refresh(subtask)
    return subtask


@router.delete("/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_subtask(
    subtask_id: str,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> None:
    subtask = lifecycle.get_subtask(db, subtask_id)
    lifecycle.get_task(db, subtask.task_id, context)
    lifecycle.delete_subtask(db, subtask, context)
    db.commit()
