import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.models.task import Task
from app.schemas.tracker import SubtaskPublic, TaskCreate, TaskPublic, TaskUpdate
from app.services import lifecycle
from app.services.snapshot_loader import TrackerContext

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=list[TaskPublic])
def list_tasks(
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> list[TaskPublic]:
    query = db.query(Task)
    if context.realm_id is not None:
        query = query.filter(or_(Task.realm_id == context.realm_id, Task.realm_id.is_(None)))
    return query.order_by(Task.category, Task.name).all()


@router.post("/", response_model=TaskPublic, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> TaskPublic:
    task = lifecycle.create_task(
        db, context, payload.name, category=payload.category, priority=payload.priority
    )
    db.commit()
    db.refresh(task)
    logger.info(f"Task {task.id} created by {context.user_id}")
    return task


@router.get("/{task_id}", response_model=TaskPublic)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> TaskPublic:
    return lifecycle.get_task(db, task_id, context)


@router.get("/{task_id}/subtasks", response_model=list[SubtaskPublic])
def list_task_subtasks(
    task_id: str,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> list[SubtaskPublic]:
    task = lifecycle.get_task(db, task_id, context)
    return sorted(task.subtasks, key=lambda s: (s.created_at, s.name))


@router.patch("/{task_id}", response_model=TaskPublic)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> TaskPublic:
    task = lifecycle.get_task(db, task_id, context)
    data = payload.model_dump(exclude_unset=True)
    lifecycle.update_task(db, task, **data)
    db.commit()
    db.refresh(task)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> None:
    task = lifecycle.get_task(db, task_id, context)
    lifecycle.delete_task(db, task, context)
    db.commit()
