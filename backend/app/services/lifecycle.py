"""Create, rename, assign and delete tracker rows.

Deletes go object by object, children first, so the session sees every
removed row when it publishes changes.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.action_history import ActionType, EntityType
from app.models.milestone import Milestone
from app.models.subtask import PLANNED, SubSubtask, Subtask, SubtaskRole
from app.models.task import DEFAULT_PRIORITY, Task, TaskCategory
from app.models.user import User, UserRole
from app.services.action_logger import log_action
from app.services.errors import ReservedSubtaskName, TrackerEntityNotFound
from app.services.milestone_rollup import recompute_parent_milestone
from app.services.snapshot_loader import TrackerContext

logger = logging.getLogger(__name__)

SEED_SUBTASKS = (PLANNED, "subtask1", "subtask2")


def get_task(db: Session, task_id: str, context: TrackerContext) -> Task:
    query = db.query(Task).filter(Task.id == task_id)
    if context.realm_id is not None:
        query = query.filter(or_(Task.realm_id == context.realm_id, Task.realm_id.is_(None)))
    task = query.first()
    if task is None:
        raise TrackerEntityNotFound("Task", task_id)
    return task


def get_subtask(db: Session, subtask_id: str) -> Subtask:
    subtask = db.get(Subtask, subtask_id)
    if subtask is None:
        raise TrackerEntityNotFound("Subtask", subtask_id)
    return subtask


def get_sub_subtask(db: Session, sub_subtask_id: str) -> SubSubtask:
    child = db.get(SubSubtask, sub_subtask_id)
    if child is None:
        raise TrackerEntityNotFound("Sub-subtask", sub_subtask_id)
    return child


def _check_assignee(db: Session, user_id: str | None, context: TrackerContext) -> None:
    if user_id is not None:
        get_user(db, user_id, context)


def _role_for(db: Session, task_id: str, name: str, subtask_id: str | None = None) -> SubtaskRole:
    role = SubtaskRole.from_name(name)
    if role == SubtaskRole.ACTUAL:
        raise ReservedSubtaskName("ACTUAL is computed from the other subtasks")
    if role == SubtaskRole.PLANNED:
        existing = (
            db.query(Subtask)
            .filter(Subtask.task_id == task_id, Subtask.role == SubtaskRole.PLANNED)
            .first()
        )
        if existing is not None and existing.id != subtask_id:
            raise ReservedSubtaskName("Task already has a PLANNED subtask")
    return role


# Tasks


def create_task(
    db: Session,
    context: TrackerContext,
    name: str,
    category: TaskCategory = TaskCategory.DEV,
    priority: int = DEFAULT_PRIORITY,
) -> Task:
    """A new task with its PLANNED lane and two empty work subtasks."""
    task = Task(
        name=name,
        category=category,
        priority=priority,
        realm_id=context.realm_id,
        created_by=context.user_id,
    )
    db.add(task)
    db.flush()

    for subtask_name in SEED_SUBTASKS:
        db.add(
            Subtask(
                task_id=task.id,
                name=subtask_name,
                role=SubtaskRole.from_name(subtask_name),
                created_by=context.user_id,
            )
        )
    db.flush()

    log_action(
        db,
        ActionType.CREATE,
        EntityType.TASK,
        task.id,
        name,
        context.user_id,
        realm_id=context.realm_id,
        details={"category": category.value},
    )
    return task


def update_task(
    db: Session,
    task: Task,
    name: str | None = None,
    category: TaskCategory | None = None,
    priority: int | None = None,
) -> Task:
    if name is not None:
        task.name = name
    if category is not None:
        task.category = category
    if priority is not None:
        task.priority = priority
    db.flush()
    return task


def _delete_sub_subtask_rows(db: Session, child: SubSubtask) -> list[str]:
    texts = []
    for milestone in db.query(Milestone).filter(Milestone.sub_subtask_id == child.id).all():
        texts.append(milestone.milestone_text)
        db.delete(milestone)
    db.delete(child)
    return texts


def _delete_subtask_rows(db: Session, subtask: Subtask) -> None:
    for child in db.query(SubSubtask).filter(SubSubtask.subtask_id == subtask.id).all():
        _delete_sub_subtask_rows(db, child)
    for milestone in db.query(Milestone).filter(Milestone.subtask_id == subtask.id).all():
        db.delete(milestone)
    db.delete(subtask)


def delete_task(db: Session, task: Task, context: TrackerContext) -> None:
    for subtask in db.query(Subtask).filter(Subtask.task_id == task.id).all():
        _delete_subtask_rows(db, subtask)
    db.flush()
    log_action(
        db,
        ActionType.DELETE,
        EntityType.TASK,
        task.id,
        task.name,
        context.user_id,
        realm_id=context.realm_id,
        details={"category": task.category.value},
    )
    db.delete(task)
    db.flush()


# Subtasks


def create_subtask(
    db: Session,
    context: TrackerContext,
    task_id: str,
    name: str,
    assigned_to: str | None = None,
) -> Subtask:
    task = get_task(db, task_id, context)
    _check_assignee(db, assigned_to, context)
    subtask = Subtask(
        task_id=task.id,
        name=name,
        role=_role_for(db, task.id, name),
        assigned_to=assigned_to,
        created_by=context.user_id,
    )
    db.add(subtask)
    db.flush()
    return subtask


def rename_subtask(db: Session, subtask: Subtask, name: str) -> Subtask:
    """Renaming re-derives the role, so a lane can become or stop being PLANNED."""
    subtask.role = _role_for(db, subtask.task_id, name, subtask_id=subtask.id)
    subtask.name = name
    db.flush()
    return subtask


def assign_subtask(
    db: Session, context: TrackerContext, subtask: Subtask, user_id: str | None
) -> Subtask:
    _check_assignee(db, user_id, context)
    subtask.assigned_to = user_id
    db.flush()
    return subtask


def delete_subtask(db: Session, subtask: Subtask, context: TrackerContext) -> None:
    if subtask.role == SubtaskRole.PLANNED:
        log_action(
            db,
            ActionType.DELETE,
            EntityType.SUBTASK,
            subtask.id,
            subtask.name,
            context.user_id,
            realm_id=context.realm_id,
        )
    _delete_subtask_rows(db, subtask)
    db.flush()


# Sub-subtasks


def create_sub_subtask(
    db: Session,
    context: TrackerContext,
    subtask_id: str,
    name: str,
    assigned_to: str | None = None,
) -> SubSubtask:
    subtask = get_subtask(db, subtask_id)
    _check_assignee(db, assigned_to, context)
    last = (
        db.query(func.max(SubSubtask.order_index))
        .filter(SubSubtask.subtask_id == subtask.id)
        .scalar()
    )
    order_index = 0 if last is None else last + 1
    child = SubSubtask(
        subtask_id=subtask.id,
        name=name,
        assigned_to=assigned_to,
        order_index=order_index,
        created_by=context.user_id,
    )
    db.add(child)
    db.flush()

    if subtask.role == SubtaskRole.PLANNED:
        log_action(
            db,
            ActionType.CREATE,
            EntityType.SUB_SUBTASK,
            child.id,
            name,
            context.user_id,
            realm_id=context.realm_id,
            details={"subtask_name": subtask.name, "order_index": order_index},
        )
    return child


def assign_sub_subtask(
    db: Session, context: TrackerContext, child: SubSubtask, user_id: str | None
) -> SubSubtask:
    _check_assignee(db, user_id, context)
    child.assigned_to = user_id
    db.flush()
    return child


def delete_sub_subtask(db: Session, child: SubSubtask, context: TrackerContext) -> None:
    """Remove a sub-subtask and re-assert the roll-up for every text it had."""
    subtask = get_subtask(db, child.subtask_id)
    if subtask.role == SubtaskRole.PLANNED:
        log_action(
            db,
            ActionType.DELETE,
            EntityType.SUB_SUBTASK,
            child.id,
            child.name,
            context.user_id,
            realm_id=context.realm_id,
            details={"subtask_name": subtask.name},
        )
    texts = _delete_sub_subtask_rows(db, child)
    db.flush()
    for text in dict.fromkeys(texts):
        recompute_parent_milestone(db, subtask.id, text, force=True)


# Users


def create_user(
    db: Session,
    context: TrackerContext,
    email: str,
    full_name: str,
    role: UserRole = UserRole.USER,
) -> User:
    user = User(email=email, full_name=full_name, role=role, realm_id=context.realm_id)
    db.add(user)
    db.flush()
    log_action(
        db,
        ActionType.CREATE,
        EntityType.USER,
        user.id,
        full_name,
        context.user_id,
        realm_id=context.realm_id,
        details={"email": email, "role": role.value},
    )
    return user


def get_user(db: Session, user_id: str, context: TrackerContext) -> User:
    user = db.get(User, user_id)
    if user is None or user.realm_id != context.realm_id:
        raise TrackerEntityNotFound("User", user_id)
    return user


def delete_user(db: Session, user: User, context: TrackerContext) -> None:
    """Unassign the user everywhere, then remove them."""
    for subtask in db.query(Subtask).filter(Subtask.assigned_to == user.id).all():
        subtask.assigned_to = None
    for child in db.query(SubSubtask).filter(SubSubtask.assigned_to == user.id).all():
        child.assigned_to = None
    log_action(
        db,
        ActionType.DELETE,
        EntityType.USER,
        user.id,
        user.full_name,
        context.user_id,
        realm_id=context.realm_id,
        details={"email": user.email},
    )
    db.delete(user)
    db.flush()
    logger.info(f"Deleted user {user.id} and cleared their assignments")
