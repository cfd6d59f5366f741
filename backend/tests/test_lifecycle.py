from datetime import date

import pytest

from app.models.action_history import ActionHistory
from app.models.milestone import Milestone
from app.models.subtask import SubSubtask, Subtask, SubtaskRole
from app.models.task import Task, TaskCategory
from app.models.user import User
from app.services import lifecycle, milestone_rollup
from app.services.errors import ReservedSubtaskName, TrackerEntityNotFound
from app.services.snapshot_loader import TrackerContext


def _subtasks(db, task_id):
    return db.query(Subtask).filter(Subtask.task_id == task_id).order_by(Subtask.name).all()


def test_create_task_seeds_default_subtasks(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login", TaskCategory.TEST)
    db.commit()

    subtasks = {s.name: s.role for s in _subtasks(db, task.id)}
    assert subtasks == {
        "PLANNED": SubtaskRole.PLANNED,
        "subtask1": SubtaskRole.ORDINARY,
        "subtask2": SubtaskRole.ORDINARY,
    }
    assert task.realm_id == admin_context.realm_id
    assert task.priority == 2
    entry = db.query(ActionHistory).one()
    assert (entry.action_type, entry.entity_type, entry.entity_name) == ("create", "task", "Login")
    assert entry.details == {"category": "test"}
    assert entry.realm_id == admin_context.realm_id


def test_actual_name_is_reserved(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    with pytest.raises(ReservedSubtaskName):
        lifecycle.create_subtask(db, admin_context, task.id, "actual")

    subtask = db.query(Subtask).filter(Subtask.name == "subtask1").one()
    with pytest.raises(ReservedSubtaskName):
        lifecycle.rename_subtask(db, subtask, "ACTUAL")
    with pytest.raises(ReservedSubtaskName):
        lifecycle.rename_subtask(db, subtask, "Planned")


def test_rename_rederives_role(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    planned = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "PLANNED").one()
    lifecycle.rename_subtask(db, planned, "Baseline")
    assert planned.role == SubtaskRole.ORDINARY

    other = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    lifecycle.rename_subtask(db, other, "planned")
    assert other.role == SubtaskRole.PLANNED


def test_sub_subtask_order_index_increments(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    first = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "OAuth")
    second = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "Scopes")
    assert (first.order_index, second.order_index) == (0, 1)


def test_delete_task_cascades(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    child = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "OAuth")
    milestone_rollup.add_milestone(db, date(2024, 1, 2), "Dev Complete", sub_subtask_id=child.id)
    db.commit()

    lifecycle.delete_task(db, task, admin_context)
    db.commit()

    assert db.query(Task).count() == 0
    assert db.query(Subtask).count() == 0
    assert db.query(SubSubtask).count() == 0
    assert db.query(Milestone).count() == 0
    actions = [(e.action_type, e.entity_type) for e in db.query(ActionHistory).all()]
    assert ("delete", "task") in actions


def test_delete_sub_subtask_recomputes_parent(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    first = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "OAuth")
    second = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "Scopes")
    milestone_rollup.add_milestone(db, date(2024, 1, 2), "Dev Complete", sub_subtask_id=first.id)
    milestone_rollup.add_milestone(db, date(2024, 1, 9), "Dev Complete", sub_subtask_id=second.id)

    lifecycle.delete_sub_subtask(db, second, admin_context)

    parent = db.query(Milestone).filter(Milestone.subtask_id == subtask.id).one()
    assert parent.milestone_date == date(2024, 1, 2)


def test_delete_last_sub_subtask_removes_rollup(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    only = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "OAuth")
    milestone_rollup.add_milestone(db, date(2024, 1, 9), "Dev Complete", sub_subtask_id=only.id)
    assert db.query(Milestone).filter(Milestone.subtask_id == subtask.id).count() == 1

    lifecycle.delete_sub_subtask(db, only, admin_context)
    db.commit()

    assert db.query(Milestone).filter(Milestone.subtask_id == subtask.id).all() == []
    assert db.query(Milestone).count() == 0


def test_subtask_milestones_survive_without_sub_subtasks(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    milestone_rollup.add_milestone(db, date(2024, 1, 9), "Dev Complete", subtask_id=subtask.id)

    assert milestone_rollup.recompute_parent_milestone(db, subtask.id, "Dev Complete") is None
    assert db.query(Milestone).filter(Milestone.subtask_id == subtask.id).count() == 1


def test_delete_user_clears_assignments(db, admin_context, member_id):
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    lifecycle.assign_subtask(db, admin_context, subtask, member_id)
    child = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "OAuth", assigned_to=member_id)
    db.commit()

    member = lifecycle.get_user(db, member_id, admin_context)
    lifecycle.delete_user(db, member, admin_context)
    db.commit()

    assert db.get(User, member_id) is None
    db.refresh(subtask)
    db.refresh(child)
    assert subtask.assigned_to is None
    assert child.assigned_to is None


def test_unknown_assignee_and_foreign_realm(db, admin_context):
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    with pytest.raises(TrackerEntityNotFound):
        lifecycle.assign_subtask(db, admin_context, subtask, "ghost")

    outsider = TrackerContext(user_id="x", realm_id="other-realm")
    with pytest.raises(TrackerEntityNotFound):
        lifecycle.get_task(db, task.id, outsider)


def test_assignee_must_belong_to_callers_realm(db, admin_context):
    outsider = User(email="outsider@example.com", full_name="Outsider", realm_id="realm-2")
    db.add(outsider)
    task = lifecycle.create_task(db, admin_context, "Login")
    subtask = db.query(Subtask).filter(Subtask.task_id == task.id, Subtask.name == "subtask1").one()
    child = lifecycle.create_sub_subtask(db, admin_context, subtask.id, "OAuth")
    db.commit()

    with pytest.raises(TrackerEntityNotFound):
        lifecycle.assign_subtask(db, admin_context, subtask, outsider.id)
    with pytest.raises(TrackerEntityNotFound):
        lifecycle.assign_sub_subtask(db, admin_context, child, outsider.id)
    with pytest.raises(TrackerEntityNotFound):
        lifecycle.create_subtask(db, admin_context, task.id, "Backend", assigned_to=outsider.id)
    with pytest.raises(TrackerEntityNotFound):
        lifecycle.create_sub_subtask(db, admin_context, subtask.id, "Scopes", assigned_to=outsider.id)

    assert subtask.assigned_to is None
    assert child.assigned_to is None
