from datetime import date, timedelta

from sqlalchemy.orm import Session

from app.core.security import create_access_token
from app.db.session import SessionLocal
from app.models.subtask import PLANNED, Subtask
from app.models.task import TaskCategory
from app.models.user import User, UserRole
from app.services import lifecycle, milestone_rollup
from app.services.snapshot_loader import TrackerContext

DEMO_REALM = "demo"


def seed_demo_data(db: Session) -> str | None:
    """Create a small demo realm and return an access token for its admin."""
    existing = db.query(User).filter(User.email == "admin@demo.example.com").first()
    if existing:
        return None
    admin = User(
        email="admin@demo.example.com",
        full_name="Demo Admin",
        role=UserRole.ADMIN,
        realm_id=DEMO_REALM,
    )
    db.add(admin)
    db.flush()
    actor = {"user_id": admin.id, "realm_id": DEMO_REALM}
    context = TrackerContext(**actor, role=UserRole.ADMIN)

    alice = lifecycle.create_user(db, context, "alice@demo.example.com", "Alice")
    bob = lifecycle.create_user(db, context, "bob@demo.example.com", "Bob")

    today = date.today()
    task = lifecycle.create_task(db, context, "OAuth login", TaskCategory.DEV, priority=3)
    subtasks = {s.name: s for s in db.query(Subtask).filter(Subtask.task_id == task.id)}
    planned = subtasks[PLANNED]
    backend = subtasks["subtask1"]
    frontend = subtasks["subtask2"]
    lifecycle.rename_subtask(db, backend, "Backend")
    lifecycle.rename_subtask(db, frontend, "Frontend")
    lifecycle.assign_subtask(db, context, backend, alice.id)
    lifecycle.assign_subtask(db, context, frontend, bob.id)

    for offset, text in ((-10, "Dev Complete"), (-5, "Dev Merge Done"), (2, "Prod Merge Done")):
        milestone_rollup.add_milestone(
            db, today + timedelta(days=offset), text, subtask_id=planned.id, **actor
        )
    milestone_rollup.add_milestone(
        db, today - timedelta(days=7), "Dev Complete", subtask_id=frontend.id, **actor
    )

    token_child = lifecycle.create_sub_subtask(db, context, backend.id, "Token refresh")
    scopes_child = lifecycle.create_sub_subtask(db, context, backend.id, "Scopes")
    for child, offset in ((token_child, -8), (scopes_child, -6)):
        milestone_rollup.add_milestone(
            db, today + timedelta(days=offset), "Dev Complete", sub_subtask_id=child.id, **actor
        )

    ops = lifecycle.create_task(db, context, "Staging cluster upgrade", TaskCategory.INFRA)
    ops_work = (
        db.query(Subtask)
        .filter(Subtask.task_id == ops.id, Subtask.name == "subtask1")
        .one()
    )
    lifecycle.assign_subtask(db, context, ops_work, bob.id)
    milestone_rollup.add_milestone(
        db, today - timedelta(days=1), "CLOSED", subtask_id=ops_work.id, **actor
    )

    db.commit()
    return create_access_token(admin.id)


if __name__ == "__main__":
    with SessionLocal() as session:
        token = seed_demo_data(session)
    if token:
        print(f"Demo realm seeded. Admin token:\n{token}")
    else:
        print("Demo realm already present.")
