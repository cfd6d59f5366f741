import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.models.user import User
from app.schemas.tracker import UserCreate, UserPublic
from app.services import lifecycle
from app.services.snapshot_loader import TrackerContext

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserPublic)
def get_profile(
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> UserPublic:
    return lifecycle.get_user(db, context.user_id, context)


@router.get("/", response_model=list[UserPublic])
def list_users(
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> list[UserPublic]:
    query = db.query(User)
    if context.realm_id is None:
        query = query.filter(User.realm_id.is_(None))
    else:
        query = query.filter(User.realm_id == context.realm_id)
    return query.order_by(User.full_name).all()


@router.post("/", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.require_admin),
) -> UserPublic:
    user = lifecycle.create_user(db, context, payload.email, payload.full_name, payload.role)
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.require_admin),
) -> None:
    user = lifecycle.get_user(db, user_id, context)
    lifecycle.delete_user(db, user, context)
    db.commit()
