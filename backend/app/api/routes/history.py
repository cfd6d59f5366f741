from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.models.action_history import ActionType, EntityType
from app.schemas.history import ActionHistoryPublic
from app.services.action_logger import list_actions
from app.services.snapshot_loader import TrackerContext

router = APIRouter()


@router.get("/", response_model=list[ActionHistoryPublic])
def list_history(
    entity_type: EntityType | None = None,
    action_type: ActionType | None = None,
    limit: int = Query(default=500, ge=1, le=500),
    db: Session = Depends(get_db),
    context: TrackerContext = Depends(deps.get_tracker_context),
) -> list[ActionHistoryPublic]:
    return list_actions(
        db, context, entity_type=entity_type, action_type=action_type, limit=limit
    )
