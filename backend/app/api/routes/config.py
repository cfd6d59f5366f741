from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api import deps
from app.db.session import get_db
from app.schemas.config import ConfigValueUpdate, TrackerConfig
from app.services import config_store
from app.services.snapshot_loader import TrackerContext

router = APIRouter()


@router.get("/", response_model=TrackerConfig)
def get_config(
    db: Session = Depends(get_db),
    _: TrackerContext = Depends(deps.get_tracker_context),
) -> TrackerConfig:
    return config_store.get_tracker_config(db)


@router.put("/{config_key}", response_model=TrackerConfig)
def set_config_value(
    config_key: str,
    payload: ConfigValueUpdate,
    db: Session = Depends(get_db),
    _: TrackerContext = Depends(deps.require_admin),
) -> TrackerConfig:
    config = config_store.set_config_value(db, config_key, payload.config_value)
    db.commit()
    return config
