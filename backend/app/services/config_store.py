"""Key/value application configuration with built-in defaults."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.models.app_config import AppConfig
from app.schemas.config import TrackerConfig

logger = logging.getLogger(__name__)

CONFIG_KEYS = tuple(TrackerConfig.model_fields)


class UnknownConfigKey(LookupError):
    pass


def get_tracker_config(db: Session) -> TrackerConfig:
    """Stored values override the defaults key by key.

    A stored value that no longer validates is ignored in favour of the
    default for that key.
    """
    rows = db.query(AppConfig).filter(AppConfig.config_key.in_(CONFIG_KEYS)).all()
    config = TrackerConfig()
    for row in rows:
        try:
            candidate = TrackerConfig.model_validate(
                {**config.model_dump(), row.config_key: row.config_value}
            )
        except ValidationError as exc:
            logger.warning(f"Ignoring invalid stored config '{row.config_key}': {exc}")
            continue
        config = candidate
    return config


def set_config_value(db: Session, key: str, value: Any) -> TrackerConfig:
    """Validate and store one configuration key. Raises ValidationError."""
    if key not in CONFIG_KEYS:
        raise UnknownConfigKey(key)
    merged = TrackerConfig.model_validate({**get_tracker_config(db).model_dump(), key: value})
    stored = merged.model_dump(mode="json")[key]

    row = db.query(AppConfig).filter(AppConfig.config_key == key).first()
    if row is None:
        row = AppConfig(config_key=key, config_value=stored)
    else:
        row.config_value = stored
    db.add(row)
    db.flush()
    return merged
