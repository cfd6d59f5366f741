"""Audit trail of tracker changes."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from app.models.action_history import ActionHistory, ActionType, EntityType
from app.services.snapshot_loader import TrackerContext

logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    action_type: ActionType,
    entity_type: EntityType,
    entity_id: str,
    entity_name: str,
    user_id: str | None,
    details: dict[str, Any] | None = None,
    performed_by: str | None = None,
    realm_id: str | None = None,
) -> ActionHistory:
    """Record an action in the caller's transaction.

    ``realm_id`` is the realm of whoever made the change; history is only
    ever listed back to that realm.
    """
    entry = ActionHistory(
        action_type=action_type.value,
        entity_type=entity_type.value,
        entity_id=entity_id,
        entity_name=entity_name,
        details=details or {},
        performed_by=performed_by,
        user_id=user_id,
        realm_id=realm_id,
    )
    db.add(entry)
    logger.info(
        f"{action_type.value} {entity_type.value} {entity_id} ({entity_name})",
        extra={"realm_id": realm_id, "user_id": user_id},
    )
    return entry


def list_actions(
    db: Session,
    context: TrackerContext,
    entity_type: EntityType | None = None,
    action_type: ActionType | None = None,
    limit: int = 500,
) -> list[ActionHistory]:
    query = db.query(ActionHistory)
    if context.realm_id is None:
        query = query.filter(ActionHistory.realm_id.is_(None))
    else:
        query = query.filter(ActionHistory.realm_id == context.realm_id)
    if entity_type is not None:
        query = query.filter(ActionHistory.entity_type == entity_type.value)
    if action_type is not None:
        query = query.filter(ActionHistory.action_type == action_type.value)
    return query.order_by(ActionHistory.created_at.desc()).limit(limit).all()
