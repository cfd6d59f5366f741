import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.security import decode_token
from app.db.session import get_db
from app.models.user import User
from app.services.snapshot_loader import SnapshotStore, TrackerContext

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_tracker_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> TrackerContext:
    """Resolve the bearer token to the explicit context every view takes."""
    if credentials is None:
        raise _credentials_error()
    try:
        payload = decode_token(credentials.credentials)
    except ValueError:
        raise _credentials_error()
    if payload.get("type") != "access" or not payload.get("sub"):
        raise _credentials_error()

    user = db.get(User, payload["sub"])
    if user is None:
        logger.warning(f"Token for unknown user {payload['sub']}")
        raise _credentials_error()
    return TrackerContext(user_id=user.id, realm_id=user.realm_id, role=user.role)


def require_admin(context: TrackerContext = Depends(get_tracker_context)) -> TrackerContext:
    if not context.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return context


def get_snapshot_store(request: Request) -> SnapshotStore:
    return request.app.state.snapshot_store
