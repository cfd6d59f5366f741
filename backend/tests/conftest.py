import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("ENVIRONMENT", "development")
# Background refreshes stay out of the way of request-driven fetches
os.environ.setdefault("SNAPSHOT_REFRESH_DEBOUNCE_SECONDS", "30")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.main import create_app
from app.models.user import User, UserRole
from app.services.snapshot_loader import TrackerContext

REALM = "realm-1"


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    with session_factory() as session:
        yield session


def _add_user(session_factory, email: str, full_name: str, role: UserRole) -> str:
    with session_factory() as session:
        user = User(email=email, full_name=full_name, role=role, realm_id=REALM)
        session.add(user)
        session.commit()
        return user.id


@pytest.fixture
def admin_id(session_factory) -> str:
    return _add_user(session_factory, "admin@example.com", "Admin", UserRole.ADMIN)


@pytest.fixture
def member_id(session_factory) -> str:
    return _add_user(session_factory, "member@example.com", "Member", UserRole.USER)


@pytest.fixture
def admin_context(admin_id) -> TrackerContext:
    return TrackerContext(user_id=admin_id, realm_id=REALM, role=UserRole.ADMIN)


@pytest.fixture
def client(session_factory):
    app = create_app(session_factory)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_headers(admin_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(admin_id)}"}


@pytest.fixture
def member_headers(member_id) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(member_id)}"}
