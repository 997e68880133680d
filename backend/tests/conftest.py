import os
import tempfile

# Startup bootstrap runs against the configured engine; keep it off Postgres.
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+pysqlite:///{os.path.join(tempfile.mkdtemp(prefix='course-calendar-'), 'bootstrap.db')}",
)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.user import User, UserRole


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def make_user(db, *, role: UserRole, email: str, name: str | None = None) -> User:
    user = User(name=name or email.split("@")[0], email=email, role=role, is_active=True)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, role=user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_user(db_session):
    return make_user(db_session, role=UserRole.admin, email="admin@example.com")


@pytest.fixture()
def student_user(db_session):
    return make_user(db_session, role=UserRole.student, email="student@example.com")


@pytest.fixture()
def instructor_user(db_session):
    return make_user(db_session, role=UserRole.instructor, email="teacher@example.com", name="Dr. Bold")


@pytest.fixture()
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture()
def student_headers(student_user):
    return auth_headers(student_user)


@pytest.fixture()
def instructor_headers(instructor_user):
    return auth_headers(instructor_user)
