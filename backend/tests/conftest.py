"""
Pytest configuration and fixtures

API tests run against an in-memory SQLite database with the request
clock pinned to FIXED_NOW.
"""
from datetime import datetime
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from report_tracker.database import Base, get_db
from report_tracker.dependencies import get_now
from report_tracker.main import app
from report_tracker.models import db_models  # noqa: F401  (registers tables)
from report_tracker.models.db_models import OrganizationDB, ProjectDB
from report_tracker.auth import create_access_token, role_for


# Monday
FIXED_NOW = datetime(2024, 1, 1, 9, 30)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    """Create a database session for testing"""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def clock():
    """Mutable request clock: set clock['now'] to move time forward."""
    return {"now": FIXED_NOW}


@pytest.fixture
def client(db: Session, clock):
    """Create test client with database and clock overrides"""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_now] = lambda: clock["now"]
    # No context manager: the lifespan hook would create tables in the default database
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_org(db: Session, name: str = "Acme Labs", email: str = None, is_wrangler: bool = False) -> OrganizationDB:
    org = OrganizationDB(
        id=str(uuid4()),
        name=name,
        email=email or f"{uuid4().hex[:8]}@example.org",
        is_wrangler=is_wrangler,
    )
    db.add(org)
    db.commit()
    return org


def make_project(db: Session, name: str = "River Survey") -> ProjectDB:
    project = ProjectDB(id=str(uuid4()), name=name, description="Test project")
    db.add(project)
    db.commit()
    return project


def auth_headers(org: OrganizationDB) -> dict:
    token = create_access_token(org.id, org.email, role_for(org))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def wrangler(db: Session) -> OrganizationDB:
    return make_org(db, name="Data Team", email="wrangler@example.org", is_wrangler=True)


@pytest.fixture
def wrangler_headers(wrangler) -> dict:
    return auth_headers(wrangler)


@pytest.fixture
def org_factory(db: Session):
    return lambda **kwargs: make_org(db, **kwargs)


@pytest.fixture
def project_factory(db: Session):
    return lambda **kwargs: make_project(db, **kwargs)


@pytest.fixture
def headers_for():
    return auth_headers
