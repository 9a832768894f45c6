"""Pytest configuration and fixtures. Every test gets a fresh in-memory SQLite database."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import rfi_access.models  # noqa: F401 - register tables
from rfi_access.auth import create_access_token
from rfi_access.config import Settings
from rfi_access.core.runtime import Runtime, build_runtime, get_runtime
from rfi_access.database import Base, get_db
from rfi_access.models.project import Contact, Project, ProjectStakeholder
from rfi_access.models.user import User, UserRole
from rfi_access.services.event_bus import EventBus
from rfi_access.services.notifications import NotificationGateway


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def published(bus):
    """Every event published on `bus`, in order."""
    events = []
    bus.subscribe_all(events.append)
    return events


# ---------- Factories ----------


@pytest.fixture
def make_user(db):
    def _make(email="user@example.com", role=UserRole.USER.value, active=True, full_name="Test User"):
        user = User(email=email, role=role, active=active, full_name=full_name)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_project(db):
    def _make(project_number="P-1001", name="North Plant Expansion", client_id="client-1"):
        project = Project(project_number=project_number, name=name, client_id=client_id)
        db.add(project)
        db.commit()
        db.refresh(project)
        return project
    return _make


@pytest.fixture
def make_contact(db):
    def _make(email="jane@contractor.example.com", name="Jane Field", client_id="client-1"):
        contact = Contact(email=email, name=name, client_id=client_id)
        db.add(contact)
        db.commit()
        db.refresh(contact)
        return contact
    return _make


@pytest.fixture
def add_stakeholder(db):
    def _add(contact, project, level=1):
        row = ProjectStakeholder(contact_id=contact.id, project_id=project.id, stakeholder_level=level)
        db.add(row)
        db.commit()
        return row
    return _add


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", role=UserRole.ADMIN.value, full_name="Site Admin")


# ---------- API ----------


@pytest.fixture
def runtime() -> Runtime:
    return build_runtime(NotificationGateway(Settings(email_provider="log")))


@pytest.fixture
def client(session_factory, runtime):
    from rfi_access.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_runtime] = lambda: runtime
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email)}"}
    return _headers


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a file-backed SQLite database, each with its own connection."""
    eng = create_engine(f"sqlite:///{tmp_path / 'concurrency.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(eng)
    yield sessionmaker(autocommit=False, autoflush=False, bind=eng)
    eng.dispose()
