"""Shared fixtures: in-memory database, app client and users"""
import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("AIRTABLE_ENCRYPTION_KEY", "test-encryption-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sheetdash.auth import Identity, get_identity
from sheetdash.db.models import Base, Project, Spreadsheet, User
from sheetdash.db.session import get_db
from sheetdash.main import app
from sheetdash.sheets import Sheet, Workbook


@pytest.fixture
def engine():
    """SQLite engine shared by every connection of one test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    """Factory storing a user for a Clerk id"""
    def _make(clerk_id: str, name: str) -> User:
        user = User(clerk_id=clerk_id, name=name, email=f"{clerk_id}@example.com")
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("user_alice", "Alice")


@pytest.fixture
def bob(make_user):
    return make_user("user_bob", "Bob")


def identity_for(user: User) -> Identity:
    return Identity(subject=user.clerk_id)


@pytest.fixture
def make_spreadsheet(db):
    """Factory storing a project and a spreadsheet owned by ``user``"""
    def _make(user: User, workbook: Workbook = None, name: str = "Budget") -> Spreadsheet:
        project = Project(owner_id=user.id, name=f"{name} project")
        db.add(project)
        db.flush()
        spreadsheet = Spreadsheet(
            project_id=project.id,
            owner_id=user.id,
            name=name,
            data=(workbook or Workbook(sheets=[Sheet()])).dumps()
        )
        db.add(spreadsheet)
        db.commit()
        db.refresh(spreadsheet)
        return spreadsheet
    return _make


@pytest.fixture
def current_identity():
    """Mutable holder for the identity the app sees"""
    return {"identity": None}


@pytest.fixture
def login(current_identity):
    def _login(user):
        current_identity["identity"] = identity_for(user) if user is not None else None
    return _login


@pytest.fixture
def client(db, current_identity):
    """Test client bound to the test session and identity"""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity] = lambda: current_identity["identity"]
    yield TestClient(app)
    app.dependency_overrides.clear()
