import os
import time
import pytest
import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

# Set required environment variables for testing
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-jwt-secret-for-testing-only-32b"
os.environ["SITE_URL"] = "https://trackly.example"
os.environ["CORS_ORIGINS"] = "https://preview.trackly.example"
os.environ["RESEND_API_KEY"] = ""
os.environ["RESEND_FROM"] = ""

from trackly.main import app
from trackly.config import settings
from trackly.database import get_db
from trackly.dependencies import get_mailer
from trackly.models.base import Base
from trackly.models.household import HouseholdMember, HouseholdRole
from trackly.models.profile import Profile, OnboardingStatus
from trackly.models.task import Task
from trackly.repositories.household_repository import HouseholdRepository
from trackly.security import Caller
from trackly.services.email_service import InviteMailer

SITE_ORIGIN = "https://trackly.example"


def make_access_token(user_id, email=None, metadata=None, expires_in=3600, secret=None):
    """Mint an identity-provider style access token."""
    payload = {
        "sub": user_id,
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
    }
    if email:
        payload["email"] = email
    if metadata is not None:
        payload["user_metadata"] = metadata
    return jwt.encode(payload, secret or settings.JWT_SECRET, algorithm="HS256")


def auth_headers_for(user_id, **kwargs):
    return {"Authorization": f"Bearer {make_access_token(user_id, **kwargs)}"}


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
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
def db_session(engine):
    """Database session shared by the test and the app under test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: InviteMailer(api_key="", sender="")
    yield session

    session.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(db_session):
    """TestClient that sends an allowed Origin by default."""
    with TestClient(app, headers={"Origin": SITE_ORIGIN}) as c:
        yield c


@pytest.fixture
def owner():
    return Caller(id="user-owner", email="owner@example.com", metadata={"full_name": "Olive Owner"})


@pytest.fixture
def partner():
    return Caller(id="user-partner", email="p@example.com")


@pytest.fixture
def outsider():
    return Caller(id="user-outsider", email="outsider@example.com")


@pytest.fixture
def household(db_session, owner):
    """Household 'Casa' owned by the owner fixture."""
    return HouseholdRepository(db_session).create_with_owner("Casa", owner.id)


@pytest.fixture
def add_member(db_session):
    """Insert a membership row directly."""
    def _add(household_id, user_id, role=HouseholdRole.MEMBER):
        db_session.add(HouseholdMember(household_id=household_id, user_id=user_id, role=role))
        db_session.commit()
    return _add


@pytest.fixture
def add_profile(db_session):
    def _add(user_id, display_name="Someone", status=OnboardingStatus.NEW):
        db_session.add(Profile(user_id=user_id, display_name=display_name, onboarding_status=status))
        db_session.commit()
    return _add


@pytest.fixture
def auth_headers():
    """Build Authorization headers for an arbitrary user id."""
    return auth_headers_for


@pytest.fixture
def add_task(db_session):
    """Insert a task row directly."""
    def _add(household_id, title, created_by, **fields):
        task = Task(household_id=household_id, title=title, created_by_user_id=created_by, **fields)
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task
    return _add
