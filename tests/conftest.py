import os

# Settings are read at import time, so the environment has to be in place
# before any application module is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256-signing")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.config import settings  # noqa: E402
from core.logger import logger  # noqa: E402
from database import Base, get_db  # noqa: E402
from main import app  # noqa: E402
import models.user  # noqa: F401, E402
import models.ticket  # noqa: F401, E402

# One in-memory database shared by every connection of the test run
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db

DEFAULT_PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def _schema():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(autouse=True)
def _uploads(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def log_records(caplog):
    """The app logger does not propagate to root, so hook caplog onto it directly."""
    logger.addHandler(caplog.handler)
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)


def signup_payload(**overrides) -> dict:
    payload = {
        "name": "Test User",
        "dept": "Finance",
        "designation": "Analyst",
        "email": "user@example.com",
        "contactNumber": "555-0100",
        "employeeNumber": "E-0001",
        "role": "employee",
        "password": DEFAULT_PASSWORD,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_user(client):
    """Sign up an account through the API and return its id, token and headers."""
    counter = {"n": 0}

    def _make(role: str = "employee", **overrides) -> dict:
        counter["n"] += 1
        n = counter["n"]
        payload = signup_payload(
            name=overrides.pop("name", f"{role.title()} {n}"),
            email=overrides.pop("email", f"{role}{n}@example.com"),
            employeeNumber=overrides.pop("employeeNumber", f"{role[0].upper()}-{n:04d}"),
            role=role,
            **overrides,
        )
        r = client.post("/users", json=payload)
        assert r.status_code == 201, r.text
        body = r.json()
        return {
            "id": body["user"]["id"],
            "email": payload["email"],
            "password": payload["password"],
            "token": body["token"],
            "headers": {"Authorization": f"Bearer {body['token']}"},
        }

    return _make


@pytest.fixture
def employee(make_user):
    return make_user("employee", name="Alice Employee")


@pytest.fixture
def other_employee(make_user):
    return make_user("employee", name="Bob Employee")


@pytest.fixture
def admin(make_user):
    return make_user("admin", name="Carol Admin")


@pytest.fixture
def create_ticket(client):
    def _create(user: dict, **overrides) -> dict:
        body = {
            "issueType": "hardware",
            "subIssue": "printer",
            "priority": "high",
            "description": "printer jam",
        }
        body.update(overrides)
        r = client.post("/tickets", json=body, headers=user["headers"])
        assert r.status_code == 201, r.text
        return r.json()

    return _create
