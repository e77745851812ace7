from datetime import datetime, timedelta
import itertools

import pytest
from fastapi.testclient import TestClient

from medimate.core.database import Database
from medimate.core.security import UserRole, hash_password, issue_access_token
from medimate.main import create_app
from medimate.models.user import User

TEST_PASSWORD = "TestPassword123"

_email_counter = itertools.count(1)


class FakeRedis:
    """Dict-backed stand-in for the few Redis commands the rate limiter uses."""

    def __init__(self):
        self.data = {}

    def setex(self, key, time, value):
        self.data[key] = str(value)
        return True

    def get(self, key):
        return self.data.get(key)

    def incr(self, key):
        self.data[key] = str(int(self.data.get(key, 0)) + 1)
        return int(self.data[key])


def future_slot(days: int = 2, hour: int = 10, minute: int = 0) -> datetime:
    """A whole-minute UTC start time safely in the future."""
    base = datetime.utcnow() + timedelta(days=days)
    return base.replace(hour=hour, minute=minute, second=0, microsecond=0)


def make_user(db, role: UserRole, email: str = None) -> User:
    user = User(
        email=email or f"{role.value}{next(_email_counter)}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    token = issue_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token.access_token}"}


@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.db'}")
    database.connect()
    database.create_all()
    yield database
    database.disconnect()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(database, fake_redis):
    app = create_app(database=database, redis_client=fake_redis)
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def staff_user(db_session):
    return make_user(db_session, UserRole.STAFF)


@pytest.fixture
def doctor_user(db_session):
    return make_user(db_session, UserRole.DOCTOR)


@pytest.fixture
def other_doctor_user(db_session):
    return make_user(db_session, UserRole.DOCTOR)


@pytest.fixture
def patient_user(db_session):
    return make_user(db_session, UserRole.PATIENT)


@pytest.fixture
def other_patient_user(db_session):
    return make_user(db_session, UserRole.PATIENT)
