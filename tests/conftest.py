import os
from datetime import datetime, timedelta, timezone

# Configuration is read at import time, so set it before importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "access-secret-for-tests-only-0123456789abcdef")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "refresh-secret-for-tests-only-0123456789abcdef")
os.environ.setdefault("ACCESS_TOKEN_TTL", "30")
os.environ.setdefault("REFRESH_TOKEN_TTL", "60")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:1866")

import pytest  # noqa: E402

from api import create_app  # noqa: E402
from models import storage  # noqa: E402
from models.refresh_session import RefreshSession  # noqa: E402
from models.session_store import RefreshSessionStore  # noqa: E402
from models.user import User  # noqa: E402
from utils.security import hash_password  # noqa: E402


class FakeClock:
    """Controllable UTC clock shared by codecs, store checks and the manager."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture(autouse=True)
def clean_tables():
    session = storage.get_session()
    session.query(RefreshSession).delete()
    session.query(User).delete()
    storage.save()
    yield
    storage.rollback()
    storage.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(clock):
    return create_app("test", clock=clock)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def lifecycle(app):
    return app.extensions["token_lifecycle"]


@pytest.fixture
def store():
    return RefreshSessionStore(storage)


@pytest.fixture
def demo_user():
    user = User(login="demo", password_hash=hash_password("demo"))
    user.save()
    return user
