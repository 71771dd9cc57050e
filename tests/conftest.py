"""Global test fixtures."""

import os
import tempfile

# Settings are read at import time by chaseclips.models.base; point them at
# a throwaway SQLite file before any test module imports the package
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="chaseclips-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DATA_DIR}/api.db")
os.environ.setdefault("TWITCH_CLIENT_ID", "test-client-id")
os.environ.setdefault("TWITCH_CLIENT_SECRET", "test-client-secret")

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from chaseclips.models.base import Base  # noqa: E402
from chaseclips.models import clip, collection_run, streamer  # noqa: E402,F401

from tests.helpers import FakeHelix  # noqa: E402


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def helix() -> FakeHelix:
    return FakeHelix()
