import os
import warnings

import pytest

# Ignore warnings from app.shared
warnings.filterwarnings("ignore", category=DeprecationWarning, module="app.shared.*")

# Test environment: no real LiveKit or cache backend is reachable
os.environ.update(
    {
        "DEBUG": "true",
        "SESSION_SECRET": "test-session-secret",
        "LIVEKIT_API_TIMEOUT_SECONDS": "2",
    }
)

from tests.fixtures.fakes import (  # noqa: E402
    FakeLivekitService,
    FakeRedis,
    FakeStreamRepository,
)

# Import database fixtures so they are available to all tests
from tests.fixtures.mongo_fixtures import *  # noqa: E402, F403
from tests.fixtures.redis_fixtures import *  # noqa: E402, F403


@pytest.fixture
def fake_livekit() -> FakeLivekitService:
    return FakeLivekitService()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_streams() -> FakeStreamRepository:
    return FakeStreamRepository("u.alice", "u.bob")
