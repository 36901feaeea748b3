"""MongoDB/Beanie fixtures for testing.

Tests using these fixtures are skipped unless MONGO_URL_FLC_PRIMARY points at
a reachable MongoDB (the test container sets it).
"""

import os
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.schemas import DOCUMENT_MODELS

# All Beanie document models
BEANIE_MODELS = list(DOCUMENT_MODELS)


@pytest.fixture(scope="session")
def mongo_url() -> str:
    """Get MongoDB URL for testing from MONGO_URL_FLC_PRIMARY."""
    url = os.environ.get("MONGO_URL_FLC_PRIMARY")
    if not url:
        pytest.skip("MONGO_URL_FLC_PRIMARY environment variable not set for tests.")
    return url


@pytest.fixture(scope="session")
def test_db_name() -> str:
    """Get test database name."""
    return "beanie_test_db"


@pytest_asyncio.fixture(scope="function")
async def mongo_client(mongo_url: str) -> AsyncGenerator[AsyncIOMotorClient, None]:
    """Create MongoDB client for testing (function-scoped to avoid event loop issues)."""
    client: AsyncIOMotorClient = AsyncIOMotorClient(mongo_url)
    yield client
    client.close()


@pytest_asyncio.fixture(scope="function")
async def beanie_db(
    mongo_client: AsyncIOMotorClient,
    test_db_name: str,
) -> AsyncGenerator[AsyncIOMotorDatabase, None]:
    """Initialize Beanie with the test database."""
    db = mongo_client[test_db_name]

    await init_beanie(
        database=db,  # type: ignore[arg-type]
        document_models=BEANIE_MODELS,
    )

    yield db


@pytest_asyncio.fixture(autouse=False)
async def clear_collections(beanie_db: AsyncIOMotorDatabase) -> None:
    """
    Clear all collections before each test.

    Usage:
        @pytest.mark.usefixtures("clear_collections")
        async def test_something(beanie_db):
            ...
    """
    for model in BEANIE_MODELS:
        await model.get_motor_collection().delete_many({})
