import pytest
import pytest_asyncio
from pymongo import AsyncMongoClient, MongoClient
from pymongo.errors import PyMongoError

from mapify import disable_tracing

MONGO_URI = "mongodb://localhost:27017"
MONGO_DB = "mapify_test"


@pytest.fixture(autouse=True)
def reset_tracing():
    """Reset observability state between tests."""
    yield
    disable_tracing()


@pytest.fixture
def mongo_db():
    """Blocking test database, dropped after each test. Skips without a server."""
    client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=500)
    try:
        client.admin.command("ping")
    except PyMongoError:
        client.close()
        pytest.skip("MongoDB is not available on localhost:27017")
    db = client[MONGO_DB]
    yield db
    client.drop_database(MONGO_DB)
    client.close()


@pytest_asyncio.fixture
async def async_mongo_db():
    """Async test database, dropped after each test. Skips without a server."""
    client = AsyncMongoClient(MONGO_URI, serverSelectionTimeoutMS=500)
    try:
        await client.admin.command("ping")
    except PyMongoError:
        await client.close()
        pytest.skip("MongoDB is not available on localhost:27017")
    db = client[MONGO_DB]
    yield db
    await client.drop_database(MONGO_DB)
    await client.close()
