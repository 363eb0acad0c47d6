import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from room_design.storage.memory_store import InMemoryKeyValueStore
from room_design.storage.sqlalchemy_store import SQLAlchemyKeyValueStore

SQLITE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def sql_store():
    engine = create_async_engine(SQLITE_URL, poolclass=StaticPool, connect_args={"check_same_thread": False})
    store = SQLAlchemyKeyValueStore(engine=engine)
    await store.create_schema()
    yield store
    await store.close()


@pytest.fixture(params=["memory", "sqlalchemy"])
def kv_store(request):
    """Every backend must honour the same key-value contract."""
    if request.param == "memory":
        yield InMemoryKeyValueStore()
    else:
        yield request.getfixturevalue("sql_store")
