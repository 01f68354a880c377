"""
Pytest fixtures - in-memory DB, services with a pinned clock, API client with fake collaborators.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from lendoo.core.clock import fixed_clock
from lendoo.core.dependencies import (
    get_blob_storage,
    get_clock,
    get_item_cache,
    get_search_indexer,
)
from lendoo.core.exceptions import TransientError
from lendoo.core.security import create_access_token
from lendoo.db.base import Base
from lendoo.db.models import User
from lendoo.db.repositories import (
    CartRepository,
    ItemRepository,
    LoanRepository,
    UserRepository,
)
from lendoo.db.session import get_db
from lendoo.main import app
from lendoo.schemas.item import ItemCreate
from lendoo.services.cart_service import CartService
from lendoo.services.catalog_service import CatalogService
from lendoo.services.loan_service import LoanService
from lendoo.services.reconciliation_service import ReconciliationService

TEST_DATABASE_URL = "sqlite+aiosqlite://"

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class FakeItemCache:
    def __init__(self):
        self.docs = {}
        self.invalidated = []

    async def get(self, item_id):
        return self.docs.get(item_id)

    async def set(self, item_id, doc):
        self.docs[item_id] = doc

    async def invalidate(self, item_id):
        self.invalidated.append(item_id)
        self.docs.pop(item_id, None)


class RecordingIndexer:
    def __init__(self):
        self.changed = []
        self.removed = []

    def item_changed(self, item):
        self.changed.append(item.id)

    def item_removed(self, item_id):
        self.removed.append(item_id)


class FakeBlobStorage:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads = []

    async def upload(self, data: bytes, content_type: str) -> str:
        if self.fail:
            raise TransientError("blob storage unreachable")
        self.uploads.append((data, content_type))
        return f"https://blobs.test/item-images/item_{len(self.uploads)}.jpg"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT support
    @event.listens_for(engine.sync_engine, "connect")
    def _no_implicit_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncGenerator[AsyncSession, None]:
    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )
    async with async_session() as s:
        yield s


@pytest.fixture
def clock():
    return fixed_clock(NOW)


@pytest.fixture
def item_cache():
    return FakeItemCache()


@pytest.fixture
def indexer():
    return RecordingIndexer()


@pytest.fixture
def blob_storage():
    return FakeBlobStorage()


async def _make_user(session: AsyncSession, email: str, name: str) -> User:
    return await UserRepository(session).add(User(email=email, display_name=name))


@pytest_asyncio.fixture
async def owner(session) -> User:
    return await _make_user(session, "owner@example.com", "Olivia Owner")


@pytest_asyncio.fixture
async def borrower(session) -> User:
    return await _make_user(session, "borrower@example.com", "Bruno Borrower")


@pytest_asyncio.fixture
async def other_borrower(session) -> User:
    return await _make_user(session, "second@example.com", "Sam Second")


@pytest.fixture
def catalog(session, item_cache, indexer, blob_storage) -> CatalogService:
    return CatalogService(
        ItemRepository(session),
        UserRepository(session),
        storage=blob_storage,
        cache=item_cache,
        indexer=indexer,
    )


@pytest.fixture
def loans(session, catalog, clock) -> LoanService:
    return LoanService(LoanRepository(session), catalog, clock=clock)


@pytest.fixture
def cart(session, loans, clock) -> CartService:
    return CartService(CartRepository(session), ItemRepository(session), loans, clock=clock)


@pytest.fixture
def views(session, clock) -> ReconciliationService:
    return ReconciliationService(LoanRepository(session), clock=clock)


@pytest.fixture
def make_item(catalog, owner):
    """Factory: list an item owned by ``owner`` (or another user)."""

    async def _make(price="10.00", quantity=1, deposit="50.00", owner_id=None, **extra):
        data = ItemCreate(
            name=extra.pop("name", "Cordless drill"),
            description=extra.pop("description", "18V drill with two batteries"),
            daily_price=Decimal(price),
            deposit_amount=Decimal(deposit),
            quantity=quantity,
            **extra,
        )
        return await catalog.add_item(owner_id or owner.id, data)

    return _make


@pytest_asyncio.fixture
async def client(session, clock, item_cache, indexer, blob_storage):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_item_cache] = lambda: item_cache
    app.dependency_overrides[get_search_indexer] = lambda: indexer
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


def auth_headers_for(user: User) -> dict:
    token = create_access_token(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner_headers(owner) -> dict:
    return auth_headers_for(owner)


@pytest.fixture
def borrower_headers(borrower) -> dict:
    return auth_headers_for(borrower)


@pytest.fixture
def other_headers(other_borrower) -> dict:
    return auth_headers_for(other_borrower)
