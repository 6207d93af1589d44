"""
Test infrastructure for the Storefront API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces every session to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- A fresh engine is built for every test and disposed afterwards.  The
  aiosqlite adapter guards its connection with an asyncio lock, and each
  test runs on its own event loop, so a connection must never outlive the
  test that opened it.
- Foreign keys are switched on (SQLite leaves them off by default) so the
  owner constraint on products behaves as it does on Postgres.
- The app's session factory dependency is overridden so the stores built
  for each request use the test engine rather than the production one.
- bcrypt runs at its minimum cost (4 rounds) so hashing does not dominate
  the suite's runtime.
- ``InMemoryUserStore`` / ``InMemoryProductStore`` implement the store
  contracts on plain dicts for service tests that need no database.
"""
import itertools
from collections.abc import Sequence

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from storefront.database import Base, get_session_factory
from storefront.dependencies import get_credential_codec
from storefront.exceptions import UserAlreadyExists
from storefront.main import app
from storefront.middleware import install_query_counter
from storefront.models import Product, User
from storefront.security import BcryptCodec
from storefront.services.product_service import ProductService
from storefront.services.user_service import UserService
from storefront.stores import ProductStore, SqlProductStore, SqlUserStore, UserStore

# ---------------------------------------------------------------------------
# Test database — SQLite in-memory with aiosqlite, one engine per test
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_codec = BcryptCodec(rounds=4)


def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Dependency override — a cheap codec (the session factory is set per test)
# ---------------------------------------------------------------------------

app.dependency_overrides[get_credential_codec] = lambda: test_codec


# ---------------------------------------------------------------------------
# In-memory stores
# ---------------------------------------------------------------------------

class InMemoryProductStore(ProductStore):
    def __init__(self) -> None:
        self.rows: dict[int, Product] = {}
        self._ids = itertools.count(1)

    async def find_by_id(self, product_id: int) -> Product | None:
        return self.rows.get(product_id)

    async def find_by_user_id(self, user_id: int) -> list[Product]:
        return [p for p in self.rows.values() if p.user_id == user_id]

    async def save(self, product: Product) -> Product:
        product.id = next(self._ids)
        self.rows[product.id] = product
        return product


class InMemoryUserStore(UserStore):
    def __init__(self, products: InMemoryProductStore) -> None:
        self.rows: dict[int, User] = {}
        self._products = products
        self._ids = itertools.count(1)

    async def find_by_email(
        self, email: str, fields: Sequence[str] | None = None
    ) -> User | None:
        return next((u for u in self.rows.values() if u.email == email), None)

    async def find_by_id(
        self,
        user_id: int,
        fields: Sequence[str] | None = None,
        with_products: bool = False,
    ) -> User | None:
        user = self.rows.get(user_id)
        if user is not None and with_products:
            user.products = await self._products.find_by_user_id(user_id)
        return user

    async def save(self, user: User) -> User:
        if any(u.email == user.email for u in self.rows.values()):
            raise UserAlreadyExists()
        user.id = next(self._ids)
        self.rows[user.id] = user
        return user


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Build an isolated in-memory database for the current test.

    Tables are created up front, the app is pointed at the new factory,
    and the engine is disposed once the test finishes.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    # Register the per-request SQL query counter on the test engine.
    install_query_counter(engine)

    sessions = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    app.dependency_overrides[get_session_factory] = lambda: sessions
    yield sessions

    app.dependency_overrides.pop(get_session_factory, None)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with session_factory() as session:
        yield session


@pytest.fixture
def codec() -> BcryptCodec:
    return test_codec


@pytest.fixture
def sql_user_store(session_factory) -> SqlUserStore:
    return SqlUserStore(session_factory)


@pytest.fixture
def sql_product_store(session_factory) -> SqlProductStore:
    return SqlProductStore(session_factory)


@pytest.fixture
def sql_user_service(sql_user_store, sql_product_store) -> UserService:
    """UserService wired to the SQL stores on the test engine."""
    return UserService(
        sql_user_store,
        sql_product_store,
        ProductService(sql_product_store, sql_user_store),
        test_codec,
    )


@pytest.fixture
def sql_product_service(sql_user_store, sql_product_store) -> ProductService:
    return ProductService(sql_product_store, sql_user_store)


@pytest.fixture
def memory_stores() -> tuple[InMemoryUserStore, InMemoryProductStore]:
    products = InMemoryProductStore()
    return InMemoryUserStore(products), products


@pytest.fixture
def memory_user_service(memory_stores) -> UserService:
    """UserService over in-memory stores; no database involved."""
    users, products = memory_stores
    return UserService(users, products, ProductService(products, users), test_codec)


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
