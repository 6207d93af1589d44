"""
Persistence gateways for the User and Product aggregates.

Design notes
------------
- ``UserStore`` / ``ProductStore`` are the contracts the services depend
  on; the SQL implementations below are what the app wires in, tests may
  substitute in-memory ones.
- Every lookup returns the ORM instance or ``None``.  Callers must check
  for ``None`` before touching any attribute.
- The SQL stores hold an ``async_sessionmaker`` and open one session per
  call.  Returned instances are detached (``expire_on_commit=False``), so
  only the columns a query loaded may be read afterwards; ``fields``
  narrows a lookup to the named columns via ``load_only``.
- ``create`` only builds a transient instance, ``save`` persists it.
"""
from abc import ABC, abstractmethod
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import load_only, selectinload

from storefront.exceptions import UserAlreadyExists, UserNotFound
from storefront.models import Product, User


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------

class UserStore(ABC):
    """Repository contract for the User aggregate."""

    @abstractmethod
    async def find_by_email(
        self, email: str, fields: Sequence[str] | None = None
    ) -> User | None:
        """Return the user whose stored email equals *email*."""

    @abstractmethod
    async def find_by_id(
        self,
        user_id: int,
        fields: Sequence[str] | None = None,
        with_products: bool = False,
    ) -> User | None:
        """Return the user with *user_id*, optionally with its products loaded."""

    def create(self, **values) -> User:
        """Build a new, not yet persisted, user."""
        return User(**values)

    @abstractmethod
    async def save(self, user: User) -> User:
        """
        Persist *user* and return it with generated columns populated.

        Raises ``UserAlreadyExists`` when the email is already stored;
        other integrity errors propagate unchanged.
        """


class ProductStore(ABC):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    async def find_by_id(self, product_id: int) -> Product | None:
        """Return the product with *product_id*."""

    @abstractmethod
    async def find_by_user_id(self, user_id: int) -> list[Product]:
        """Return every product owned by *user_id* (possibly empty)."""

    def create(self, **values) -> Product:
        """Build a new, not yet persisted, product."""
        return Product(**values)

    @abstractmethod
    async def save(self, product: Product) -> Product:
        """
        Persist *product* and return it with generated columns populated.

        Raises ``UserNotFound`` when the owning user does not exist.
        """


# ---------------------------------------------------------------------------
# SQLAlchemy implementations
# ---------------------------------------------------------------------------

def _columns(model, fields: Sequence[str] | None):
    return [getattr(model, name) for name in fields] if fields else []


class SqlUserStore(UserStore):
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def find_by_email(
        self, email: str, fields: Sequence[str] | None = None
    ) -> User | None:
        q = select(User).where(User.email == email)
        if fields:
            q = q.options(load_only(*_columns(User, fields)))

        async with self._sessions() as session:
            result = await session.execute(q)
            return result.scalar_one_or_none()

    async def find_by_id(
        self,
        user_id: int,
        fields: Sequence[str] | None = None,
        with_products: bool = False,
    ) -> User | None:
        q = select(User).where(User.id == user_id)
        if fields:
            q = q.options(load_only(*_columns(User, fields)))
        if with_products:
            # One extra SELECT ... IN for the collection instead of N lazy loads.
            q = q.options(selectinload(User.products))

        async with self._sessions() as session:
            result = await session.execute(q)
            return result.scalar_one_or_none()

    async def save(self, user: User) -> User:
        email = user.email
        async with self._sessions() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                # Only a clash on the email column means "already registered";
                # any other constraint failure is a genuine fault.
                taken = await session.scalar(select(User.id).where(User.email == email))
                if taken is not None:
                    raise UserAlreadyExists() from exc
                raise
            await session.refresh(user)
        return user


class SqlProductStore(ProductStore):
    def __init__(self, sessions: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = sessions

    async def find_by_id(self, product_id: int) -> Product | None:
        async with self._sessions() as session:
            result = await session.execute(select(Product).where(Product.id == product_id))
            return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: int) -> list[Product]:
        q = select(Product).where(Product.user_id == user_id).order_by(Product.id)
        async with self._sessions() as session:
            result = await session.execute(q)
            return list(result.scalars().all())

    async def save(self, product: Product) -> Product:
        owner_id = product.user_id
        async with self._sessions() as session:
            session.add(product)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                # The owner may have vanished since the caller checked for it.
                owner = await session.scalar(select(User.id).where(User.id == owner_id))
                if owner is None:
                    raise UserNotFound() from exc
                raise
            await session.refresh(product)
        return product
