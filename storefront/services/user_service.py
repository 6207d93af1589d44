"""
User service — registration, login, ownership queries and purchase
validation for the User aggregate.

Design notes
------------
- Emails are lower-cased before every lookup and before storage, which
  makes uniqueness case-insensitive.
- Registration checks for an existing email first, but the store's
  unique constraint is what actually settles concurrent registrations;
  a violation surfaces as the same ``UserAlreadyExists``.
- Password digests never leave this module: none of the dicts returned
  here carry a ``password`` key.
- bcrypt is CPU bound, so hashing and verification run in a worker
  thread via ``asyncio.to_thread``.
"""
import asyncio
import logging

from storefront.exceptions import (
    EmailNotFound,
    InvalidCredential,
    ServiceError,
    UserAlreadyExists,
    UserNotFound,
)
from storefront.models import Product, User
from storefront.security import BcryptCodec
from storefront.services.product_service import ProductService, _product_to_dict
from storefront.stores import ProductStore, UserStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _user_to_dict(user: User) -> dict:
    """Serialise a fully loaded User ORM instance (password excluded)."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def _normalize_email(email: str) -> str:
    return email.lower()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class UserService:
    def __init__(
        self,
        user_store: UserStore,
        product_store: ProductStore,
        product_validator: ProductService,
        codec: BcryptCodec,
    ) -> None:
        self._users = user_store
        self._products = product_store
        self._product_validator = product_validator
        self._codec = codec

    async def register(self, name: str, email: str, password: str) -> dict:
        """
        Register a new user and return the persisted record.

        Raises ``UserAlreadyExists`` when the (case-insensitive) email is
        already registered.
        """
        email = _normalize_email(email)

        # Only the email column is loaded for the existence check.
        existing = await self._users.find_by_email(email, fields=["email"])
        if existing is not None:
            logger.warning("Registration rejected: email already registered")
            raise UserAlreadyExists()

        digest = await asyncio.to_thread(self._codec.hash, password)
        user = self._users.create(name=name, email=email, password=digest)
        user = await self._users.save(user)

        logger.info("Registered user %d", user.id)
        return _user_to_dict(user)

    async def login(self, email: str, password: str) -> dict:
        """
        Verify credentials and return the user without its password.

        Raises ``EmailNotFound`` for an unknown email and
        ``InvalidCredential`` for a wrong password.
        """
        email = _normalize_email(email)
        user = await self._users.find_by_email(
            email, fields=["id", "email", "name", "password"]
        )
        if user is None:
            logger.warning("Login failed: unknown email")
            raise EmailNotFound()

        valid = await asyncio.to_thread(self._codec.verify, password, user.password)
        if not valid:
            logger.warning("Login failed for user %d: wrong password", user.id)
            raise InvalidCredential()

        return {"id": user.id, "name": user.name, "email": user.email}

    async def list_products_owned_by(self, user_id: int) -> list[Product]:
        """Products listed by *user_id*; an unknown user simply owns nothing."""
        return await self._products.find_by_user_id(user_id)

    async def get_user_with_products(self, user_id: int) -> dict | None:
        """
        Return the user detail dict with its products attached.

        Returns None when the user does not exist.
        """
        user = await self._users.find_by_id(user_id, with_products=True)
        if user is None:
            return None

        data = _user_to_dict(user)
        data["products"] = [_product_to_dict(p) for p in user.products]
        return data

    async def find_by_user_id(self, user_id: int) -> dict:
        """Raise ``UserNotFound`` unless *user_id* exists."""
        user = await self._users.find_by_id(user_id, fields=["id"])
        if user is None:
            raise UserNotFound()
        return {"id": user.id}

    async def buy_product(self, product_id: int, user_id: int) -> None:
        """
        Check that both the product and the buyer exist.

        The two lookups run concurrently.  When both fail the product
        error is raised; unexpected (non-service) errors win over both.
        No purchase is recorded.
        """
        outcomes = await asyncio.gather(
            self._product_validator.validate_product_by_id(product_id),
            self.find_by_user_id(user_id),
            return_exceptions=True,
        )
        failures = [o for o in outcomes if isinstance(o, BaseException)]
        for failure in failures:
            if not isinstance(failure, ServiceError):
                raise failure
        if failures:
            raise failures[0]

        logger.info("Purchase of product %d by user %d validated", product_id, user_id)
