"""
Product service — existence checks and ownership reads for Product.

``validate_product_by_id`` is the product half of purchase validation in
``UserService.buy_product``.
"""
import logging

from storefront.exceptions import ProductNotFound, UserNotFound
from storefront.models import Product
from storefront.stores import ProductStore, UserStore

logger = logging.getLogger(__name__)


def _product_to_dict(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "user_id": product.user_id,
        "created_at": product.created_at.isoformat() if product.created_at else None,
    }


class ProductService:
    def __init__(self, product_store: ProductStore, user_store: UserStore) -> None:
        self._products = product_store
        self._users = user_store

    async def validate_product_by_id(self, product_id: int) -> None:
        """Raise ``ProductNotFound`` unless *product_id* exists."""
        product = await self._products.find_by_id(product_id)
        if product is None:
            raise ProductNotFound()

    async def find_by_user_id(self, user_id: int) -> list[Product]:
        return await self._products.find_by_user_id(user_id)

    async def get_product(self, product_id: int) -> dict | None:
        """Return the product dict, or None when it does not exist."""
        product = await self._products.find_by_id(product_id)
        if product is None:
            return None
        return _product_to_dict(product)

    async def create_product(self, name: str, user_id: int) -> dict:
        """
        Create a product listed by *user_id*.

        The owner is checked up front so an unknown user yields
        ``UserNotFound`` on every backend, including ones that do not
        enforce foreign keys.
        """
        owner = await self._users.find_by_id(user_id, fields=["id"])
        if owner is None:
            raise UserNotFound()

        product = await self._products.save(
            self._products.create(name=name, user_id=user_id)
        )
        logger.info("Product %d listed by user %d", product.id, user_id)
        return _product_to_dict(product)
