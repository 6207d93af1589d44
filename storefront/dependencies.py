"""
FastAPI dependency providers that wire stores and services together.

Every provider is resolved per request, so tests can swap any layer via
``app.dependency_overrides`` (the session factory and the codec are the
usual candidates).
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.database import get_session_factory
from storefront.security import BcryptCodec
from storefront.services.product_service import ProductService
from storefront.services.user_service import UserService
from storefront.stores import SqlProductStore, SqlUserStore

_codec = BcryptCodec()


def get_credential_codec() -> BcryptCodec:
    return _codec


def get_product_service(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> ProductService:
    return ProductService(SqlProductStore(sessions), SqlUserStore(sessions))


def get_user_service(
    sessions: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    codec: BcryptCodec = Depends(get_credential_codec),
) -> UserService:
    product_store = SqlProductStore(sessions)
    user_store = SqlUserStore(sessions)
    return UserService(
        user_store,
        product_store,
        ProductService(product_store, user_store),
        codec,
    )
