"""FastAPI dependency providers wiring repositories and services to the shared store."""
from fastapi import Depends

from tienda_api.core.config import settings
from tienda_api.infrastructure.redis import KeyLock, get_key_lock
from tienda_api.infrastructure.repositories import ProductRepository, UserRepository
from tienda_api.infrastructure.store import DocumentStore, get_document_store
from tienda_api.services.auth import AuthService
from tienda_api.services.products import ProductService
from tienda_api.services.statistics import StatisticsService
from tienda_api.services.users import UserService


def get_user_repository(store: DocumentStore = Depends(get_document_store)) -> UserRepository:
    return UserRepository(store, settings.users_collection)


def get_product_repository(store: DocumentStore = Depends(get_document_store)) -> ProductRepository:
    return ProductRepository(store, settings.products_collection)


def get_user_service(
    repo: UserRepository = Depends(get_user_repository),
    lock: KeyLock = Depends(get_key_lock),
) -> UserService:
    return UserService(repo, lock)


def get_product_service(
    repo: ProductRepository = Depends(get_product_repository),
    lock: KeyLock = Depends(get_key_lock),
) -> ProductService:
    return ProductService(repo, lock)


def get_auth_service(repo: UserRepository = Depends(get_user_repository)) -> AuthService:
    return AuthService(repo)


def get_statistics_service(
    users: UserService = Depends(get_user_service),
    products: ProductService = Depends(get_product_service),
) -> StatisticsService:
    return StatisticsService(users, products)
