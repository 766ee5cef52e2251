"""Pytest configuration and shared fixtures."""
import os

# Must be set before tienda_api.core.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["STORE_BACKEND"] = "memory"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["REDIS_LOCKS_ENABLED"] = "false"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from tienda_api.infrastructure.memory import MemoryStore
from tienda_api.infrastructure.store import get_document_store

PRODUCTS = "products"
USERS = "users"

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _product(nombre, precio, categoria, stock, minutes, activo=True, descripcion=""):
    stamp = T0 + timedelta(minutes=minutes)
    return {
        "nombre": nombre,
        "precio": precio,
        "categoria": categoria,
        "stock": stock,
        "descripcion": descripcion,
        "activo": activo,
        "fechaCreacion": stamp,
        "fechaActualizacion": stamp,
    }


def _user(nombre, email, edad, categoria, minutes, activo=True, descripcion=""):
    stamp = T0 + timedelta(minutes=minutes)
    return {
        "nombre": nombre,
        "email": email,
        "password": "not-a-bcrypt-hash",
        "edad": edad,
        "categoria": categoria,
        "descripcion": descripcion,
        "activo": activo,
        "fechaCreacion": stamp,
        "fechaActualizacion": stamp,
    }


@pytest.fixture
def store():
    """Empty in-memory document store."""
    return MemoryStore()


@pytest.fixture
def catalog(store):
    """Store seeded with four active products and one soft-deleted one."""
    store.seed(PRODUCTS, "p1", _product("Café Especial", 12.5, "Bebidas", 10, 1, descripcion="Tostado medio"))
    store.seed(PRODUCTS, "p2", _product("Mouse", 25, "Perifericos", 5, 2))
    store.seed(PRODUCTS, "p3", _product("Teclado Mecánico", 80, "Perifericos", 0, 3))
    store.seed(PRODUCTS, "p4", _product("Té Verde", 8, "Bebidas", 20, 4, descripcion="Infusión"))
    store.seed(PRODUCTS, "p5", _product("Monitor", 150, "Pantallas", 3, 5, activo=False))
    return store


@pytest.fixture
def people(store):
    """Store seeded with three active users and one soft-deleted one."""
    store.seed(USERS, "u1", _user("Álvaro Núñez", "alvaro@example.com", 34, "cliente", 1))
    store.seed(USERS, "u2", _user("Beatriz Sol", "bea@example.com", 27, "admin", 2, descripcion="Gestión de catálogo"))
    store.seed(USERS, "u3", _user("Carlos Ruiz", "carlos@example.com", 45, "cliente", 3))
    store.seed(USERS, "u4", _user("Dora Gil", "dora@example.com", 51, "cliente", 4, activo=False))
    return store


@pytest.fixture
def test_client(store):
    """FastAPI test client backed by the in-memory store."""
    from main import app

    app.dependency_overrides[get_document_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_token():
    from tienda_api.core.security import create_access_token
    return create_access_token("test_user_001", "test@example.com")


@pytest.fixture
def authenticated_client(test_client, auth_token):
    """Test client sending a valid bearer token."""
    test_client.headers.update({"Authorization": f"Bearer {auth_token}"})
    return test_client
