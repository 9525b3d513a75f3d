# Shared fixtures: every test runs against the in-process store
import os

import pytest
from fastapi.testclient import TestClient

# catalog.main reads settings on import, before any fixture runs
os.environ.setdefault("CATALOG_STORE", "memory")

from catalog import providers
from catalog.adapters import InMemoryStore
from catalog.domain import OrderService
from catalog.indexes import IndexManager
from catalog.main import app
from catalog.repository import repositories


@pytest.fixture(autouse=True)
def use_memory_store(monkeypatch):
    monkeypatch.setenv("CATALOG_STORE", "memory")
    for cached in (providers.get_settings, providers.get_store, providers.get_index_manager):
        cached.cache_clear()
    yield
    for cached in (providers.get_settings, providers.get_store, providers.get_index_manager):
        cached.cache_clear()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def repos(store):
    return repositories(store, IndexManager(store))


@pytest.fixture
def service(repos):
    return OrderService(orders=repos.orders, products=repos.products, customers=repos.customers)


@pytest.fixture
def client(store, repos, service):
    app.dependency_overrides[providers.get_store] = lambda: store
    app.dependency_overrides[providers.get_repositories] = lambda: repos
    app.dependency_overrides[providers.get_order_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
