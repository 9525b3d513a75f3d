"""Service provider helpers for wiring repositories and services with ports.

The store is built once per process from ``Settings``: the Elasticsearch
adapter by default, or the in-process ``InMemoryStore`` when
``CATALOG_STORE=memory``. Route handlers receive repositories and the
order service through these functions (as FastAPI dependencies), so tests
can swap implementations with ``app.dependency_overrides``.
"""

from functools import lru_cache

from .adapters import InMemoryStore
from .domain import DocumentStorePort, OrderService
from .es_adapters import ElasticsearchStore
from .indexes import IndexManager
from .repository import Repositories, repositories
from .settings import Settings, load_settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


@lru_cache(maxsize=1)
def get_store() -> DocumentStorePort:
    """Return the process-wide document store."""
    settings = get_settings()
    if settings.store_backend == "memory":
        return InMemoryStore()
    return ElasticsearchStore.from_settings(settings)


@lru_cache(maxsize=1)
def get_index_manager() -> IndexManager:
    return IndexManager(get_store())


def get_repositories() -> Repositories:
    return repositories(get_store(), get_index_manager())


def get_order_service() -> OrderService:
    """Return an OrderService wired with the three repositories."""
    repos = get_repositories()
    return OrderService(orders=repos.orders, products=repos.products, customers=repos.customers)
