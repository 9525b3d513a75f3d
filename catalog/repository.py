"""Repository layer for the three entity collections.

One generic ``EntityRepository`` serves products, customers and orders. It
is parameterized by the collection's ``EntitySchema`` and by the entity
class, which knows how to turn itself into a store document and back.
"""

import logging
from dataclasses import dataclass, replace
from typing import Generic, List, Optional, Protocol, Type, TypeVar

from .domain import Customer, DeleteOutcome, DocumentStorePort, Order, Product, SortDirection, WriteOutcome
from .errors import DocumentNotFound, StoreInconsistency
from .indexes import CUSTOMERS, ORDERS, PRODUCTS, EntitySchema, IndexManager
from .queries import (
    SortClause,
    build_id_query,
    build_list_all_query,
    build_scoped_query,
    build_search_query,
)

logger = logging.getLogger("catalog.repository")


class Document(Protocol):
    id: Optional[str]

    def to_document(self) -> dict: ...

    @classmethod
    def from_document(cls, doc_id: str, source: dict): ...


E = TypeVar("E", bound=Document)


class EntityRepository(Generic[E]):
    """Persists one entity type in its own index.

    Every operation ensures the index exists first. Reads return entities
    whose ``id`` is the store identifier of the hit, whatever ``id`` the
    stored body may contain.
    """

    def __init__(self, store: DocumentStorePort, indexes: IndexManager, schema: EntitySchema, entity: Type[E]):
        self.store = store
        self.indexes = indexes
        self.schema = schema
        self.entity = entity

    @property
    def collection(self) -> str:
        return self.schema.collection

    def exists(self, doc_id: str) -> bool:
        return self.get(doc_id) is not None

    def get(self, doc_id: str) -> Optional[E]:
        self.indexes.ensure_index(self.schema)
        hits = self.store.search(self.collection, build_id_query(doc_id).to_dict())
        if not hits:
            return None
        return self.entity.from_document(hits[0].id, hits[0].source)

    def upsert(self, doc_id: str, entity: E, expected: WriteOutcome) -> E:
        """Write the full document under ``doc_id``.

        Raises:
            StoreInconsistency: The store created the document when an
                update was expected, or replaced one when a create was
                expected. The write has landed either way.
        """
        self.indexes.ensure_index(self.schema)
        outcome = self.store.index_document(self.collection, doc_id, entity.to_document())
        if outcome != expected:
            logger.error(
                "unexpected write outcome",
                extra={"index": self.collection, "doc_id": doc_id, "expected": expected.value, "outcome": outcome.value},
            )
            raise StoreInconsistency(outcome=outcome)
        return replace(entity, id=doc_id)

    def delete(self, doc_id: str) -> DeleteOutcome:
        """Delete the document stored under ``doc_id``.

        Raises:
            DocumentNotFound: The store reports no such document.
        """
        self.indexes.ensure_index(self.schema)
        outcome = self.store.delete_document(self.collection, doc_id)
        if outcome is DeleteOutcome.NOT_FOUND:
            raise DocumentNotFound()
        return outcome

    def list_all(
        self,
        sort_by: Optional[str] = None,
        direction: SortDirection = SortDirection.ASC,
        scope_field: Optional[str] = None,
        scope_value: Optional[str] = None,
    ) -> List[E]:
        query, sort = build_list_all_query(sort_by, direction, self.schema)
        if scope_field is not None:
            query = build_scoped_query(scope_field, scope_value, query, self.schema)
        return self._run(query, sort)

    def search(
        self,
        text: str,
        sort_by: Optional[str] = None,
        direction: SortDirection = SortDirection.ASC,
        scope_field: Optional[str] = None,
        scope_value: Optional[str] = None,
    ) -> List[E]:
        """Rank entities against free text.

        Blank text returns an empty list without querying the store.
        """
        query, sort = build_search_query(text, sort_by, direction, self.schema)
        if scope_field is not None:
            query = build_scoped_query(scope_field, scope_value, query, self.schema)
        if not text.strip():
            return []
        return self._run(query, sort)

    def _run(self, query, sort: SortClause) -> List[E]:
        self.indexes.ensure_index(self.schema)
        hits = self.store.search(self.collection, query.to_dict(), sort.to_list())
        return [self.entity.from_document(h.id, h.source) for h in hits]


@dataclass(frozen=True)
class Repositories:
    products: EntityRepository[Product]
    customers: EntityRepository[Customer]
    orders: EntityRepository[Order]


def repositories(store: DocumentStorePort, indexes: IndexManager | None = None) -> Repositories:
    """Build the three repositories sharing one store and index manager."""
    indexes = indexes or IndexManager(store)
    return Repositories(
        products=EntityRepository(store, indexes, PRODUCTS, Product),
        customers=EntityRepository(store, indexes, CUSTOMERS, Customer),
        orders=EntityRepository(store, indexes, ORDERS, Order),
    )
