"""Index schemas and lazy index creation.

Each entity collection is backed by exactly one index whose mapping is
derived from an ``EntitySchema`` descriptor. Text fields carry an extra
``keyword`` sub-field that is used only for sorting and exact filtering.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .domain import DocumentStorePort

logger = logging.getLogger("catalog.indexes")

KEYWORD_SUFFIX = ".keyword"


class FieldKind(str, Enum):
    TEXT = "text"
    KEYWORD = "keyword"
    DOUBLE = "double"
    INTEGER = "integer"

    @property
    def numeric(self) -> bool:
        return self in (FieldKind.DOUBLE, FieldKind.INTEGER)


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind


@dataclass(frozen=True)
class EntitySchema:
    """Descriptor of one entity collection.

    Attributes:
        collection: Index name.
        fields: Mapped document fields.
        default_sort: Field used when a listing does not ask for one.
    """

    collection: str
    fields: Tuple[FieldSpec, ...]
    default_sort: str

    def field(self, name: str) -> FieldSpec | None:
        return next((f for f in self.fields if f.name == name), None)

    @property
    def text_fields(self) -> list[str]:
        return [f.name for f in self.fields if f.kind is FieldKind.TEXT]

    @property
    def numeric_fields(self) -> list[str]:
        return [f.name for f in self.fields if f.kind.numeric]

    @property
    def sortable_fields(self) -> list[str]:
        return [f.name for f in self.fields if f.kind is not FieldKind.KEYWORD]

    def mappings(self) -> dict:
        """Render the index mapping for this collection."""
        properties = {}
        for f in self.fields:
            if f.kind is FieldKind.TEXT:
                properties[f.name] = {"type": "text", "fields": {"keyword": {"type": "keyword"}}}
            else:
                properties[f.name] = {"type": f.kind.value}
        return {"properties": properties}


PRODUCTS = EntitySchema(
    collection="products",
    fields=(
        FieldSpec("name", FieldKind.TEXT),
        FieldSpec("price", FieldKind.DOUBLE),
        FieldSpec("stock", FieldKind.INTEGER),
    ),
    default_sort="name",
)

CUSTOMERS = EntitySchema(
    collection="customers",
    fields=(
        FieldSpec("name", FieldKind.TEXT),
        FieldSpec("yield", FieldKind.DOUBLE),
        FieldSpec("purchases", FieldKind.INTEGER),
    ),
    default_sort="name",
)

ORDERS = EntitySchema(
    collection="orders",
    fields=(
        FieldSpec("productName", FieldKind.TEXT),
        FieldSpec("productId", FieldKind.KEYWORD),
        FieldSpec("customerName", FieldKind.TEXT),
        FieldSpec("customerId", FieldKind.KEYWORD),
        FieldSpec("price", FieldKind.DOUBLE),
        FieldSpec("amount", FieldKind.INTEGER),
    ),
    default_sort="productName",
)


class IndexManager:
    """Creates collection indexes lazily, at most once per process.

    ``ensure_index`` is safe to call before every store operation: the
    first call per collection checks the store and creates the index when
    absent, later calls return immediately. Store errors propagate so
    callers never read or write against a missing index.
    """

    def __init__(self, store: DocumentStorePort):
        self.store = store
        self._lock = threading.RLock()
        self._ready: set[str] = set()

    def ensure_index(self, schema: EntitySchema) -> None:
        if schema.collection in self._ready:
            return
        with self._lock:
            if schema.collection in self._ready:
                return
            if not self.store.index_exists(schema.collection):
                logger.info("creating index", extra={"index": schema.collection})
                self.store.create_index(schema.collection, schema.mappings())
            self._ready.add(schema.collection)
