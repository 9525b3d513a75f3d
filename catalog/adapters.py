"""In-process stub adapter for the document store port.

``InMemoryStore`` implements ``DocumentStorePort`` without any network
calls. It evaluates the subset of the Elasticsearch query DSL the catalog
emits (``match_all``, ``term``, ``match_phrase_prefix``, ``range`` and
``bool``) and sorts on raw or ``.keyword`` fields, which makes it suitable
for unit tests and local development where deterministic behavior is
useful and a search cluster is not required.
"""

import re
import threading
from typing import Dict, List, Optional

from .domain import DeleteOutcome, DocumentStorePort, Hit, WriteOutcome
from .errors import StoreError
from .indexes import KEYWORD_SUFFIX

_TOKEN_RE = re.compile(r"\w+", re.UNICODE)


def _tokens(value) -> list[str]:
    """Lowercased word tokens, roughly what the standard analyzer yields."""
    return _TOKEN_RE.findall(str(value).lower())


def _phrase_prefix(doc_value, text: str) -> bool:
    query = _tokens(text)
    if not query:
        return False
    doc = _tokens(doc_value)
    *head, last = query
    for start in range(len(doc) - len(query) + 1):
        window = doc[start:start + len(query)]
        if window[:-1] == head and window[-1].startswith(last):
            return True
    return False


class InMemoryStore(DocumentStorePort):
    """Thread-safe dict-backed document store.

    Attributes:
        create_index_calls: Number of times ``create_index`` was called,
            handy for asserting lazy index creation.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._indexes: Dict[str, dict] = {}
        self._docs: Dict[str, Dict[str, dict]] = {}
        self.create_index_calls = 0

    def ping(self) -> bool:
        return True

    def index_exists(self, name: str) -> bool:
        with self._lock:
            return name in self._indexes

    def create_index(self, name: str, mappings: dict) -> None:
        with self._lock:
            self.create_index_calls += 1
            if name in self._indexes:
                raise StoreError("INDEX_ALREADY_EXISTS")
            self._indexes[name] = mappings
            self._docs.setdefault(name, {})

    def mappings(self, name: str) -> Optional[dict]:
        with self._lock:
            return self._indexes.get(name)

    def index_document(self, name: str, doc_id: str, body: dict) -> WriteOutcome:
        with self._lock:
            # like the real engine, writing to a missing index creates it
            docs = self._docs.setdefault(name, {})
            self._indexes.setdefault(name, {"properties": {}})
            outcome = WriteOutcome.UPDATED if doc_id in docs else WriteOutcome.CREATED
            docs[doc_id] = dict(body)
            return outcome

    def delete_document(self, name: str, doc_id: str) -> DeleteOutcome:
        with self._lock:
            docs = self._docs.get(name, {})
            if doc_id not in docs:
                return DeleteOutcome.NOT_FOUND
            del docs[doc_id]
            return DeleteOutcome.DELETED

    def search(self, name: str, query: dict, sort: Optional[list] = None) -> List[Hit]:
        with self._lock:
            if name not in self._indexes:
                raise StoreError("INDEX_NOT_FOUND")
            hits = [Hit(doc_id, dict(src)) for doc_id, src in self._docs[name].items() if self._matches(doc_id, src, query)]
        for clause in reversed(sort or []):
            ((field, opts),) = clause.items()
            hits = self._sorted(hits, field, opts.get("order", "asc"))
        return hits

    # ---- query evaluation ----
    def _matches(self, doc_id: str, src: dict, query: dict) -> bool:
        ((kind, body),) = query.items()
        if kind == "match_all":
            return True
        if kind == "term":
            ((field, value),) = body.items()
            if field == "_id":
                return doc_id == value
            return src.get(field) == value
        if kind == "match_phrase_prefix":
            ((field, text),) = body.items()
            return field in src and _phrase_prefix(src[field], text)
        if kind == "range":
            ((field, bounds),) = body.items()
            value = src.get(field)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
            return bounds.get("gte", value) <= value <= bounds.get("lte", value)
        if kind == "bool":
            return self._matches_bool(doc_id, src, body)
        raise StoreError("UNSUPPORTED_QUERY")

    def _matches_bool(self, doc_id: str, src: dict, body: dict) -> bool:
        must = body.get("must", []) + body.get("filter", [])
        if not all(self._matches(doc_id, src, q) for q in must):
            return False
        should = body.get("should", [])
        if not should:
            return True
        required = body.get("minimum_should_match", 0 if must else 1)
        return sum(1 for q in should if self._matches(doc_id, src, q)) >= required

    @staticmethod
    def _sorted(hits: List[Hit], field: str, order: str) -> List[Hit]:
        raw = field[: -len(KEYWORD_SUFFIX)] if field.endswith(KEYWORD_SUFFIX) else field
        present = [h for h in hits if h.source.get(raw) is not None]
        missing = [h for h in hits if h.source.get(raw) is None]
        present.sort(key=lambda h: h.source[raw], reverse=(order == "desc"))
        # documents without the field sort last in either direction
        return present + missing
