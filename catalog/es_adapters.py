"""Elasticsearch adapter for the document store port.

This module implements ``DocumentStorePort`` on top of the official
``elasticsearch`` client. It adds:

- Error translation: timeouts become ``StoreTimeout``, other transport
  failures and 5xx responses become ``StoreUnavailable``, rejected
  requests become ``StoreError``. Nothing is retried here; the caller
  decides.
- Read-after-write: writes use a refresh policy (``wait_for`` by default)
  so a document is searchable as soon as the write returns.
- A bounded result window: searches ask for ``max_results`` hits instead
  of the engine's default of ten.
"""

import logging
from typing import List, Optional

from elasticsearch import ApiError, ConnectionTimeout, Elasticsearch, NotFoundError, TransportError

from .domain import DeleteOutcome, DocumentStorePort, Hit, WriteOutcome
from .errors import StoreError, StoreTimeout, StoreUnavailable
from .settings import Settings

logger = logging.getLogger("catalog.store")


def _error_type(exc: ApiError) -> Optional[str]:
    """Return the engine's error type (e.g. ``index_not_found_exception``)."""
    body = getattr(exc, "body", None)
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("type")
    return None


def _status(exc: ApiError) -> int:
    meta = getattr(exc, "meta", None)
    return getattr(meta, "status", 0) or 0


def _translate(exc: Exception, op: str) -> StoreError:
    """Map a client exception to the catalog store error taxonomy."""
    if isinstance(exc, ConnectionTimeout):
        logger.warning("store call timed out", extra={"op": op})
        return StoreTimeout()
    if isinstance(exc, TransportError):
        logger.warning("store unreachable", extra={"op": op, "error": str(exc)})
        return StoreUnavailable()
    if isinstance(exc, ApiError) and _status(exc) >= 500:
        logger.warning("store failed", extra={"op": op, "status": _status(exc)})
        return StoreUnavailable()
    logger.error("store rejected request", extra={"op": op, "status": _status(exc), "error_type": _error_type(exc)})
    return StoreError()


class ElasticsearchStore(DocumentStorePort):
    """Document store backed by an Elasticsearch cluster."""

    def __init__(
        self,
        client: Elasticsearch,
        timeout: float = 10.0,
        refresh: str = "wait_for",
        max_results: int = 1000,
    ):
        self.client = client
        self.timeout = timeout
        self.refresh = refresh
        self.max_results = max_results

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElasticsearchStore":
        client = Elasticsearch(
            settings.elastic_url,
            basic_auth=(settings.elastic_username, settings.elastic_password),
            request_timeout=settings.elastic_timeout_secs,
        )
        return cls(
            client,
            timeout=settings.elastic_timeout_secs,
            refresh=settings.elastic_refresh,
            max_results=settings.elastic_max_results,
        )

    def _es(self) -> Elasticsearch:
        return self.client.options(request_timeout=self.timeout)

    def ping(self) -> bool:
        try:
            return bool(self._es().ping())
        except (TransportError, ApiError):
            return False

    def index_exists(self, name: str) -> bool:
        try:
            return bool(self._es().indices.exists(index=name))
        except (TransportError, ApiError) as e:
            raise _translate(e, "index_exists") from e

    def create_index(self, name: str, mappings: dict) -> None:
        try:
            self._es().indices.create(index=name, mappings=mappings)
        except ApiError as e:
            if _error_type(e) == "resource_already_exists_exception":
                # another worker created it between our check and create
                logger.info("index already exists", extra={"index": name})
                return
            raise _translate(e, "create_index") from e
        except TransportError as e:
            raise _translate(e, "create_index") from e

    def index_document(self, name: str, doc_id: str, body: dict) -> WriteOutcome:
        try:
            resp = self._es().index(index=name, id=doc_id, document=body, refresh=self.refresh)
        except (TransportError, ApiError) as e:
            raise _translate(e, "index_document") from e
        return WriteOutcome(resp["result"])

    def delete_document(self, name: str, doc_id: str) -> DeleteOutcome:
        try:
            resp = self._es().delete(index=name, id=doc_id, refresh=self.refresh)
        except NotFoundError:
            # missing document or missing index
            return DeleteOutcome.NOT_FOUND
        except (TransportError, ApiError) as e:
            raise _translate(e, "delete_document") from e
        return DeleteOutcome(resp["result"])

    def search(self, name: str, query: dict, sort: Optional[list] = None) -> List[Hit]:
        kwargs = {"index": name, "query": query, "size": self.max_results}
        if sort:
            kwargs["sort"] = sort
        try:
            resp = self._es().search(**kwargs)
        except (TransportError, ApiError) as e:
            raise _translate(e, "search") from e
        return [Hit(h["_id"], h.get("_source") or {}) for h in resp["hits"]["hits"]]
