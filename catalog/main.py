"""Catalog service API built with FastAPI.

This module assembles the application: JSON logging with request-id
correlation, CORS for browser clients, the products/customers/orders routers, a health endpoint and
the mapping from catalog errors to HTTP responses. Persistence and search
are delegated to the repositories wired in ``catalog.providers``.
"""

import time

from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import routes
from .domain import DocumentStorePort
from .errors import (
    CatalogError,
    Conflict,
    InsufficientStock,
    NotFound,
    OrderPartiallyPlaced,
    OrderRolledBack,
    StoreUnavailable,
    ValidationFailed,
)
from .indexes import CUSTOMERS, ORDERS, PRODUCTS
from .logging_filters import configure_logging
from .middleware import add_request_id
from .providers import get_index_manager, get_settings, get_store

settings = get_settings()
logger = configure_logging(settings.log_level)

app = FastAPI(title="Catalog Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(add_request_id)
app.include_router(routes.products)
app.include_router(routes.customers)
app.include_router(routes.orders)

# first match wins, most specific first
ERROR_STATUS = (
    (NotFound, 404),
    (Conflict, 409),
    (InsufficientStock, 422),
    (ValidationFailed, 400),
    (StoreUnavailable, 503),
    (CatalogError, 500),
)


@app.on_event("startup")
def _startup_store():
    # wait briefly until the store answers, then make sure the indexes exist
    settings = get_settings()
    store = get_store()
    deadline = time.time() + settings.startup_timeout_secs
    while not store.ping():
        if time.time() > deadline:
            raise RuntimeError("STORE_UNAVAILABLE")
        time.sleep(1)
    indexes = get_index_manager()
    for schema in (PRODUCTS, CUSTOMERS, ORDERS):
        indexes.ensure_index(schema)
    logger.info("store ready", extra={"backend": settings.store_backend})


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    status_code = next(code for cls, code in ERROR_STATUS if isinstance(exc, cls))
    body = {"detail": exc.code}
    if isinstance(exc, (OrderRolledBack, OrderPartiallyPlaced)):
        body["order_id"] = exc.order_id
    if isinstance(exc, OrderPartiallyPlaced):
        body["pending"] = exc.pending
    if status_code >= 500:
        logger.error("request failed", extra={"path": request.url.path, "detail": exc.code})
    return JSONResponse(body, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # malformed payloads and query parameters are client errors, not 422
    return JSONResponse({"detail": jsonable_encoder(exc.errors())}, status_code=400)


@app.get("/health")
def health(store: DocumentStorePort = Depends(get_store)):
    """Liveness/health probe endpoint.

    Returns:
        JSONResponse: ``{"ok": ..., "components": {"store": {"ok": ...}}}``
        with status 200 when the store answers and 503 otherwise.
    """
    store_ok = store.ping()
    return JSONResponse(
        {"ok": store_ok, "components": {"store": {"ok": store_ok}}},
        status_code=200 if store_ok else 503,
    )
