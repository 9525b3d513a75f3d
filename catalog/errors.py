"""Error taxonomy shared by the catalog services.

Every error carries a short machine-readable ``code`` and ``str(error)``
returns that code, so callers can branch on it the same way they would on
``ValueError("INSUFFICIENT_STOCK")``. The HTTP layer maps each family to a
status code; see ``catalog.main``.
"""


class CatalogError(Exception):
    """Base class for all catalog errors."""

    code = "CATALOG_ERROR"

    def __init__(self, code: str | None = None):
        if code is not None:
            self.code = code
        super().__init__(self.code)


# ---- Client-facing business errors ----
class NotFound(CatalogError):
    code = "NOT_FOUND"


class ProductNotFound(NotFound):
    code = "PRODUCT_NOT_FOUND"


class CustomerNotFound(NotFound):
    code = "CUSTOMER_NOT_FOUND"


class Conflict(CatalogError):
    code = "CONFLICT"


class ValidationFailed(CatalogError):
    code = "VALIDATION_FAILED"


class InsufficientStock(CatalogError):
    code = "INSUFFICIENT_STOCK"


# ---- Store-side errors ----
class StoreError(CatalogError):
    """The document store rejected a request or could not serve it."""

    code = "STORE_ERROR"


class StoreUnavailable(StoreError):
    code = "STORE_UNAVAILABLE"


class StoreTimeout(StoreUnavailable):
    code = "STORE_TIMEOUT"


class StoreInconsistency(StoreError):
    """The store acknowledged a write or delete with an unexpected outcome.

    Attributes:
        outcome: What the store reported (``created``, ``updated``, ...),
            when known. The write itself has landed.
    """

    code = "STORE_INCONSISTENCY"

    def __init__(self, code: str | None = None, outcome=None):
        self.outcome = outcome
        super().__init__(code)


class DocumentNotFound(StoreInconsistency, NotFound):
    """A delete targeted a document the store reports as absent."""

    code = "NOT_FOUND"


class OrderRolledBack(StoreError):
    """Order placement failed mid-way and every compensating action succeeded.

    Attributes:
        order_id: Identifier of the order that was recorded and then removed.
    """

    code = "ORDER_ROLLED_BACK"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__()


class OrderPartiallyPlaced(StoreError):
    """Order placement failed mid-way and could not be fully compensated.

    The system is left observably inconsistent and needs reconciliation.

    Attributes:
        order_id: Identifier of the affected order.
        pending: Human-readable list of steps still to reconcile, e.g.
            ``["delete order o1", "restore product p1 stock to 5"]``.
    """

    code = "ORDER_PARTIALLY_PLACED"

    def __init__(self, order_id: str, pending: list[str]):
        self.order_id = order_id
        self.pending = pending
        super().__init__()
