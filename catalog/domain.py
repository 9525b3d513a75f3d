"""Domain models, ports and service for the catalog.

This module contains the dataclasses for the three entity types (products,
customers and orders), protocol definitions (ports) for the document store
and the entity repositories, and the domain service that orchestrates
placing an order across the three collections.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Optional, Protocol, Tuple, TypeVar

from .errors import (
    Conflict,
    CustomerNotFound,
    InsufficientStock,
    OrderPartiallyPlaced,
    OrderRolledBack,
    ProductNotFound,
    StoreError,
    StoreInconsistency,
    ValidationFailed,
)

logger = logging.getLogger("catalog.orders")


# ---- Enums ----
class WriteOutcome(str, Enum):
    """Outcome reported by the store for a document write."""

    CREATED = "created"
    UPDATED = "updated"


class DeleteOutcome(str, Enum):
    """Outcome reported by the store for a document delete."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class PlacementStage(str, Enum):
    """Stages an order placement goes through.

    Validation runs first and performs no writes. The order is recorded
    before stock and customer counters are adjusted.
    """

    VALIDATING = "VALIDATING"
    RECORDING = "RECORDING"
    RESERVING = "RESERVING"
    DONE = "DONE"


# ---- Entities / DTOs ----
@dataclass(frozen=True)
class Hit:
    """A document returned by a search, paired with its store identifier."""

    id: str
    source: dict


@dataclass(frozen=True)
class Product:
    """A catalog product.

    Attributes:
        id: Client-supplied identifier.
        name: Display name, searchable by prefix and sortable exactly.
        price: Unit price, never negative.
        stock: Units available, never negative once validated.
    """

    id: Optional[str]
    name: str
    price: float
    stock: int

    def to_document(self) -> dict:
        return {"name": self.name, "price": self.price, "stock": self.stock}

    @classmethod
    def from_document(cls, doc_id: str, source: dict) -> "Product":
        return cls(
            id=doc_id,
            name=source["name"],
            price=float(source["price"]),
            stock=int(source["stock"]),
        )


@dataclass(frozen=True)
class Customer:
    """A customer and the counters accrued through orders.

    ``yield_`` is stored under the document key ``yield``.
    """

    id: Optional[str]
    name: str
    yield_: float = 0.0
    purchases: int = 0

    def to_document(self) -> dict:
        return {"name": self.name, "yield": self.yield_, "purchases": self.purchases}

    @classmethod
    def from_document(cls, doc_id: str, source: dict) -> "Customer":
        return cls(
            id=doc_id,
            name=source["name"],
            yield_=float(source.get("yield", 0.0)),
            purchases=int(source.get("purchases", 0)),
        )


@dataclass(frozen=True)
class Order:
    """A placed order.

    Product and customer names and the unit price are snapshots taken at
    placement time; they do not follow later changes to the product or
    customer.
    """

    id: Optional[str]
    product_id: str
    customer_id: str
    product_name: str
    customer_name: str
    price: float
    amount: int

    def to_document(self) -> dict:
        return {
            "productId": self.product_id,
            "customerId": self.customer_id,
            "productName": self.product_name,
            "customerName": self.customer_name,
            "price": self.price,
            "amount": self.amount,
        }

    @classmethod
    def from_document(cls, doc_id: str, source: dict) -> "Order":
        return cls(
            id=doc_id,
            product_id=source["productId"],
            customer_id=source["customerId"],
            product_name=source["productName"],
            customer_name=source["customerName"],
            price=float(source["price"]),
            amount=int(source["amount"]),
        )


@dataclass(frozen=True)
class OrderRequest:
    """What a client asks for when placing an order."""

    product_id: str
    customer_id: str
    amount: int


# ---- Ports (DIP) ----
class DocumentStorePort(Protocol):
    """Port describing the document store capabilities the catalog needs.

    Implementations translate transport failures into ``StoreUnavailable``
    and rejected requests into ``StoreError``.
    """

    def ping(self) -> bool:
        raise NotImplementedError()

    def index_exists(self, name: str) -> bool:
        raise NotImplementedError()

    def create_index(self, name: str, mappings: dict) -> None:
        raise NotImplementedError()

    def index_document(self, name: str, doc_id: str, body: dict) -> WriteOutcome:
        """Create or fully replace the document stored under ``doc_id``."""
        raise NotImplementedError()

    def delete_document(self, name: str, doc_id: str) -> DeleteOutcome:
        raise NotImplementedError()

    def search(self, name: str, query: dict, sort: Optional[list] = None) -> List[Hit]:
        """Run a query and return hits in the order the store ranked them."""
        raise NotImplementedError()


T = TypeVar("T")


class RepositoryPort(Protocol[T]):
    """Port describing the entity repository operations the service uses."""

    def exists(self, doc_id: str) -> bool:
        raise NotImplementedError()

    def get(self, doc_id: str) -> Optional[T]:
        raise NotImplementedError()

    def upsert(self, doc_id: str, entity: T, expected: WriteOutcome) -> T:
        raise NotImplementedError()

    def delete(self, doc_id: str) -> Any:
        raise NotImplementedError()


# ---- Domain service ----
class OrderService:
    """Domain service responsible for placing orders.

    The backing store has no multi-document transactions, so placement is
    three independent writes: the order record, the product stock and the
    customer counters. When a write after the order record fails, the
    service compensates the writes that already landed and reports the
    outcome; it never retries a write on its own.
    """

    def __init__(
        self,
        orders: RepositoryPort[Order],
        products: RepositoryPort[Product],
        customers: RepositoryPort[Customer],
    ):
        self.orders = orders
        self.products = products
        self.customers = customers

    def place_order(self, order_id: str, request: OrderRequest) -> Order:
        """Validate, record the order, then adjust stock and customer counters.

        Args:
            order_id: Client-supplied identifier for the new order.
            request: Product, customer and amount to order.

        Returns:
            The recorded Order, with names and unit price snapshotted from
            the stored product and customer.

        Raises:
            ValidationFailed: ``amount`` is lower than 1.
            Conflict: An order with ``order_id`` already exists.
            ProductNotFound: The referenced product does not exist.
            CustomerNotFound: The referenced customer does not exist.
            InsufficientStock: ``amount`` exceeds the product stock.
            OrderRolledBack: A write after recording failed and every
                write already applied was undone.
            OrderPartiallyPlaced: A write after recording failed and at
                least one compensating action failed too.
            StoreError: The store failed while validating or recording.
        """
        stage = PlacementStage.VALIDATING
        log_ctx = {"order_id": order_id, "product_id": request.product_id, "customer_id": request.customer_id}
        logger.info("placing order", extra={**log_ctx, "stage": stage.value})

        if request.amount < 1:
            raise ValidationFailed("INVALID_AMOUNT")
        if self.orders.exists(order_id):
            raise Conflict()
        product = self.products.get(request.product_id)
        if product is None:
            raise ProductNotFound()
        customer = self.customers.get(request.customer_id)
        if customer is None:
            raise CustomerNotFound()
        if request.amount > product.stock:
            raise InsufficientStock()

        stage = PlacementStage.RECORDING
        logger.info("recording order", extra={**log_ctx, "stage": stage.value})
        order = Order(
            id=order_id,
            product_id=product.id,
            customer_id=customer.id,
            product_name=product.name,
            customer_name=customer.name,
            price=product.price,
            amount=request.amount,
        )
        order = self.orders.upsert(order_id, order, WriteOutcome.CREATED)

        # undo steps for the writes that landed, newest first
        undo: List[Tuple[str, Callable[[], Any]]] = [
            (f"delete order {order.id}", lambda: self.orders.delete(order.id)),
        ]

        stage = PlacementStage.RESERVING
        logger.info("reserving stock", extra={**log_ctx, "stage": stage.value})
        try:
            self.products.upsert(
                product.id,
                replace(product, stock=product.stock - request.amount),
                WriteOutcome.UPDATED,
            )
        except StoreError as exc:
            logger.exception("stock update failed", extra={**log_ctx, "stage": stage.value})
            steps = self._undo_landed_write(self.products, "product", product, exc) + undo
            raise self._compensate(order, steps) from exc
        undo.insert(0, (
            f"restore product {product.id} stock to {product.stock}",
            lambda: self.products.upsert(product.id, product, WriteOutcome.UPDATED),
        ))

        # re-read so counters accrued since validation are not overwritten
        current = customer
        try:
            current = self.customers.get(customer.id)
            if current is None:
                raise CustomerNotFound()
            self.customers.upsert(
                current.id,
                replace(
                    current,
                    yield_=current.yield_ + product.price * request.amount,
                    purchases=current.purchases + 1,
                ),
                WriteOutcome.UPDATED,
            )
        except (StoreError, CustomerNotFound) as exc:
            logger.exception("customer update failed", extra={**log_ctx, "stage": stage.value})
            steps = self._undo_landed_write(self.customers, "customer", current, exc) + undo
            raise self._compensate(order, steps) from exc

        stage = PlacementStage.DONE
        logger.info("order placed", extra={**log_ctx, "stage": stage.value})
        return order

    @staticmethod
    def _undo_landed_write(repo: RepositoryPort, kind: str, snapshot, exc: Exception) -> list:
        """Undo step for a write that raised although the store applied it.

        Only ``StoreInconsistency`` means the write landed. A document the
        store reports as created had been deleted meanwhile, so undoing the
        write deletes it again; otherwise the snapshot is written back.
        """
        if not isinstance(exc, StoreInconsistency):
            return []
        if exc.outcome == WriteOutcome.CREATED:
            return [(f"delete {kind} {snapshot.id}", lambda: repo.delete(snapshot.id))]
        return [(
            f"restore {kind} {snapshot.id}",
            lambda: repo.upsert(snapshot.id, snapshot, WriteOutcome.UPDATED),
        )]

    def _compensate(self, order: Order, steps: List[Tuple[str, Callable[[], Any]]]) -> StoreError:
        """Run the undo steps of a failed placement in order.

        Returns:
            OrderRolledBack when every compensating write succeeded,
            OrderPartiallyPlaced when at least one of them failed. The
            caller raises it.
        """
        pending: list[str] = []
        for description, step in steps:
            try:
                step()
            except StoreError:
                logger.exception("compensation failed", extra={"order_id": order.id, "step": description})
                pending.append(description)

        if pending:
            logger.error("order left partially placed", extra={"order_id": order.id, "pending": pending})
            return OrderPartiallyPlaced(order.id, pending)
        logger.warning("order rolled back", extra={"order_id": order.id})
        return OrderRolledBack(order.id)
