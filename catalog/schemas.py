"""Pydantic schemas for the catalog API.

Request bodies are validated here before they reach the domain layer, and
responses are serialized from domain entities through the ``*Out``
models. Wire field names are camelCase (``productId``, ``customerName``);
the customer ``yield`` field is exposed as ``yield`` even though the
Python attribute is ``yield_``.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .domain import Customer, Order, OrderRequest, Product


class ProductSortBy(str, Enum):
    NAME = "name"
    PRICE = "price"
    STOCK = "stock"


class CustomerSortBy(str, Enum):
    NAME = "name"
    YIELD = "yield"
    PURCHASES = "purchases"


class OrderSortBy(str, Enum):
    PRODUCT_NAME = "productName"
    CUSTOMER_NAME = "customerName"
    PRICE = "price"
    AMOUNT = "amount"


class OrderScope(str, Enum):
    """Keyword fields an order listing or search can be restricted to."""

    PRODUCT_ID = "productId"
    CUSTOMER_ID = "customerId"


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Requests ----
class ProductIn(_Wire):
    """Body for creating or replacing a product.

    Attributes:
        id: Ignored; the identifier in the URL is authoritative.
        name: Non-empty display name.
        price: Unit price, zero or more.
        stock: Units available, zero or more.
    """

    id: Optional[str] = None
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    stock: int = Field(ge=0)

    def to_entity(self, doc_id: str) -> Product:
        return Product(id=doc_id, name=self.name, price=self.price, stock=self.stock)


class CustomerIn(_Wire):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    yield_: float = Field(default=0.0, ge=0, alias="yield")
    purchases: int = Field(default=0, ge=0)

    def to_entity(self, doc_id: str) -> Customer:
        return Customer(id=doc_id, name=self.name, yield_=self.yield_, purchases=self.purchases)


class OrderIn(_Wire):
    """Body for placing an order.

    ``price``, ``productName`` and ``customerName`` are accepted for
    compatibility with clients that send a full order, but placement always
    snapshots them from the stored product and customer.
    """

    id: Optional[str] = None
    product_id: str = Field(min_length=1)
    customer_id: str = Field(min_length=1)
    amount: int = Field(ge=1)
    price: Optional[float] = Field(default=None, ge=0)
    product_name: Optional[str] = None
    customer_name: Optional[str] = None

    def to_request(self) -> OrderRequest:
        return OrderRequest(product_id=self.product_id, customer_id=self.customer_id, amount=self.amount)


class OrderReplaceIn(_Wire):
    """Body for replacing a stored order record as-is."""

    id: Optional[str] = None
    product_id: str = Field(min_length=1)
    customer_id: str = Field(min_length=1)
    product_name: str = Field(min_length=1)
    customer_name: str = Field(min_length=1)
    price: float = Field(ge=0)
    amount: int = Field(ge=1)

    def to_entity(self, doc_id: str) -> Order:
        return Order(
            id=doc_id,
            product_id=self.product_id,
            customer_id=self.customer_id,
            product_name=self.product_name,
            customer_name=self.customer_name,
            price=self.price,
            amount=self.amount,
        )


# ---- Responses ----
class ProductOut(_Wire):
    id: str
    name: str
    price: float
    stock: int

    @classmethod
    def from_entity(cls, p: Product) -> "ProductOut":
        return cls(id=p.id, name=p.name, price=p.price, stock=p.stock)


class CustomerOut(_Wire):
    id: str
    name: str
    yield_: float = Field(alias="yield")
    purchases: int

    @classmethod
    def from_entity(cls, c: Customer) -> "CustomerOut":
        return cls(id=c.id, name=c.name, yield_=c.yield_, purchases=c.purchases)


class OrderOut(_Wire):
    id: str
    product_id: str
    customer_id: str
    product_name: str
    customer_name: str
    price: float
    amount: int

    @classmethod
    def from_entity(cls, o: Order) -> "OrderOut":
        return cls(
            id=o.id,
            product_id=o.product_id,
            customer_id=o.customer_id,
            product_name=o.product_name,
            customer_name=o.customer_name,
            price=o.price,
            amount=o.amount,
        )


class DeletedOut(BaseModel):
    id: str
    result: str
