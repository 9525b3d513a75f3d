"""HTTP routes for products, customers and orders.

Handlers are kept intentionally small: they receive validated Pydantic
bodies, delegate to a repository or to ``OrderService``, and return the
serialized entity. Errors are raised as ``CatalogError`` subclasses and
mapped to status codes by the handlers registered in ``catalog.main``.

The three collections share the same CRUD and search surface, built by
``entity_router``; orders replace the generic create with order placement
and add routes scoped to one product or customer.
"""

from typing import Callable, List, Type

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from .domain import OrderService, SortDirection, WriteOutcome
from .errors import Conflict, NotFound
from .providers import get_order_service, get_repositories
from .repository import EntityRepository, Repositories
from .schemas import (
    CustomerIn,
    CustomerOut,
    CustomerSortBy,
    DeletedOut,
    OrderIn,
    OrderOut,
    OrderReplaceIn,
    OrderScope,
    OrderSortBy,
    ProductIn,
    ProductOut,
    ProductSortBy,
)


def entity_router(
    prefix: str,
    tag: str,
    pick: Callable[[Repositories], EntityRepository],
    body_model: Type[BaseModel],
    out_model: Type[BaseModel],
    sort_enum: Type,
    default_sort,
    with_create: bool = True,
) -> APIRouter:
    """Build the create/replace/delete/get/list/search routes of a collection.

    Args:
        prefix: URL prefix, e.g. ``/products``.
        tag: OpenAPI tag.
        pick: Selects the collection's repository from ``Repositories``.
        body_model: Request body model; must provide ``to_entity(id)``.
        out_model: Response model; must provide ``from_entity(entity)``.
        sort_enum: Enum of the attributes the collection can be sorted by.
        default_sort: Member of ``sort_enum`` used when none is given.
        with_create: Whether to register ``POST /{id}``.
    """
    router = APIRouter(prefix=prefix, tags=[tag])

    if with_create:
        @router.post("/{doc_id}", status_code=201, response_model=out_model)
        def create(doc_id: str, body: body_model, repos: Repositories = Depends(get_repositories)):
            repo = pick(repos)
            if repo.exists(doc_id):
                raise Conflict()
            return out_model.from_entity(repo.upsert(doc_id, body.to_entity(doc_id), WriteOutcome.CREATED))

    @router.patch("/{doc_id}", response_model=out_model)
    def replace(doc_id: str, body: body_model, repos: Repositories = Depends(get_repositories)):
        repo = pick(repos)
        if not repo.exists(doc_id):
            raise NotFound()
        return out_model.from_entity(repo.upsert(doc_id, body.to_entity(doc_id), WriteOutcome.UPDATED))

    @router.delete("/{doc_id}", response_model=DeletedOut)
    def delete(doc_id: str, repos: Repositories = Depends(get_repositories)):
        outcome = pick(repos).delete(doc_id)
        return DeletedOut(id=doc_id, result=outcome.value)

    @router.get("/{doc_id}", response_model=out_model)
    def get(doc_id: str, repos: Repositories = Depends(get_repositories)):
        entity = pick(repos).get(doc_id)
        if entity is None:
            raise NotFound()
        return out_model.from_entity(entity)

    @router.get("", response_model=List[out_model])
    def list_all(
        sort_by: sort_enum = Query(default_sort, alias="sort-by"),
        order: SortDirection = Query(SortDirection.ASC),
        repos: Repositories = Depends(get_repositories),
    ):
        return [out_model.from_entity(e) for e in pick(repos).list_all(sort_by.value, order)]

    @router.get("/search/{query}", response_model=List[out_model])
    def search(
        query: str,
        sort_by: sort_enum = Query(default_sort, alias="sort-by"),
        order: SortDirection = Query(SortDirection.ASC),
        repos: Repositories = Depends(get_repositories),
    ):
        return [out_model.from_entity(e) for e in pick(repos).search(query, sort_by.value, order)]

    return router


products = entity_router(
    "/products", "Products", lambda r: r.products, ProductIn, ProductOut, ProductSortBy, ProductSortBy.NAME,
)
customers = entity_router(
    "/customers", "Customers", lambda r: r.customers, CustomerIn, CustomerOut, CustomerSortBy, CustomerSortBy.NAME,
)
orders = entity_router(
    "/orders", "Orders", lambda r: r.orders, OrderReplaceIn, OrderOut, OrderSortBy, OrderSortBy.PRODUCT_NAME,
    with_create=False,
)


@orders.post("/{order_id}", status_code=201, response_model=OrderOut)
def place_order(order_id: str, body: OrderIn, service: OrderService = Depends(get_order_service)):
    """Place an order: check stock, record it, then adjust stock and customer.

    Returns 201 with the recorded order; 409 when the id is taken; 404 when
    the product or customer is unknown; 422 on insufficient stock; 500/503
    when the store fails mid-way (the body says whether the placement was
    rolled back or needs reconciliation).
    """
    return OrderOut.from_entity(service.place_order(order_id, body.to_request()))


@orders.get("/search/{variant}/{scope_id}/{query}", response_model=List[OrderOut])
def search_scoped_orders(
    variant: OrderScope,
    scope_id: str,
    query: str,
    sort_by: OrderSortBy = Query(OrderSortBy.PRODUCT_NAME, alias="sort-by"),
    order: SortDirection = Query(SortDirection.ASC),
    repos: Repositories = Depends(get_repositories),
):
    found = repos.orders.search(query, sort_by.value, order, scope_field=variant.value, scope_value=scope_id)
    return [OrderOut.from_entity(o) for o in found]


@orders.get("/{variant}/{scope_id}", response_model=List[OrderOut])
def list_scoped_orders(
    variant: OrderScope,
    scope_id: str,
    sort_by: OrderSortBy = Query(OrderSortBy.PRODUCT_NAME, alias="sort-by"),
    order: SortDirection = Query(SortDirection.ASC),
    repos: Repositories = Depends(get_repositories),
):
    found = repos.orders.list_all(sort_by.value, order, scope_field=variant.value, scope_value=scope_id)
    return [OrderOut.from_entity(o) for o in found]
