"""Structured queries and the builders that shape them.

Queries are small immutable clause objects that render to the
Elasticsearch query DSL with ``to_dict()``. Keeping them typed lets the
repository compose them (for example scoping a search to one customer)
before anything is sent to the store.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .domain import SortDirection
from .errors import ValidationFailed
from .indexes import KEYWORD_SUFFIX, EntitySchema, FieldKind


# ---- Clauses ----
@dataclass(frozen=True)
class PrefixMatch:
    """Phrase match where the last term may be a prefix."""

    field: str
    text: str

    def to_dict(self) -> dict:
        return {"match_phrase_prefix": {self.field: self.text}}


@dataclass(frozen=True)
class RangeMatch:
    field: str
    gte: float
    lte: float

    def to_dict(self) -> dict:
        return {"range": {self.field: {"gte": self.gte, "lte": self.lte}}}


@dataclass(frozen=True)
class MatchExact:
    """Exact term match on a keyword field or on the document ``_id``."""

    field: str
    value: str

    def to_dict(self) -> dict:
        return {"term": {self.field: self.value}}


@dataclass(frozen=True)
class MatchAll:
    def to_dict(self) -> dict:
        return {"match_all": {}}


@dataclass(frozen=True)
class BoolQuery:
    should: Tuple["Query", ...] = ()
    must: Tuple["Query", ...] = ()
    filter: Tuple["Query", ...] = ()
    minimum_should_match: Optional[int] = None

    def to_dict(self) -> dict:
        body: dict = {}
        if self.should:
            body["should"] = [q.to_dict() for q in self.should]
        if self.must:
            body["must"] = [q.to_dict() for q in self.must]
        if self.filter:
            body["filter"] = [q.to_dict() for q in self.filter]
        if self.minimum_should_match is not None:
            body["minimum_should_match"] = self.minimum_should_match
        return {"bool": body}


Query = Union[PrefixMatch, RangeMatch, MatchExact, MatchAll, BoolQuery]


@dataclass(frozen=True)
class SortClause:
    field: str
    direction: SortDirection = SortDirection.ASC

    def to_list(self) -> list:
        return [{self.field: {"order": self.direction.value}}]


# ---- Helpers ----
def parse_number(text: str) -> Optional[float]:
    """Return ``text`` as a number, or None when it does not parse as one.

    Uses ``float()``, so surrounding whitespace, exponents and a leading
    sign are accepted. Non-finite values (``nan``, ``inf``) cannot be range
    matched and count as non-numeric.
    """
    try:
        value = float(text)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return value


def resolve_sort_field(schema: EntitySchema, sort_by: str) -> str:
    """Map a sort attribute to the field the store sorts on.

    Text attributes sort on their keyword sub-field so ordering is
    lexicographic; numeric attributes sort on the raw field.

    Raises:
        ValidationFailed: ``sort_by`` is not a sortable attribute of the
            collection.
    """
    spec = schema.field(sort_by)
    if spec is None or spec.kind is FieldKind.KEYWORD:
        raise ValidationFailed("INVALID_SORT_FIELD")
    if spec.kind is FieldKind.TEXT:
        return spec.name + KEYWORD_SUFFIX
    return spec.name


def _sort(schema: EntitySchema, sort_by: Optional[str], direction: SortDirection) -> SortClause:
    return SortClause(resolve_sort_field(schema, sort_by or schema.default_sort), SortDirection(direction))


# ---- Builders ----
def build_search_query(
    text: str,
    sort_by: Optional[str],
    direction: SortDirection,
    schema: EntitySchema,
) -> Tuple[BoolQuery, SortClause]:
    """Build the hybrid prefix + numeric-equality query for free text.

    Every text field gets a phrase-prefix clause. When ``text`` parses as a
    number, every numeric field also gets a ``gte == lte == value`` range
    clause. A hit has to satisfy at least one clause.
    """
    sort = _sort(schema, sort_by, direction)
    should: list[Query] = [PrefixMatch(name, text) for name in schema.text_fields]
    value = parse_number(text)
    if value is not None:
        should.extend(RangeMatch(name, value, value) for name in schema.numeric_fields)
    return BoolQuery(should=tuple(should), minimum_should_match=1), sort


def build_list_all_query(
    sort_by: Optional[str],
    direction: SortDirection,
    schema: EntitySchema,
) -> Tuple[MatchAll, SortClause]:
    return MatchAll(), _sort(schema, sort_by, direction)


def build_scoped_query(field: str, value: str, inner: Query, schema: EntitySchema) -> BoolQuery:
    """Restrict ``inner`` to documents whose keyword ``field`` equals ``value``.

    Raises:
        ValidationFailed: ``field`` is not a keyword field of the collection.
    """
    spec = schema.field(field)
    if spec is None or spec.kind is not FieldKind.KEYWORD:
        raise ValidationFailed("INVALID_SCOPE")
    return BoolQuery(must=(inner,), filter=(MatchExact(field, value),))


def build_id_query(doc_id: str) -> MatchExact:
    return MatchExact("_id", doc_id)
