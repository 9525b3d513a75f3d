"""Unit tests for query building: sort resolution, numeric detection and
the shape of the search, list-all and scoped queries."""

import pytest

from catalog.domain import SortDirection
from catalog.errors import ValidationFailed
from catalog.indexes import CUSTOMERS, ORDERS, PRODUCTS
from catalog.queries import (
    MatchAll,
    build_id_query,
    build_list_all_query,
    build_scoped_query,
    build_search_query,
    parse_number,
    resolve_sort_field,
)


def test_text_attributes_sort_on_keyword_subfield():
    """Text attributes sort on their .keyword sub-field."""
    assert resolve_sort_field(PRODUCTS, "name") == "name.keyword"
    assert resolve_sort_field(ORDERS, "customerName") == "customerName.keyword"


def test_numeric_attributes_sort_on_raw_field():
    """Numeric attributes sort on the raw field."""
    assert resolve_sort_field(PRODUCTS, "stock") == "stock"
    assert resolve_sort_field(CUSTOMERS, "yield") == "yield"
    assert resolve_sort_field(ORDERS, "amount") == "amount"


@pytest.mark.parametrize("schema,field", [(PRODUCTS, "colour"), (ORDERS, "productId"), (CUSTOMERS, "")])
def test_unknown_or_keyword_sort_field_is_rejected(schema, field):
    """Unknown or keyword-only fields cannot be sorted on."""
    with pytest.raises(ValidationFailed) as e:
        resolve_sort_field(schema, field)
    assert str(e.value) == "INVALID_SORT_FIELD"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("12", 12.0),
        ("2.5", 2.5),
        (" 7 ", 7.0),
        ("-3", -3.0),
        ("1e2", 100.0),
        ("abc", None),
        ("", None),
        ("12abc", None),
        ("nan", None),
        ("inf", None),
    ],
)
def test_parse_number(text, expected):
    """Only finite float() parses count as numbers."""
    assert parse_number(text) == expected


def test_search_query_for_plain_text_has_no_range_clause():
    """Non-numeric text yields only phrase-prefix clauses."""
    query, sort = build_search_query("Wid", "name", SortDirection.ASC, PRODUCTS)
    assert query.to_dict() == {
        "bool": {
            "should": [{"match_phrase_prefix": {"name": "Wid"}}],
            "minimum_should_match": 1,
        }
    }
    assert sort.to_list() == [{"name.keyword": {"order": "asc"}}]


def test_search_query_for_number_adds_equality_range_per_numeric_field():
    """Numeric text adds a gte == lte range per numeric field."""
    query, sort = build_search_query("10", "price", SortDirection.DESC, PRODUCTS)
    assert query.to_dict()["bool"]["should"] == [
        {"match_phrase_prefix": {"name": "10"}},
        {"range": {"price": {"gte": 10.0, "lte": 10.0}}},
        {"range": {"stock": {"gte": 10.0, "lte": 10.0}}},
    ]
    assert query.to_dict()["bool"]["minimum_should_match"] == 1
    assert sort.to_list() == [{"price": {"order": "desc"}}]


def test_order_search_matches_both_name_fields_but_not_ids():
    """Order search covers both name fields and skips keyword ids."""
    query, _ = build_search_query("Al", "customerName", SortDirection.ASC, ORDERS)
    assert query.to_dict()["bool"]["should"] == [
        {"match_phrase_prefix": {"productName": "Al"}},
        {"match_phrase_prefix": {"customerName": "Al"}},
    ]


def test_blank_text_still_builds_a_valid_query():
    """Blank text still produces a well-formed query and sort."""
    query, sort = build_search_query("   ", None, "asc", CUSTOMERS)
    assert query.to_dict()["bool"]["should"] == [{"match_phrase_prefix": {"name": "   "}}]
    assert sort.to_list() == [{"name.keyword": {"order": "asc"}}]


def test_list_all_query_uses_default_sort():
    """list-all matches everything and sorts on the default field."""
    query, sort = build_list_all_query(None, SortDirection.DESC, ORDERS)
    assert isinstance(query, MatchAll)
    assert query.to_dict() == {"match_all": {}}
    assert sort.to_list() == [{"productName.keyword": {"order": "desc"}}]


def test_scoped_query_wraps_inner_query_with_term_filter():
    """Scoping wraps the query in must and adds a term filter."""
    inner, _ = build_search_query("Wid", None, SortDirection.ASC, ORDERS)
    scoped = build_scoped_query("customerId", "c1", inner, ORDERS)
    assert scoped.to_dict() == {
        "bool": {
            "must": [inner.to_dict()],
            "filter": [{"term": {"customerId": "c1"}}],
        }
    }


def test_scope_must_be_a_keyword_field():
    """Only keyword fields can scope a query."""
    with pytest.raises(ValidationFailed) as e:
        build_scoped_query("productName", "Widget", MatchAll(), ORDERS)
    assert str(e.value) == "INVALID_SCOPE"


def test_id_query_is_an_exact_match_on_document_id():
    """Lookup by id is a term query on _id."""
    assert build_id_query("p1").to_dict() == {"term": {"_id": "p1"}}
