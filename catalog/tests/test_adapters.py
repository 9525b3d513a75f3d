"""Tests for the in-process store stub and its query evaluation."""

import pytest

from catalog.adapters import InMemoryStore
from catalog.domain import DeleteOutcome, WriteOutcome
from catalog.errors import StoreError


@pytest.fixture
def mem():
    s = InMemoryStore()
    s.create_index("things", {"properties": {}})
    s.index_document("things", "a", {"name": "Blue Widget", "size": 3, "tag": "x"})
    s.index_document("things", "b", {"name": "Widget Blue", "size": 1, "tag": "y"})
    s.index_document("things", "c", {"name": "gadget", "tag": "x"})
    return s


def _ids(hits):
    return [h.id for h in hits]


def test_write_reports_created_then_updated():
    """The first write of an id is reported as created, the next as updated."""
    s = InMemoryStore()
    assert s.index_document("x", "1", {"v": 1}) is WriteOutcome.CREATED
    assert s.index_document("x", "1", {"v": 2}) is WriteOutcome.UPDATED


def test_delete_reports_not_found_for_missing_document(mem):
    """Deleting an unknown id reports not_found; a stored one reports deleted."""
    assert mem.delete_document("things", "zzz") is DeleteOutcome.NOT_FOUND
    assert mem.delete_document("things", "a") is DeleteOutcome.DELETED


def test_search_on_missing_index_fails():
    """Searching an index that was never created is a store error."""
    with pytest.raises(StoreError):
        InMemoryStore().search("nope", {"match_all": {}})


def test_creating_an_existing_index_fails(mem):
    """Creating an index twice is rejected like the real engine does."""
    with pytest.raises(StoreError):
        mem.create_index("things", {})


def test_phrase_prefix_respects_word_order_and_case(mem):
    """Phrase prefix keeps word order, ignores case and never matches empty text."""
    assert _ids(mem.search("things", {"match_phrase_prefix": {"name": "blue wid"}})) == ["a"]
    assert _ids(mem.search("things", {"match_phrase_prefix": {"name": "WIDG"}})) == ["a", "b"]
    assert mem.search("things", {"match_phrase_prefix": {"name": ""}}) == []


def test_bool_filter_and_should(mem):
    """Filters must all hold and at least minimum_should_match should clauses match."""
    query = {
        "bool": {
            "should": [{"match_phrase_prefix": {"name": "wid"}}, {"range": {"size": {"gte": 9, "lte": 9}}}],
            "minimum_should_match": 1,
            "filter": [{"term": {"tag": "x"}}],
        }
    }
    assert _ids(mem.search("things", query)) == ["a"]


def test_must_without_should_needs_no_should_match(mem):
    """With must/filter and no should clauses, every filtered document matches."""
    query = {"bool": {"must": [{"match_all": {}}], "filter": [{"term": {"tag": "x"}}]}}
    assert _ids(mem.search("things", query)) == ["a", "c"]


def test_sort_puts_missing_values_last(mem):
    """Documents lacking the sort field come last in either direction."""
    asc = mem.search("things", {"match_all": {}}, [{"size": {"order": "asc"}}])
    desc = mem.search("things", {"match_all": {}}, [{"size": {"order": "desc"}}])
    assert _ids(asc) == ["b", "a", "c"]
    assert _ids(desc) == ["a", "b", "c"]


def test_keyword_sort_is_case_sensitive(mem):
    """Keyword sorting compares exact strings, so uppercase sorts first."""
    hits = mem.search("things", {"match_all": {}}, [{"name.keyword": {"order": "asc"}}])
    assert _ids(hits) == ["a", "b", "c"]
