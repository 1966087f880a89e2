from __future__ import annotations

import pytest

from grid_engine.documents import find_record, identifier_key, new_object_id, same_identifier
from grid_engine.errors import DocumentParseError, FilterParseError
from grid_engine.filters import parse_document, parse_filter


def test_blank_filter_matches_everything() -> None:
    assert parse_filter("") == {}
    assert parse_filter("   \n") == {}


def test_filter_must_be_an_object() -> None:
    assert parse_filter('{"age": 5}') == {"age": 5}
    with pytest.raises(FilterParseError):
        parse_filter("[1]")
    with pytest.raises(FilterParseError):
        parse_filter('{"age": ')


def test_document_must_be_a_non_empty_object() -> None:
    assert parse_document('{"a": {"b": [1]}}') == {"a": {"b": [1]}}
    with pytest.raises(DocumentParseError):
        parse_document("")
    with pytest.raises(DocumentParseError):
        parse_document('"text"')


def test_identifiers_compare_by_value_only() -> None:
    assert same_identifier({"$oid": "ab"}, {"$oid": "ab"})
    assert not same_identifier({"$oid": "ab"}, {"$oid": "cd"})
    assert not same_identifier(1, "1")
    assert identifier_key({"b": 1, "a": 2}) == identifier_key({"a": 2, "b": 1})


def test_find_record_returns_the_stored_object() -> None:
    records = [{"_id": {"$oid": "ab"}, "n": 1}, {"_id": {"$oid": "cd"}, "n": 2}]
    found = find_record(records, {"$oid": "cd"})
    assert found is records[1]
    assert find_record(records, {"$oid": "zz"}) is None


def test_new_object_id_is_24_hex_digits() -> None:
    token = new_object_id()
    assert set(token) == {"$oid"}
    assert len(token["$oid"]) == 24
    int(token["$oid"], 16)
