from __future__ import annotations

from grid_engine.schema import has_column, union_columns


def test_union_pins_identifier_first_and_keeps_first_seen_order() -> None:
    records = [
        {"name": "Bob", "_id": 1},
        {"_id": 2, "age": 5, "name": "Ada"},
        {"_id": 3, "tags": [], "age": 7},
    ]
    assert union_columns(records) == ("_id", "name", "age", "tags")


def test_union_of_no_records_is_identifier_only() -> None:
    assert union_columns([]) == ("_id",)


def test_union_is_idempotent() -> None:
    records = [{"_id": 1, "b": 1}, {"_id": 2, "a": 2}, {"_id": 3, "c": None, "b": 2}]
    first = union_columns(records)
    assert union_columns(records) == first
    assert union_columns(records + records) == first


def test_union_compares_names_exactly() -> None:
    columns = union_columns([{"_id": 1, "Name": "x"}, {"_id": 2, "name": "y"}])
    assert columns == ("_id", "Name", "name")
    assert len(columns) == len(set(columns))


def test_every_field_appears_exactly_once() -> None:
    records = [{"_id": i, f"f{i % 3}": i, "shared": i} for i in range(10)]
    columns = union_columns(records)
    fields = {key for record in records for key in record}
    assert set(columns) == fields
    assert len(columns) == len(fields)


def test_has_column() -> None:
    assert has_column(("_id", "name"), "name")
    assert not has_column(("_id", "name"), "age")
