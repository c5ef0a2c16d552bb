"""Tests for the JSON-backed record store"""

import pytest

from identity.store.record_store import RecordStore
from identity.store.schema import EMPLOYEES_HEADERS, check_tables, ensure_tables
from identity.utils.exceptions import StoreError


@pytest.fixture
def empty_store(tmp_path):
    return RecordStore(tmp_path / "tables")


def test_append_and_read(empty_store):
    table = empty_store.create_table("Things", ["ID", "Name", "Qty"])
    assert table.append_row({"ID": "T-1", "Name": "bolt", "Qty": 3}) == 0
    assert table.append_row({"ID": "T-2", "Extra": "ignored"}) == 1

    assert table.read_all() == [
        {"ID": "T-1", "Name": "bolt", "Qty": 3},
        {"ID": "T-2", "Name": "", "Qty": ""},
    ]
    assert table.read_column() == ["T-1", "T-2"]
    assert table.read_column("Qty") == [3, ""]
    assert table.read_range("ID", 1) == ["T-2"]
    assert len(table) == 2


def test_update_cell_touches_one_cell(empty_store):
    table = empty_store.create_table("Things", ["ID", "Name"])
    table.append_row({"ID": "a", "Name": "first"})
    table.append_row({"ID": "b", "Name": "second"})
    table.update_cell(1, "Name", "changed")
    assert table.read_all() == [{"ID": "a", "Name": "first"}, {"ID": "b", "Name": "changed"}]


def test_update_cell_out_of_range(empty_store):
    table = empty_store.create_table("Things", ["ID"])
    with pytest.raises(StoreError):
        table.update_cell(0, "ID", "x")


def test_unknown_table_and_column(empty_store):
    with pytest.raises(StoreError):
        empty_store.table("Nope")
    table = empty_store.create_table("Things", ["ID"])
    with pytest.raises(StoreError):
        table.read_column("Missing")


def test_create_table_keeps_existing_rows(empty_store):
    table = empty_store.create_table("Things", ["ID"])
    table.append_row({"ID": "keep"})
    empty_store.create_table("Things", ["ID", "Other"])
    assert empty_store.table("Things").read_column() == ["keep"]
    assert empty_store.list_tables() == ["Things"]


def test_corrupt_table_file(empty_store):
    empty_store.create_table("Things", ["ID"])
    empty_store.table_path("Things").write_text("{broken", encoding="utf-8")
    with pytest.raises(StoreError):
        empty_store.table("Things").read_all()


def test_ensure_and_check_tables(empty_store):
    assert set(check_tables(empty_store)) == {"Employees", "Income", "cost", "SalesandFollowup"}
    created = ensure_tables(empty_store)
    assert "Employees" in created
    assert ensure_tables(empty_store) == []
    assert check_tables(empty_store) == {}
    assert empty_store.table("Employees").headers == EMPLOYEES_HEADERS


def test_check_tables_reports_missing_columns(empty_store):
    ensure_tables(empty_store)
    empty_store.table_path("Employees").unlink()
    empty_store.create_table("Employees", ["Code", "Name"])
    problems = check_tables(empty_store)
    assert problems == {
        "Employees": ["missing column Password", "missing column Branch", "missing column Role", "missing column IsActive"]
    }
