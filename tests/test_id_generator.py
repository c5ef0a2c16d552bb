"""Tests for sequential identifiers"""

import threading
from datetime import date, datetime, timezone

import pytest

from identity.ids.generator import IdentifierGenerator, max_sequence, parse_sequence
from identity.utils.exceptions import IdConflictError

MAY_FIRST = date(2024, 5, 1)


@pytest.fixture
def generator(store, settings):
    return IdentifierGenerator(store, locks_dir=settings.store.locks_dir)


@pytest.fixture
def income(store):
    table = store.table("Income")
    for entry_id in ["DOW-010524-001", "DOW-010524-002", "UPT-010524-009", "DOW-020524-004"]:
        table.append_row({"Entry_ID": entry_id, "Branch": "x"})
    return table


def test_next_id_continues_partition_sequence(generator, income):
    assert generator.next_id("INC", "Downtown", MAY_FIRST, income) == "DOW-010524-003"


def test_other_partition_or_day_starts_at_one(generator, income):
    assert generator.next_id("INC", "Harbor", MAY_FIRST, "Income") == "HAR-010524-001"
    assert generator.next_id("INC", "Downtown", date(2024, 5, 3), "Income") == "DOW-030524-001"


def test_partition_code(generator):
    assert generator.partition_code("downtown") == "DOW"
    assert generator.partition_code(" ab ") == "AB"
    assert generator.partition_code(None) == "XXX"
    assert generator.partition_code("") == "XXX"


def test_missing_partition_uses_placeholder(generator, income):
    assert generator.next_id("CST", None, MAY_FIRST, income) == "XXX-010524-001"


def test_datetime_and_timezone(store):
    tokyo = IdentifierGenerator(store, timezone="Asia/Tokyo")
    late_utc = datetime(2024, 5, 1, 20, 0, tzinfo=timezone.utc)
    assert tokyo.date_part(late_utc) == "020524"
    assert tokyo.date_part(datetime(2024, 5, 1, 20, 0)) == "010524"


def test_unparsable_suffixes_are_ignored(generator, income):
    income.append_row({"Entry_ID": "DOW-010524-abc"})
    income.append_row({"Entry_ID": "DOW-010524-007x"})
    income.append_row({"Entry_ID": ""})
    assert generator.next_id("INC", "Downtown", MAY_FIRST, income) == "DOW-010524-008"


def test_sequence_grows_past_padding(generator, income):
    income.append_row({"Entry_ID": "DOW-010524-999"})
    assert generator.next_id("INC", "Downtown", MAY_FIRST, income) == "DOW-010524-1000"


def test_parse_helpers():
    assert parse_sequence("003") == 3
    assert parse_sequence("12abc") == 12
    assert parse_sequence("abc") is None
    assert max_sequence(["A-1", "A-x", None, 7, "B-9"], "A-") == 1


def test_next_employee_code(generator, store):
    assert generator.next_employee_code() == "emp004"
    store.table("Employees").append_row({"Code": "emp047"})
    assert generator.next_employee_code() == "emp048"


def test_employee_prefix_is_case_insensitive(generator, store):
    store.table("Employees").append_row({"Code": "EMP050"})
    assert generator.next_employee_code() == "emp051"


def test_empty_employee_table(generator, store):
    store.create_table("Staff", ["Code", "Password", "Name"])
    assert generator.next_employee_code("Staff") == "emp001"


def test_append_with_id_writes_row(generator, income):
    new_id = generator.append_with_id("Income", {"Branch": "Downtown", "Amount": 50}, "INC", "Downtown", MAY_FIRST)
    assert new_id == "DOW-010524-003"
    row = income.read_all()[-1]
    assert row["Entry_ID"] == new_id
    assert row["Amount"] == 50


def test_concurrent_appends_never_duplicate(generator, store):
    table = store.create_table("Leads", ["Lead_ID", "Branch"])
    ids = []
    ids_lock = threading.Lock()
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        for _ in range(3):
            new_id = generator.append_with_id("Leads", {"Branch": "Uptown"}, "LEAD", "Uptown", MAY_FIRST)
            with ids_lock:
                ids.append(new_id)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert len(ids) == 24
    assert len(set(ids)) == 24
    assert sorted(ids)[-1] == "UPT-010524-024"
    assert generator.find_duplicate_ids(table) == {}


def test_unserialized_writer_is_detected(generator, income, monkeypatch):
    original_next_id = generator.next_id

    def racing_next_id(*args, **kwargs):
        new_id = original_next_id(*args, **kwargs)
        # A writer that bypasses the lock lands the same ID first
        income.append_row({"Entry_ID": new_id})
        return new_id

    monkeypatch.setattr(generator, "next_id", racing_next_id)
    with pytest.raises(IdConflictError) as excinfo:
        generator.append_with_id(income, {"Branch": "Downtown"}, "INC", "Downtown", MAY_FIRST)
    assert excinfo.value.identifier == "DOW-010524-003"
    assert excinfo.value.occurrences == 2


def test_add_employee(generator, store):
    code = generator.add_employee({"Name": "Eve", "Password": "start1", "Branch": "Harbor", "Role": "Sales", "IsActive": "yes"})
    assert code == "emp004"
    assert store.table("Employees").read_all()[-1]["Name"] == "Eve"


def test_find_duplicate_ids(generator, income):
    income.append_row({"Entry_ID": "DOW-010524-001"})
    assert generator.find_duplicate_ids("Income") == {"DOW-010524-001": 2}
