"""
Sequential, human-readable identifiers over the record store.

Business IDs look like DOW-010524-003: the first three letters of the
partition (branch), the day as ddmmyy, then a zero-padded sequence that is
one more than the highest sequence already present for that exact
partition and day. Employee codes follow the same scheme without date or
partition: emp001, emp002, ...

The store has no auto-increment or uniqueness constraint, so the next value
is found by scanning the whole ID column. next_id() and
next_employee_code() are pure reads; two callers racing them can compute
the same value. Write paths go through append_with_id() / add_employee(),
which hold a lock per (table, ID prefix) across scan, append and a
post-append duplicate check.
"""

import re
from collections import Counter
from datetime import date as date_type
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union
from zoneinfo import ZoneInfo

from ..store.locks import LOCK_TIMEOUT_SECONDS, acquire_lock, lock_key_ids
from ..store.record_store import RecordStore, Table
from ..utils.exceptions import IdConflictError
from ..utils.logger import get_logger

logger = get_logger(__name__)

_LEADING_DIGITS = re.compile(r"\s*[+]?(\d+)")

DateLike = Union[date_type, datetime]


def parse_sequence(suffix: str) -> Optional[int]:
    """Leading integer of an ID suffix ("003" -> 3, "12abc" -> 12, "abc" -> None)"""
    match = _LEADING_DIGITS.match(suffix)
    return int(match.group(1)) if match else None


def max_sequence(values: Iterable[Any], prefix: str, case_insensitive: bool = False) -> int:
    """Highest parsed sequence among values starting with prefix; 0 when none"""
    highest = 0
    wanted = prefix.lower() if case_insensitive else prefix
    for value in values:
        if value is None or value == "":
            continue
        text = str(value)
        candidate = text.lower() if case_insensitive else text
        if not candidate.startswith(wanted):
            continue
        number = parse_sequence(text[len(prefix):])
        if number is not None and number > highest:
            highest = number
    return highest


class IdentifierGenerator:
    def __init__(
        self,
        store: RecordStore,
        employees_table: str = "Employees",
        placeholder_partition: str = "XXX",
        date_format: str = "%d%m%y",
        sequence_width: int = 3,
        employee_prefix: str = "emp",
        timezone: Optional[str] = None,
        locks_dir: Optional[Path] = None,
        lock_timeout_seconds: float = LOCK_TIMEOUT_SECONDS,
    ):
        self.store = store
        self.employees_table = employees_table
        self.placeholder_partition = placeholder_partition
        self.date_format = date_format
        self.sequence_width = sequence_width
        self.employee_prefix = employee_prefix
        self.timezone = ZoneInfo(timezone) if timezone else None
        self.locks_dir = locks_dir
        self.lock_timeout_seconds = lock_timeout_seconds

    def _table(self, table: Union[str, Table]) -> Table:
        return table if isinstance(table, Table) else self.store.table(table)

    def partition_code(self, partition_key: Optional[str]) -> str:
        key = str(partition_key).strip() if partition_key is not None else ""
        return key[:3].upper() if key else self.placeholder_partition

    def date_part(self, when: DateLike) -> str:
        if isinstance(when, datetime) and when.tzinfo is not None and self.timezone is not None:
            when = when.astimezone(self.timezone)
        return when.strftime(self.date_format)

    def id_prefix(self, partition_key: Optional[str], when: DateLike) -> str:
        return f"{self.partition_code(partition_key)}-{self.date_part(when)}-"

    def _format(self, prefix: str, number: int) -> str:
        return f"{prefix}{str(number).zfill(self.sequence_width)}"

    def next_id(
        self,
        prefix: str,
        partition_key: Optional[str],
        when: DateLike,
        table: Union[str, Table],
        id_column: Optional[str] = None,
    ) -> str:
        """Next free ID for (partition, day) in table.

        ``prefix`` names the record kind (INC, CST, LEAD); it scopes logs and
        locks but is not part of the ID itself.
        """
        handle = self._table(table)
        id_prefix = self.id_prefix(partition_key, when)
        highest = max_sequence(handle.read_column(id_column), id_prefix)
        new_id = self._format(id_prefix, highest + 1)
        logger.debug("Computed next id", kind=prefix, table=handle.name, id=new_id)
        return new_id

    def next_employee_code(self, table: Union[str, Table, None] = None) -> str:
        handle = self._table(table or self.employees_table)
        highest = max_sequence(handle.read_column("Code"), self.employee_prefix, case_insensitive=True)
        return self._format(self.employee_prefix, highest + 1)

    def _verify_unique(self, handle: Table, column: Optional[str], new_id: str) -> None:
        occurrences = sum(1 for value in handle.read_column(column) if str(value) == new_id)
        if occurrences > 1:
            logger.error("Duplicate identifier detected", table=handle.name, id=new_id, occurrences=occurrences)
            raise IdConflictError(new_id, handle.name, occurrences)

    def append_with_id(
        self,
        table: Union[str, Table],
        record: Dict[str, Any],
        prefix: str,
        partition_key: Optional[str],
        when: DateLike,
        id_column: Optional[str] = None,
    ) -> str:
        """Mint an ID and append the record carrying it, serialized per (table, partition, day)"""
        handle = self._table(table)
        column = id_column or handle.headers[0]
        key = lock_key_ids(handle.name, self.id_prefix(partition_key, when))
        with acquire_lock(key, self.locks_dir, self.lock_timeout_seconds):
            new_id = self.next_id(prefix, partition_key, when, handle, column)
            handle.append_row({**record, column: new_id})
            self._verify_unique(handle, column, new_id)
        logger.info("Record appended", kind=prefix, table=handle.name, id=new_id)
        return new_id

    def add_employee(self, record: Dict[str, Any]) -> str:
        """Append an employee row under a freshly minted code"""
        handle = self._table(self.employees_table)
        key = lock_key_ids(handle.name, self.employee_prefix)
        with acquire_lock(key, self.locks_dir, self.lock_timeout_seconds):
            code = self.next_employee_code(handle)
            handle.append_row({**record, "Code": code})
            self._verify_unique(handle, "Code", code)
        logger.info("Employee added", code=code)
        return code

    def find_duplicate_ids(self, table: Union[str, Table], id_column: Optional[str] = None) -> Dict[str, int]:
        """IDs that occur more than once, with their counts"""
        counts = Counter(
            str(value) for value in self._table(table).read_column(id_column) if value not in (None, "")
        )
        return {value: count for value, count in sorted(counts.items()) if count > 1}
