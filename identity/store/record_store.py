"""
Row-oriented tabular record store with JSON-file persistence.

Each table lives in its own file: {"headers": [...], "rows": [[...], ...]}.
Single calls (append_row, update_cell) are atomic with respect to each other,
but nothing spans calls: there are no transactions, no row locks and no
uniqueness constraints. Callers that read-then-write must serialize
themselves (see identity.store.locks).
"""

import json
import shutil
import tempfile
import threading
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..utils.exceptions import StoreError
from ..utils.logger import get_logger

logger = get_logger(__name__)

# One mutex per table file, shared by every RecordStore in the process
_file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
_file_locks_guard = threading.Lock()


def _file_lock(path: Path) -> threading.Lock:
    with _file_locks_guard:
        return _file_locks[str(path.resolve())]


class Table:
    """Handle on one named table"""

    def __init__(self, store: "RecordStore", name: str):
        self.store = store
        self.name = name
        self.path = store.table_path(name)

    def __repr__(self) -> str:
        return f"Table({self.name!r})"

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            raise StoreError(f"Table not found: {self.name}", table=self.name)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StoreError(f"Failed to read table {self.name}: {e}", table=self.name)
        data.setdefault("headers", [])
        data.setdefault("rows", [])
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.store._atomic_write(self.path, data)

    def _column_index(self, headers: List[str], column: str) -> int:
        try:
            return headers.index(column)
        except ValueError:
            raise StoreError(f"Column {column!r} not found in table {self.name}", table=self.name)

    @property
    def headers(self) -> List[str]:
        return [str(h).strip() for h in self._load()["headers"]]

    def read_all(self) -> List[Dict[str, Any]]:
        """All data rows as dicts keyed by header; blank headers are skipped"""
        data = self._load()
        headers = [str(h).strip() for h in data["headers"]]
        records = []
        for row in data["rows"]:
            record = {}
            for i, header in enumerate(headers):
                if header:
                    record[header] = row[i] if i < len(row) else ""
            records.append(record)
        return records

    def read_column(self, column: Optional[str] = None) -> List[Any]:
        """Every value in one column (first column by default)"""
        data = self._load()
        index = 0 if column is None else self._column_index(data["headers"], column)
        return [row[index] if index < len(row) else "" for row in data["rows"]]

    def read_range(self, column: str, start: int, end: Optional[int] = None) -> List[Any]:
        """Values of one column for data rows [start, end)"""
        return self.read_column(column)[start:end]

    def append_row(self, record: Dict[str, Any]) -> int:
        """Append a row built from a dict in header order; returns its row index"""
        with _file_lock(self.path):
            data = self._load()
            row = [
                record.get(header) if record.get(header) is not None else ""
                for header in data["headers"]
            ]
            data["rows"].append(row)
            self._save(data)
            return len(data["rows"]) - 1

    def update_cell(self, row_index: int, column: str, value: Any) -> None:
        """Overwrite a single cell"""
        with _file_lock(self.path):
            data = self._load()
            index = self._column_index(data["headers"], column)
            if not 0 <= row_index < len(data["rows"]):
                raise StoreError(
                    f"Row {row_index} out of range for table {self.name}", table=self.name
                )
            row = data["rows"][row_index]
            while len(row) <= index:
                row.append("")
            row[index] = value
            self._save(data)

    def __len__(self) -> int:
        return len(self._load()["rows"])


class RecordStore:
    """Directory of JSON-backed tables"""

    def __init__(self, tables_dir: Path):
        self.tables_dir = Path(tables_dir)
        self.tables_dir.mkdir(exist_ok=True, parents=True)

    def table_path(self, name: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in name)
        return self.tables_dir / f"{safe}.json"

    def exists(self, name: str) -> bool:
        return self.table_path(name).exists()

    def table(self, name: str) -> Table:
        if not self.exists(name):
            raise StoreError(f"Table not found: {name}", table=name)
        return Table(self, name)

    def create_table(self, name: str, headers: List[str], rows: Optional[List[List[Any]]] = None) -> Table:
        """Create a table, or return the existing one untouched"""
        path = self.table_path(name)
        with _file_lock(path):
            if not path.exists():
                self._atomic_write(path, {"headers": list(headers), "rows": rows or []})
                logger.info("Created table", table=name, columns=len(headers))
        return Table(self, name)

    def list_tables(self) -> List[str]:
        return sorted(p.stem for p in self.tables_dir.glob("*.json"))

    def _atomic_write(self, path: Path, data: Dict[str, Any]) -> None:
        """Write JSON file atomically"""
        dir_path = path.parent
        with tempfile.NamedTemporaryFile(mode='w', dir=dir_path, delete=False, encoding='utf-8') as tf:
            json.dump(data, tf, indent=2, ensure_ascii=False, default=str)
            temp_path = Path(tf.name)

        try:
            # Atomic move/replace
            shutil.move(str(temp_path), str(path))
        except Exception as e:
            # Clean up temp file if move failed
            if temp_path.exists():
                temp_path.unlink()
            raise StoreError(f"Failed to save table to {path}: {str(e)}")
