"""Tabular record store, table layouts and cross-process locks"""

from .locks import acquire_lock, lock_key_ids
from .record_store import RecordStore, Table
from .schema import check_tables, ensure_tables

__all__ = [
    "RecordStore",
    "Table",
    "acquire_lock",
    "lock_key_ids",
    "check_tables",
    "ensure_tables",
]
