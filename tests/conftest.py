import pytest

from identity.auth.service import AuthService
from identity.cache.ttl_cache import TTLCache
from identity.store.record_store import RecordStore
from identity.store.schema import ensure_tables
from identity.utils.config import LoggingSettings, Settings, StoreSettings

EMPLOYEES = [
    {"Code": "emp001", "Password": "secret1", "Name": "Alice", "Branch": "Downtown", "Role": "Admin", "IsActive": "yes"},
    {"Code": "emp002", "Password": "pass22", "Name": "Bob", "Branch": "Uptown", "Role": "Sales", "IsActive": "YES"},
    {"Code": "emp003", "Password": "gone33", "Name": "Carl", "Branch": "Downtown", "Role": "Sales", "IsActive": "no"},
]


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        store=StoreSettings(data_dir=str(tmp_path)),
        logging=LoggingSettings(file_path=None, format="console"),
    )


@pytest.fixture
def store(settings):
    record_store = RecordStore(settings.store.tables_dir)
    ensure_tables(record_store, settings.store.employees_table)
    employees = record_store.table(settings.store.employees_table)
    for row in EMPLOYEES:
        employees.append_row(row)
    return record_store


@pytest.fixture
def cache(clock):
    return TTLCache(clock=clock)


@pytest.fixture
def service(settings, store, cache):
    return AuthService(settings, store, cache)
