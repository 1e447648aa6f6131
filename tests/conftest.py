import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from core.config import Settings
from models.unit import UnitStatus, UnitType
from schemas.unit import Unit
from schemas.user import Actor, UserRole
from services.local_store import LocalCacheStore
from services.persistence_gateway import PersistenceGateway
from services.remote_store import RemoteDataStore


def _unreachable(operation: str) -> OperationalError:
    return OperationalError(operation, {}, ConnectionRefusedError("remote store unreachable"))


class FlakyRemote(RemoteDataStore):
    """SQLite-backed remote that can be taken offline, or made to reject specific rows."""

    def __init__(self):
        super().__init__("sqlite+pysqlite:///:memory:")
        self.down = False
        self.failing_ids = set()

    def _check(self, operation: str, record_id=None) -> None:
        if self.down or (record_id is not None and record_id in self.failing_ids):
            raise _unreachable(operation)

    def fetch_units(self):
        self._check("fetch_units")
        return super().fetch_units()

    def fetch_reports(self):
        self._check("fetch_reports")
        return super().fetch_reports()

    def upsert_report(self, report):
        self._check("upsert_report", report.id)
        return super().upsert_report(report)

    def update_report(self, report_id, values):
        self._check("update_report", report_id)
        return super().update_report(report_id, values)

    def update_unit_status(self, unit_id, status):
        self._check("update_unit_status", unit_id)
        return super().update_unit_status(unit_id, status)

    def report_ids(self) -> list[str]:
        return [report.id for report in RemoteDataStore.fetch_reports(self)]


class FakeCompletions:
    def __init__(self, reply: str):
        self.reply = reply
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    """Stands in for openai.OpenAI; records every chat completion request."""

    def __init__(self, reply: str):
        self.chat = SimpleNamespace(completions=FakeCompletions(reply))


def make_unit(unit_id: str, status: UnitStatus = UnitStatus.ACTIVE) -> Unit:
    return Unit(id=unit_id, name=unit_id, type=UnitType.TRUCK, model="Test Tractor", status=status)


@pytest.fixture
def manager() -> Actor:
    return Actor(name="Dana Manager", role=UserRole.MANAGER)


@pytest.fixture
def worker() -> Actor:
    return Actor(name="Sam Worker", role=UserRole.WORKER)


@pytest.fixture
def local_store(tmp_path) -> LocalCacheStore:
    return LocalCacheStore(tmp_path / "cache")


@pytest.fixture
def small_fleet(local_store) -> LocalCacheStore:
    """Local cache holding three units and no reports."""
    local_store.write_units([
        make_unit("U1"),
        make_unit("U2"),
        make_unit("U3", UnitStatus.OUT_OF_SERVICE),
    ])
    local_store.write_reports([])
    return local_store


@pytest.fixture
def remote():
    store = FlakyRemote()
    store.ensure_schema()
    try:
        yield store
    finally:
        store.dispose()


@pytest.fixture
def local_gateway(small_fleet) -> PersistenceGateway:
    return PersistenceGateway(small_fleet)


@pytest.fixture
def synced_gateway(small_fleet, remote) -> PersistenceGateway:
    """Gateway whose remote store holds the same three units as the local cache."""
    remote.seed(small_fleet.read_units(), [])
    return PersistenceGateway(small_fleet, remote)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=None,
        data_dir=tmp_path / "cache",
        secret_key="test-secret",
        access_token_expire_minutes=30,
        manager_access_pin="6767",
        sync_enabled=False,
        sync_interval_seconds=30,
        offline_queue_warn_size=500,
        openai_api_key=None,
        openai_base_url=None,
        openai_model="gpt-4o-mini",
        log_level="INFO",
    )
