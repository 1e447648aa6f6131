"""
Local cache store: named JSON slots on disk holding the unit and report
collections plus the offline action queue.
"""
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from schemas.damage_report import DamageReport
from schemas.sync import OfflineAction
from schemas.unit import Unit
from services.fleet_seed import default_fleet, initial_reports

log = logging.getLogger(__name__)

STORAGE_KEY_UNITS = "fleetguard_units_v1"
STORAGE_KEY_REPORTS = "fleetguard_reports_v1"
STORAGE_KEY_QUEUE = "fleetguard_offline_queue_v1"

T = TypeVar("T")

_units_adapter = TypeAdapter(list[Unit])
_reports_adapter = TypeAdapter(list[DamageReport])
_queue_adapter = TypeAdapter(list[OfflineAction])


class LocalCacheStore:
    """Each slot is one file; writes replace the whole file atomically."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.lock = threading.RLock()

    def slot_path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def has_slot(self, key: str) -> bool:
        return self.slot_path(key).exists()

    # ---------- raw slot access ----------

    def _read(self, key: str, adapter: TypeAdapter, default: Callable[[], T]) -> T:
        path = self.slot_path(key)
        with self.lock:
            if not path.exists():
                return default()
            try:
                return adapter.validate_json(path.read_bytes())
            except (ValidationError, ValueError, OSError) as exc:
                log.warning("Local slot %s is unreadable (%s); falling back to defaults", key, exc)
                return default()

    def _write(self, key: str, adapter: TypeAdapter, value) -> None:
        payload = adapter.dump_json(value, by_alias=True, indent=2)
        path = self.slot_path(key)
        with self.lock:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.data_dir)
            try:
                with os.fdopen(fd, "wb") as handle:
                    handle.write(payload)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    # ---------- typed collections ----------

    def read_units(self) -> list[Unit]:
        return self._read(STORAGE_KEY_UNITS, _units_adapter, default_fleet)

    def write_units(self, units: list[Unit]) -> None:
        self._write(STORAGE_KEY_UNITS, _units_adapter, units)

    def read_reports(self) -> list[DamageReport]:
        return self._read(STORAGE_KEY_REPORTS, _reports_adapter, initial_reports)

    def write_reports(self, reports: list[DamageReport]) -> None:
        self._write(STORAGE_KEY_REPORTS, _reports_adapter, reports)

    def read_queue(self) -> list[OfflineAction]:
        return self._read(STORAGE_KEY_QUEUE, _queue_adapter, list)

    def write_queue(self, actions: list[OfflineAction]) -> None:
        self._write(STORAGE_KEY_QUEUE, _queue_adapter, actions)

    def seed_if_empty(self) -> bool:
        """Write the default fleet and starter reports when no unit slot exists yet."""
        with self.lock:
            if self.has_slot(STORAGE_KEY_UNITS):
                return False
            log.info("Initializing local cache with default data in %s", self.data_dir)
            self.write_units(default_fleet())
            self.write_reports(initial_reports())
            return True

    def find_unit(self, unit_id: str) -> Optional[Unit]:
        return next((unit for unit in self.read_units() if unit.id == unit_id), None)

    def find_report(self, report_id: str) -> Optional[DamageReport]:
        return next((report for report in self.read_reports() if report.id == report_id), None)

