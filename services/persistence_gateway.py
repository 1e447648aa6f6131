"""
Persistence gateway: one read/write API over the local cache, the optional
remote store and the offline action queue.

Writes are applied to the local cache first and always succeed locally. The
remote store is then tried once; if that fails the write is queued and
replayed, in order, by sync_offline_changes().
"""
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from core.config import Settings
from core.exceptions import (
    DataValidationError,
    ReportNotFoundError,
    SnapshotFormatError,
    UnitNotFoundError,
    UnsupportedUpdateError,
)
from models.damage_report import ReportStatus
from models.unit import UnitStatus
from schemas.base import utcnow
from schemas.damage_report import DamageReport
from schemas.sync import (
    ImportResponse,
    OfflineAction,
    OfflineActionType,
    SyncData,
    SyncResult,
    SyncStatus,
)
from schemas.unit import Unit
from services.fleet_seed import default_fleet, initial_reports
from services.local_store import LocalCacheStore
from services.offline_queue import OfflineActionQueue
from services.remote_store import RemoteDataStore

log = logging.getLogger(__name__)

# Failures that mean "remote unreachable right now"; the write is queued
TRANSIENT_ERRORS = (SQLAlchemyError, OSError)

# The only partial report updates the gateway knows how to apply remotely
RESOLVE_SHAPE = frozenset({"status", "resolved_at"})
APPROVE_SHAPE = frozenset({"status", "approved_by", "approved_at"})
UPDATE_SHAPES = {
    RESOLVE_SHAPE: ReportStatus.RESOLVED,
    APPROVE_SHAPE: ReportStatus.OPEN,
}

_UPDATE_FIELD_NAMES = {
    "status": "status",
    "resolvedAt": "resolved_at",
    "resolved_at": "resolved_at",
    "approvedBy": "approved_by",
    "approved_by": "approved_by",
    "approvedAt": "approved_at",
    "approved_at": "approved_at",
}

_units_adapter = TypeAdapter(list[Unit])
_reports_adapter = TypeAdapter(list[DamageReport])


class RemoteRecordMissingError(Exception):
    """The remote row an update targets does not exist (yet)."""


class WriteOutcome(str, Enum):
    LOCAL_ONLY = "LOCAL_ONLY"          # no remote store configured
    REMOTE_SYNCED = "REMOTE_SYNCED"    # local and remote both written
    QUEUED = "QUEUED"                  # local written, remote deferred to the offline queue


@dataclass(frozen=True)
class WriteResult:
    outcome: WriteOutcome
    action: OfflineAction


def normalize_report_update(updates: Mapping[str, Any]) -> dict[str, Any]:
    """
    Map a partial update (camelCase or snake_case keys) onto one of the
    supported shapes, or raise UnsupportedUpdateError.
    """
    normalized = {}
    for key, value in updates.items():
        field = _UPDATE_FIELD_NAMES.get(key)
        if field is None:
            raise UnsupportedUpdateError(updates.keys())
        normalized[field] = value

    expected_status = UPDATE_SHAPES.get(frozenset(normalized))
    if expected_status is None:
        raise UnsupportedUpdateError(updates.keys())

    try:
        status = ReportStatus(normalized["status"])
    except ValueError:
        raise UnsupportedUpdateError(updates.keys())
    if status != expected_status:
        raise UnsupportedUpdateError(updates.keys())

    normalized["status"] = status
    return normalized


class PersistenceGateway:
    def __init__(
        self,
        local: LocalCacheStore,
        remote: Optional[RemoteDataStore] = None,
        queue: Optional[OfflineActionQueue] = None,
    ):
        self.local = local
        self.remote = remote
        self.queue = queue if queue is not None else OfflineActionQueue(local)
        self.last_sync_at = None
        self._sync_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PersistenceGateway":
        local = LocalCacheStore(settings.data_dir)
        remote = None
        if settings.database_url:
            try:
                remote = RemoteDataStore(settings.database_url)
            except (SQLAlchemyError, ImportError) as exc:
                log.warning("Remote store could not be configured (%s); running in local-only mode", exc)
        queue = OfflineActionQueue(local, warn_size=settings.offline_queue_warn_size)
        return cls(local, remote, queue)

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None

    # ==================== STARTUP ====================

    def initialize(self) -> None:
        """Seed empty storage. Safe to call on every start."""
        self.local.seed_if_empty()

        if self.remote is None:
            log.info("No remote store configured; running in local-only mode")
            return

        try:
            self.remote.ensure_schema()
            if self.remote.count_units() == 0:
                self.remote.seed(default_fleet(), initial_reports())
        except TRANSIENT_ERRORS as exc:
            log.warning("Remote store unavailable during initialize: %s", exc)

    # ==================== READS ====================

    def _remote_is_current(self) -> bool:
        """Push queued writes; the remote copy may replace the local one only if none are left."""
        if self.remote is None:
            return False
        if len(self.queue) > 0:
            self.sync_offline_changes()
        pending = len(self.queue)
        if pending:
            log.info("%s writes still queued; serving local cache", pending)
        return pending == 0

    def fetch_units(self) -> list[Unit]:
        if self._remote_is_current():
            try:
                units = self.remote.fetch_units()
            except TRANSIENT_ERRORS as exc:
                log.warning("Remote unit fetch failed, serving local cache: %s", exc)
            else:
                with self.local.lock:
                    local_units = self.local.read_units()
                    # An unseeded remote store must not wipe a seeded local fleet
                    if not units and local_units:
                        log.warning("Remote store holds no units; keeping local cache")
                        return local_units
                    self.local.write_units(units)
                return units
        return self.local.read_units()

    def fetch_reports(self) -> list[DamageReport]:
        if self._remote_is_current():
            try:
                reports = self.remote.fetch_reports()
            except TRANSIENT_ERRORS as exc:
                log.warning("Remote report fetch failed, serving local cache: %s", exc)
            else:
                self.local.write_reports(reports)
                return reports
        return self.local.read_reports()

    def local_units(self) -> list[Unit]:
        return self.local.read_units()

    def local_reports(self) -> list[DamageReport]:
        return self.local.read_reports()

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return self.local.find_unit(unit_id)

    def get_report(self, report_id: str) -> Optional[DamageReport]:
        return self.local.find_report(report_id)

    # ==================== WRITES ====================

    def create_report(self, report: DamageReport) -> WriteResult:
        with self.local.lock:
            reports = self.local.read_reports()
            if any(existing.id == report.id for existing in reports):
                raise DataValidationError(f"Damage report {report.id} already exists", code="DATA_004")
            self.local.write_reports([report, *reports])

        action = OfflineAction(type=OfflineActionType.CREATE_REPORT, payload=report.to_json_dict())
        return self._write_through(action)

    def update_report(self, report_id: str, updates: Mapping[str, Any]) -> WriteResult:
        fields = normalize_report_update(updates)

        with self.local.lock:
            reports = self.local.read_reports()
            index = next((i for i, report in enumerate(reports) if report.id == report_id), None)
            if index is None:
                raise ReportNotFoundError(report_id)
            try:
                updated = DamageReport.model_validate({**reports[index].model_dump(), **fields})
            except ValidationError as exc:
                raise DataValidationError(f"Invalid update for report {report_id}: {exc}")
            reports[index] = updated
            self.local.write_reports(reports)

        payload = {
            "id": report_id,
            "fields": sorted(fields),
            "report": updated.to_json_dict(),
        }
        action = OfflineAction(type=OfflineActionType.UPDATE_REPORT, payload=payload)
        return self._write_through(action)

    def update_unit_status(self, unit_id: str, status: UnitStatus) -> WriteResult:
        status = UnitStatus(status)
        with self.local.lock:
            units = self.local.read_units()
            index = next((i for i, unit in enumerate(units) if unit.id == unit_id), None)
            if index is None:
                raise UnitNotFoundError(unit_id)
            units[index] = units[index].model_copy(update={"status": status})
            self.local.write_units(units)

        action = OfflineAction(
            type=OfflineActionType.UPDATE_STATUS,
            payload={"id": unit_id, "status": status.value},
        )
        return self._write_through(action)

    def _write_through(self, action: OfflineAction) -> WriteResult:
        """Push an already-applied local write to the remote store, or queue it."""
        if self.remote is None:
            return WriteResult(WriteOutcome.LOCAL_ONLY, action)

        # Older writes are still waiting: go behind them so replay order holds
        if len(self.queue) > 0:
            self.queue.enqueue(action)
            self.sync_offline_changes()
            pending = {queued.id for queued in self.queue.snapshot()}
            outcome = WriteOutcome.QUEUED if action.id in pending else WriteOutcome.REMOTE_SYNCED
            return WriteResult(outcome, action)

        try:
            self._apply_remote(action)
        except TRANSIENT_ERRORS + (RemoteRecordMissingError,) as exc:
            log.warning("Remote %s failed, queued for retry: %s", action.type.value, exc)
            self.queue.enqueue(action)
            return WriteResult(WriteOutcome.QUEUED, action)
        return WriteResult(WriteOutcome.REMOTE_SYNCED, action)

    def _apply_remote(self, action: OfflineAction) -> None:
        payload = action.payload

        if action.type == OfflineActionType.CREATE_REPORT:
            self.remote.upsert_report(DamageReport.model_validate(payload))

        elif action.type == OfflineActionType.UPDATE_REPORT:
            report = DamageReport.model_validate(payload["report"])
            values = {field: getattr(report, field) for field in payload["fields"]}
            if not self.remote.update_report(payload["id"], values):
                # The create never reached the remote store; push the whole row
                self.remote.upsert_report(report)

        elif action.type == OfflineActionType.UPDATE_STATUS:
            if not self.remote.update_unit_status(payload["id"], UnitStatus(payload["status"])):
                raise RemoteRecordMissingError(f"Unit {payload['id']} does not exist remotely")

    # ==================== SYNC ====================

    def sync_offline_changes(self) -> SyncResult:
        """Replay queued actions in order; keep the ones that fail."""
        if self.remote is None:
            return SyncResult(remaining=len(self.queue))

        if not self._sync_lock.acquire(blocking=False):
            log.info("Sync already running; skipping")
            return SyncResult(skipped=True, remaining=len(self.queue))

        try:
            pending = self.queue.snapshot()
            if not pending:
                return SyncResult()

            failed = []
            for action in pending:
                try:
                    self._apply_remote(action)
                except TRANSIENT_ERRORS + (RemoteRecordMissingError,) as exc:
                    log.warning("Replay of %s %s failed: %s", action.type.value, action.id, exc)
                    failed.append(action)
                except (ValidationError, KeyError, ValueError) as exc:
                    log.error("Dropping malformed %s action %s: %s", action.type.value, action.id, exc)

            remaining = self.queue.retain(pending, failed)
            self.last_sync_at = utcnow()
            log.info(
                "Offline sync: %s attempted, %s failed, %s still queued",
                len(pending), len(failed), len(remaining),
            )
            return SyncResult(
                attempted=len(pending),
                succeeded=len(pending) - len(failed),
                failed=len(failed),
                remaining=len(remaining),
            )
        finally:
            self._sync_lock.release()

    def refresh(self) -> tuple[list[Unit], list[DamageReport]]:
        """Push queued work, then pull fresh collections."""
        self.sync_offline_changes()
        return self.fetch_units(), self.fetch_reports()

    def queue_size(self) -> int:
        return len(self.queue)

    def status(self) -> SyncStatus:
        return SyncStatus(
            remote_configured=self.remote_configured,
            pending_actions=self.queue_size(),
            last_sync_at=self.last_sync_at,
        )

    # ==================== BACKUP ====================

    def export_snapshot(self) -> SyncData:
        return SyncData(
            units=self.local.read_units(),
            reports=self.local.read_reports(),
            exported_at=utcnow(),
        )

    def import_snapshot(self, data: Union[SyncData, Mapping[str, Any]]) -> ImportResponse:
        """Replace the local collections with a bundle; remote sees it only through later writes."""
        if isinstance(data, SyncData):
            units, reports = data.units, data.reports
        else:
            if not isinstance(data, Mapping):
                raise SnapshotFormatError()
            if not isinstance(data.get("units"), list) or not isinstance(data.get("reports"), list):
                raise SnapshotFormatError()
            try:
                units = _units_adapter.validate_python(data["units"])
                reports = _reports_adapter.validate_python(data["reports"])
            except ValidationError as exc:
                raise SnapshotFormatError(
                    "Failed to import: Invalid file format.",
                    details={"errors": exc.error_count()},
                )

        with self.local.lock:
            self.local.write_units(units)
            self.local.write_reports(reports)
        log.info("Imported snapshot with %s units and %s reports", len(units), len(reports))

        sync = self.sync_offline_changes() if self.remote is not None else None
        return ImportResponse(units=len(units), reports=len(reports), sync=sync)
