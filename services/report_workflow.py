"""
Damage report lifecycle and the unit-status side effects it drives.

    PENDING_APPROVAL --approve--> OPEN --(work)--> IN_PROGRESS
                                   |                    |
                                   +------resolve-------+--> RESOLVED (terminal)

Manager-filed reports start at OPEN. Approve and resolve are manager-only.
"""
import logging
import threading
import time
from collections import Counter
from typing import Optional

from core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    ReportNotFoundError,
    UnitNotFoundError,
)
from models.damage_report import ACTIVE_REPORT_STATUSES, URGENT_PRIORITIES, ReportStatus
from models.unit import UnitStatus
from schemas.base import utcnow
from schemas.damage_report import DamageReport, DamageReportDraft, DashboardStats
from schemas.unit import Unit
from schemas.user import Actor
from services.persistence_gateway import PersistenceGateway

log = logging.getLogger(__name__)


class ReportIdGenerator:
    """RPT-<epoch ms>, bumped by one when two reports land in the same millisecond."""

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            self._last = max(int(time.time() * 1000), self._last + 1)
            return f"RPT-{self._last}"


class ReportWorkflow:
    def __init__(self, gateway: PersistenceGateway, id_generator: Optional[ReportIdGenerator] = None):
        self.gateway = gateway
        self.next_report_id = id_generator or ReportIdGenerator()

    @staticmethod
    def _require_manager(actor: Actor, action: str) -> None:
        if not actor.is_manager:
            log.info("Rejected %s by %s (%s)", action, actor.name, actor.role.value)
            raise AuthorizationError(action, actor.role.value)

    def _require_unit(self, unit_id: str) -> Unit:
        unit = self.gateway.get_unit(unit_id)
        if unit is None:
            raise UnitNotFoundError(unit_id)
        return unit

    def _mark_needs_repair(self, unit_id: str) -> None:
        unit = self.gateway.get_unit(unit_id)
        if unit is None:
            log.warning("Report references unknown unit %s; unit status not changed", unit_id)
            return
        # An out-of-service override outranks report-driven status
        if unit.status == UnitStatus.ACTIVE:
            self.gateway.update_unit_status(unit_id, UnitStatus.NEEDS_REPAIR)

    # ==================== READS ====================

    def get_report(self, report_id: str) -> DamageReport:
        report = self.gateway.get_report(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    def list_reports(
        self,
        unit_id: Optional[str] = None,
        status: Optional[ReportStatus] = None,
    ) -> list[DamageReport]:
        reports = self.gateway.local_reports()
        if unit_id is not None:
            reports = [report for report in reports if report.unit_id == unit_id]
        if status is not None:
            reports = [report for report in reports if report.status == status]
        return reports

    def dashboard_stats(self) -> DashboardStats:
        units = self.gateway.local_units()
        reports = self.gateway.local_reports()

        by_status = Counter(unit.status.value for unit in units)
        open_by_priority = Counter(
            report.priority.value for report in reports if report.status in ACTIVE_REPORT_STATUSES
        )
        return DashboardStats(
            total_units=len(units),
            units_by_status={status.value: by_status.get(status.value, 0) for status in UnitStatus},
            open_reports_by_priority=dict(open_by_priority),
            pending_approval=sum(1 for report in reports if report.status == ReportStatus.PENDING_APPROVAL),
        )

    # ==================== TRANSITIONS ====================

    def submit(self, draft: DamageReportDraft, actor: Actor) -> DamageReport:
        """File a new report. Managers skip the approval queue."""
        self._require_unit(draft.unit_id)
        now = utcnow()

        report = DamageReport(
            id=self.next_report_id(),
            unit_id=draft.unit_id,
            timestamp=now,
            description=draft.description.strip(),
            reported_by=actor.name,
            priority=draft.priority,
            images=list(draft.images),
            ai_analysis=draft.ai_analysis,
            suggested_parts=draft.suggested_parts,
            status=ReportStatus.OPEN if actor.is_manager else ReportStatus.PENDING_APPROVAL,
            approved_by=actor.name if actor.is_manager else None,
            approved_at=now if actor.is_manager else None,
        )
        result = self.gateway.create_report(report)
        log.info("Report %s filed on %s by %s (%s)", report.id, report.unit_id, actor.name, result.outcome.value)

        if actor.is_manager and report.priority in URGENT_PRIORITIES:
            self._mark_needs_repair(report.unit_id)
        return report

    def approve(self, report_id: str, actor: Actor) -> DamageReport:
        self._require_manager(actor, "approve")
        report = self.get_report(report_id)
        if report.status != ReportStatus.PENDING_APPROVAL:
            raise InvalidTransitionError(report_id, report.status.value, "approve")

        self.gateway.update_report(report_id, {
            "status": ReportStatus.OPEN,
            "approved_by": actor.name,
            "approved_at": utcnow(),
        })
        if report.priority in URGENT_PRIORITIES:
            self._mark_needs_repair(report.unit_id)

        log.info("Report %s approved by %s", report_id, actor.name)
        return self.get_report(report_id)

    def resolve(self, report_id: str, actor: Actor) -> DamageReport:
        self._require_manager(actor, "resolve")
        report = self.get_report(report_id)
        if report.status not in ACTIVE_REPORT_STATUSES:
            raise InvalidTransitionError(report_id, report.status.value, "resolve")

        self.gateway.update_report(report_id, {
            "status": ReportStatus.RESOLVED,
            "resolved_at": utcnow(),
        })
        self.reconcile_unit_status(report.unit_id)

        log.info("Report %s resolved by %s", report_id, actor.name)
        return self.get_report(report_id)

    def reconcile_unit_status(self, unit_id: str) -> Optional[Unit]:
        """Return a NEEDS_REPAIR unit to ACTIVE once no OPEN/IN_PROGRESS report remains."""
        unit = self.gateway.get_unit(unit_id)
        if unit is None:
            log.warning("Cannot reconcile unknown unit %s", unit_id)
            return None

        still_open = any(
            report.unit_id == unit_id and report.status in ACTIVE_REPORT_STATUSES
            for report in self.gateway.local_reports()
        )
        if not still_open and unit.status == UnitStatus.NEEDS_REPAIR:
            self.gateway.update_unit_status(unit_id, UnitStatus.ACTIVE)
        return self.gateway.get_unit(unit_id)

    def override_unit_status(self, unit_id: str, status: UnitStatus, actor: Actor) -> Unit:
        """Manager override, e.g. taking a unit out of service."""
        self._require_manager(actor, "override_unit_status")
        self._require_unit(unit_id)
        self.gateway.update_unit_status(unit_id, status)
        log.info("Unit %s set to %s by %s", unit_id, UnitStatus(status).value, actor.name)
        return self.gateway.get_unit(unit_id)
