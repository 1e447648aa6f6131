import pytest

from core.exceptions import AuthorizationError, InvalidTransitionError, ReportNotFoundError, UnitNotFoundError
from models.damage_report import RepairPriority, ReportStatus
from models.unit import UnitStatus
from schemas.damage_report import DamageReportDraft
from services.report_workflow import ReportIdGenerator, ReportWorkflow


@pytest.fixture
def workflow(local_gateway) -> ReportWorkflow:
    return ReportWorkflow(local_gateway)


def draft(unit_id: str = "U1", priority: RepairPriority = RepairPriority.HIGH) -> DamageReportDraft:
    return DamageReportDraft(unit_id=unit_id, description="  Cracked side mirror  ", priority=priority)


def unit_status(workflow: ReportWorkflow, unit_id: str) -> UnitStatus:
    return workflow.gateway.get_unit(unit_id).status


def test_worker_report_waits_for_approval(workflow, worker):
    report = workflow.submit(draft(), worker)

    assert report.status == ReportStatus.PENDING_APPROVAL
    assert report.approved_by is None
    assert report.approved_at is None
    assert report.reported_by == worker.name
    assert report.description == "Cracked side mirror"
    assert unit_status(workflow, "U1") == UnitStatus.ACTIVE


def test_manager_high_priority_report_opens_and_flags_unit(workflow, manager):
    report = workflow.submit(draft(priority=RepairPriority.HIGH), manager)

    assert report.status == ReportStatus.OPEN
    assert report.approved_by == manager.name
    assert report.approved_at is not None
    assert unit_status(workflow, "U1") == UnitStatus.NEEDS_REPAIR


def test_manager_low_priority_report_leaves_unit_active(workflow, manager):
    report = workflow.submit(draft(priority=RepairPriority.LOW), manager)

    assert report.status == ReportStatus.OPEN
    assert unit_status(workflow, "U1") == UnitStatus.ACTIVE


def test_submit_for_unknown_unit_is_rejected(workflow, worker):
    with pytest.raises(UnitNotFoundError):
        workflow.submit(draft(unit_id="NOPE"), worker)
    assert workflow.list_reports() == []


def test_approve_then_resolve_walks_the_unit_through_repair(workflow, worker, manager):
    r1 = workflow.submit(draft(priority=RepairPriority.HIGH), worker)
    assert unit_status(workflow, "U1") == UnitStatus.ACTIVE

    approved = workflow.approve(r1.id, manager)
    assert approved.status == ReportStatus.OPEN
    assert approved.approved_by == manager.name
    assert approved.approved_at is not None
    assert unit_status(workflow, "U1") == UnitStatus.NEEDS_REPAIR

    resolved = workflow.resolve(r1.id, manager)
    assert resolved.status == ReportStatus.RESOLVED
    assert resolved.resolved_at is not None
    assert unit_status(workflow, "U1") == UnitStatus.ACTIVE


def test_approving_a_medium_report_does_not_touch_the_unit(workflow, worker, manager):
    report = workflow.submit(draft(priority=RepairPriority.MEDIUM), worker)

    workflow.approve(report.id, manager)

    assert unit_status(workflow, "U1") == UnitStatus.ACTIVE


def test_workers_cannot_approve_or_resolve(workflow, worker, manager):
    pending = workflow.submit(draft(), worker)
    opened = workflow.submit(draft(), manager)

    with pytest.raises(AuthorizationError):
        workflow.approve(pending.id, worker)
    with pytest.raises(AuthorizationError):
        workflow.resolve(opened.id, worker)

    assert workflow.get_report(pending.id).status == ReportStatus.PENDING_APPROVAL
    assert workflow.get_report(opened.id).status == ReportStatus.OPEN


def test_unit_stays_in_repair_until_every_open_report_is_resolved(workflow, manager):
    first = workflow.submit(draft(), manager)
    second = workflow.submit(draft(), manager)
    assert unit_status(workflow, "U1") == UnitStatus.NEEDS_REPAIR

    workflow.resolve(first.id, manager)
    assert unit_status(workflow, "U1") == UnitStatus.NEEDS_REPAIR

    workflow.resolve(second.id, manager)
    assert unit_status(workflow, "U1") == UnitStatus.ACTIVE


def test_pending_reports_do_not_keep_a_unit_in_repair(workflow, worker, manager):
    opened = workflow.submit(draft(), manager)
    workflow.submit(draft(), worker)

    workflow.resolve(opened.id, manager)

    assert unit_status(workflow, "U1") == UnitStatus.ACTIVE


def test_invalid_transitions_are_refused(workflow, worker, manager):
    pending = workflow.submit(draft(), worker)
    with pytest.raises(InvalidTransitionError):
        workflow.resolve(pending.id, manager)

    workflow.approve(pending.id, manager)
    with pytest.raises(InvalidTransitionError):
        workflow.approve(pending.id, manager)

    workflow.resolve(pending.id, manager)
    with pytest.raises(InvalidTransitionError):
        workflow.resolve(pending.id, manager)


def test_unknown_report_raises_not_found(workflow, manager):
    with pytest.raises(ReportNotFoundError):
        workflow.approve("RPT-0", manager)


def test_out_of_service_override_is_not_undone_by_reports(workflow, manager):
    report = workflow.submit(draft(unit_id="U3", priority=RepairPriority.CRITICAL), manager)
    assert unit_status(workflow, "U3") == UnitStatus.OUT_OF_SERVICE

    workflow.resolve(report.id, manager)
    assert unit_status(workflow, "U3") == UnitStatus.OUT_OF_SERVICE


def test_override_unit_status_is_manager_only(workflow, worker, manager):
    with pytest.raises(AuthorizationError):
        workflow.override_unit_status("U2", UnitStatus.OUT_OF_SERVICE, worker)

    unit = workflow.override_unit_status("U2", UnitStatus.OUT_OF_SERVICE, manager)
    assert unit.status == UnitStatus.OUT_OF_SERVICE


def test_list_reports_filters_by_unit_and_status(workflow, worker, manager):
    workflow.submit(draft(unit_id="U1"), worker)
    workflow.submit(draft(unit_id="U2"), manager)

    assert [r.unit_id for r in workflow.list_reports(unit_id="U2")] == ["U2"]
    assert [r.unit_id for r in workflow.list_reports(status=ReportStatus.PENDING_APPROVAL)] == ["U1"]


def test_dashboard_stats_counts_units_and_open_reports(workflow, worker, manager):
    workflow.submit(draft(unit_id="U1", priority=RepairPriority.CRITICAL), manager)
    workflow.submit(draft(unit_id="U2", priority=RepairPriority.LOW), worker)

    stats = workflow.dashboard_stats()

    assert stats.total_units == 3
    assert stats.units_by_status == {"ACTIVE": 1, "NEEDS_REPAIR": 1, "OUT_OF_SERVICE": 1}
    assert stats.open_reports_by_priority == {"CRITICAL": 1}
    assert stats.pending_approval == 1


def test_report_ids_are_unique_within_the_same_millisecond(monkeypatch):
    monkeypatch.setattr("services.report_workflow.time.time", lambda: 1_700_000_000.0)
    next_id = ReportIdGenerator()

    assert [next_id() for _ in range(3)] == [
        "RPT-1700000000000",
        "RPT-1700000000001",
        "RPT-1700000000002",
    ]


def test_submit_survives_an_unreachable_remote(synced_gateway, remote, manager):
    remote.down = True
    workflow = ReportWorkflow(synced_gateway)

    report = workflow.submit(draft(priority=RepairPriority.CRITICAL), manager)

    assert workflow.get_report(report.id).status == ReportStatus.OPEN
    assert unit_status(workflow, "U1") == UnitStatus.NEEDS_REPAIR
    # create + unit status, both waiting for the remote store
    assert synced_gateway.queue_size() == 2
    assert synced_gateway.sync_offline_changes().remaining == 2

    remote.down = False
    result = synced_gateway.sync_offline_changes()
    assert result.succeeded == 2
    assert {u.id: u.status for u in remote.fetch_units()}["U1"] == UnitStatus.NEEDS_REPAIR


def test_listing_after_reconnect_keeps_queued_reports_driving_unit_status(synced_gateway, remote, manager):
    workflow = ReportWorkflow(synced_gateway)
    first = workflow.submit(draft(priority=RepairPriority.HIGH), manager)
    remote.down = True
    second = workflow.submit(draft(priority=RepairPriority.HIGH), manager)
    remote.down = False

    listed = [report.id for report in synced_gateway.fetch_reports()]
    assert first.id in listed and second.id in listed

    workflow.resolve(first.id, manager)
    synced_gateway.refresh()

    assert workflow.get_report(second.id).status == ReportStatus.OPEN
    assert unit_status(workflow, "U1") == UnitStatus.NEEDS_REPAIR
    assert {u.id: u.status for u in remote.fetch_units()}["U1"] == UnitStatus.NEEDS_REPAIR
