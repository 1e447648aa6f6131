import json

from conftest import make_unit
from models.damage_report import ReportStatus
from models.unit import UnitStatus
from services.fleet_seed import default_fleet, initial_reports
from services.local_store import STORAGE_KEY_QUEUE, STORAGE_KEY_REPORTS, STORAGE_KEY_UNITS


def test_absent_slots_fall_back_to_seed_data(local_store):
    assert [unit.id for unit in local_store.read_units()] == [unit.id for unit in default_fleet()]
    assert [report.id for report in local_store.read_reports()] == [report.id for report in initial_reports()]
    assert local_store.read_queue() == []


def test_corrupt_slot_is_treated_as_empty(local_store):
    local_store.slot_path(STORAGE_KEY_UNITS).write_text("{not json", encoding="utf-8")
    local_store.slot_path(STORAGE_KEY_QUEUE).write_text('[{"id": 1}]', encoding="utf-8")

    assert len(local_store.read_units()) == len(default_fleet())
    assert local_store.read_queue() == []


def test_slots_are_written_as_camel_case_json(local_store):
    report = initial_reports()[0]
    local_store.write_reports([report])

    raw = json.loads(local_store.slot_path(STORAGE_KEY_REPORTS).read_text(encoding="utf-8"))
    assert raw[0]["unitId"] == report.unit_id
    assert raw[0]["suggestedParts"] == report.suggested_parts
    assert local_store.read_reports() == [report]


def test_write_leaves_no_temp_files(local_store):
    local_store.write_units([make_unit("U1")])
    local_store.write_units([make_unit("U1", UnitStatus.NEEDS_REPAIR)])

    leftovers = [path.name for path in local_store.data_dir.iterdir() if path.suffix == ".tmp"]
    assert leftovers == []
    assert local_store.find_unit("U1").status == UnitStatus.NEEDS_REPAIR


def test_seed_if_empty_runs_once(local_store):
    assert local_store.seed_if_empty() is True
    local_store.write_units([make_unit("ONLY")])

    assert local_store.seed_if_empty() is False
    assert [unit.id for unit in local_store.read_units()] == ["ONLY"]


def test_seeded_reports_carry_approval_once_past_pending():
    for report in initial_reports():
        approved = report.status != ReportStatus.PENDING_APPROVAL
        assert (report.approved_by is not None) == approved
        assert (report.approved_at is not None) == approved
