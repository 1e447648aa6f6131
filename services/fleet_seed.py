"""
Default fleet list and starter reports used to seed empty storage.
"""
from datetime import datetime, timedelta
from typing import Optional

from models.damage_report import RepairPriority, ReportStatus
from models.unit import UnitStatus, UnitType
from schemas.base import utcnow
from schemas.damage_report import DamageReport
from schemas.unit import Unit

TRAILER = UnitType.TRAILER
TRUCK = UnitType.TRUCK


def generate_units(
    prefix: str,
    start: int,
    end: int,
    unit_type: UnitType,
    model: str,
    status: UnitStatus = UnitStatus.ACTIVE,
) -> list[Unit]:
    """Build a numbered run of units, e.g. "GST 01-02" .. "GST 01-05"."""
    return [
        Unit(id=f"{prefix}{i:02d}", name=f"{prefix}{i:02d}", type=unit_type, model=model, status=status)
        for i in range(start, end + 1)
    ]


def _unit(code: str, unit_type: UnitType, model: str, status: UnitStatus = UnitStatus.ACTIVE) -> Unit:
    return Unit(id=code, name=code, type=unit_type, model=model, status=status)


def default_fleet() -> list[Unit]:
    return [
        # GST 01 series
        _unit("GST 01-01", TRAILER, "Studio Trailer", UnitStatus.NEEDS_REPAIR),  # broken tank
        *generate_units("GST 01-", 2, 9, TRAILER, "Studio Trailer"),
        _unit("GST 01-10", TRAILER, "Studio Trailer", UnitStatus.NEEDS_REPAIR),
        *generate_units("GST 01-", 11, 13, TRAILER, "Studio Trailer"),

        # GST 02 / 03 / 05 series
        *generate_units("GST 02-", 1, 27, TRAILER, "Studio Trailer"),
        _unit("GST 02-28", TRAILER, "Studio Trailer", UnitStatus.OUT_OF_SERVICE),
        *generate_units("GST 02-", 29, 36, TRAILER, "Studio Trailer"),
        *generate_units("GST 03-", 1, 39, TRAILER, "Studio Trailer"),
        *generate_units("GST 05-", 1, 5, TRAILER, "5th Wheel Trailer"),

        # Station HMUs
        _unit("GHM 08-01", TRAILER, "Station HMU"),
        _unit("GHM 08-02", TRAILER, "Station HMU", UnitStatus.NEEDS_REPAIR),  # floor damage
        *generate_units("GHM 08-", 3, 10, TRAILER, "Station HMU"),
        _unit("GHM 09-01", TRAILER, "Station HMU"),
        *generate_units("GHM 10-", 1, 12, TRAILER, "Station HMU"),

        # Day cabs
        _unit("GDC 01", TRUCK, "3 Axle Day Cab"),
        _unit("GDC 02", TRUCK, "3 Axle Day Cab"),
        _unit("GDC 03", TRUCK, "3 Axle Day Cab", UnitStatus.OUT_OF_SERVICE),
        *generate_units("GDC ", 4, 16, TRUCK, "3 Axle Day Cab"),
        _unit("DC 582", TRUCK, "5th Wheel Day Cab"),
        _unit("WDC 04", TRUCK, "Day Cab"),

        # Sleeper tractors
        _unit("GSC 01", TRUCK, "Sleeper Tractor"),
        _unit("GSC 02", TRUCK, "Sleeper Tractor"),

        # Stakebeds
        *generate_units("GLSB 12-", 1, 2, TRUCK, "12' Stakebed"),
        _unit("GLSB 12-03", TRUCK, "12' Stakebed", UnitStatus.OUT_OF_SERVICE),  # missing
        *generate_units("GLSB 12-", 4, 13, TRUCK, "12' Stakebed"),
        _unit("GLSB 12-501", TRUCK, "12' Stakebed"),

        # Honeywagons / wardrobe trailers
        *generate_units("GHW ", 1, 9, TRAILER, "Honeywagon"),
        *generate_units("GWT ", 1, 7, TRAILER, "Semi Wardrobe"),

        # Shorty forties
        *generate_units("GSV ", 1, 18, TRUCK, "Shorty Forty"),
        _unit("GSV 19", TRUCK, "Shorty Forty", UnitStatus.NEEDS_REPAIR),  # wiring
        *generate_units("GSV ", 20, 22, TRUCK, "Shorty Forty"),
        _unit("SV 183 BI", TRUCK, "Shorty Forty"),

        # Camera trucks, crew cabs, box trucks, vans
        *generate_units("GCT ", 1, 5, TRUCK, "30' Camera Truck"),
        _unit("GSD 01", TRUCK, "26' Crew Cab", UnitStatus.NEEDS_REPAIR),
        *generate_units("GSD ", 2, 9, TRUCK, "26' Crew Cab"),
        *generate_units("GGT ", 1, 4, TRUCK, "30' Crew Cab Box"),
        _unit("GPV 01", TRUCK, "Production Van"),
        _unit("GPV 02", TRUCK, "Production Van"),

        # Misc
        _unit("G OT 101", TRAILER, "One Ton"),
        _unit("G OT 102", TRAILER, "One Ton"),
        _unit("G-EPS 01", TRAILER, "Generator"),
        _unit("GSR 01", TRUCK, "Specialty", UnitStatus.NEEDS_REPAIR),
    ]


def initial_reports(now: Optional[datetime] = None) -> list[DamageReport]:
    now = now or utcnow()

    def days_ago(days: int) -> datetime:
        return now - timedelta(days=days)

    # Seeded open work has already been through approval
    approver = "Inspection Team"

    return [
        DamageReport(
            id="RPT-2024-001",
            unit_id="GST 01-01",
            timestamp=days_ago(5),
            approved_by=approver,
            approved_at=days_ago(5),
            description="Tank is broken/damaged. Leaking fluids.",
            reported_by="Inspection Team",
            priority=RepairPriority.HIGH,
            status=ReportStatus.OPEN,
            suggested_parts=["Fuel Tank", "Mounting Straps"],
        ),
        DamageReport(
            id="RPT-2024-002",
            unit_id="GHM 08-02",
            timestamp=days_ago(10),
            approved_by=approver,
            approved_at=days_ago(10),
            description="Floor damage detected in main cabin area.",
            reported_by="Cleaning Crew",
            priority=RepairPriority.MEDIUM,
            status=ReportStatus.OPEN,
            suggested_parts=["Flooring Panels", "Adhesive"],
        ),
        DamageReport(
            id="RPT-2024-003",
            unit_id="GSV 19",
            timestamp=days_ago(2),
            approved_by=approver,
            approved_at=days_ago(2),
            description="Wiring issues causing intermittent lighting failure.",
            reported_by="Driver",
            priority=RepairPriority.HIGH,
            status=ReportStatus.IN_PROGRESS,
            suggested_parts=["Wiring Harness", "Fuses"],
        ),
        DamageReport(
            id="RPT-2024-004",
            unit_id="GDC 03",
            timestamp=days_ago(20),
            approved_by=approver,
            approved_at=days_ago(20),
            description="Unit marked Out of Service. Major engine failure.",
            reported_by="Shop Foreman",
            priority=RepairPriority.CRITICAL,
            status=ReportStatus.OPEN,
            suggested_parts=["Engine Block", "Pistons"],
        ),
    ]
