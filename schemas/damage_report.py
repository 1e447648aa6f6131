from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from models.damage_report import RepairPriority, ReportStatus
from schemas.base import CamelModel, as_utc


class DamageReport(CamelModel):
    id: str
    unit_id: str
    timestamp: datetime
    description: str = ""
    reported_by: Optional[str] = None
    priority: RepairPriority = RepairPriority.MEDIUM
    images: list[str] = []
    ai_analysis: Optional[str] = None
    suggested_parts: Optional[list[str]] = None
    status: ReportStatus
    resolved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None

    @field_validator("timestamp", "resolved_at", "approved_at")
    @classmethod
    def coerce_utc(cls, value):
        return as_utc(value)


class DamageReportDraft(CamelModel):
    """What a caller supplies when filing a report; the workflow fills in the rest."""
    unit_id: str = Field(..., min_length=1)
    description: str = Field("", max_length=5000)
    priority: RepairPriority = RepairPriority.MEDIUM
    images: list[str] = []
    ai_analysis: Optional[str] = None
    suggested_parts: Optional[list[str]] = None


class DashboardStats(CamelModel):
    total_units: int
    units_by_status: dict[str, int]
    open_reports_by_priority: dict[str, int]
    pending_approval: int
