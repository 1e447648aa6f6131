from __future__ import annotations
from enum import Enum as PyEnum

from sqlalchemy import JSON, Column, DateTime, String, Text
from sqlalchemy.dialects.postgresql import ARRAY

from core.database import Base

# Native text[] on PostgreSQL, JSON everywhere else
StringList = JSON().with_variant(ARRAY(Text), "postgresql")


class RepairPriority(str, PyEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ReportStatus(str, PyEnum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"


# Priorities that take a unit off the road as soon as the report is approved
URGENT_PRIORITIES = {RepairPriority.HIGH, RepairPriority.CRITICAL}

# Statuses that still count against a unit's repair state
ACTIVE_REPORT_STATUSES = {ReportStatus.OPEN, ReportStatus.IN_PROGRESS}


class DamageReportRecord(Base):
    __tablename__ = "damage_reports"

    id = Column(String(40), primary_key=True)
    # Not a foreign key: the workflow validates the unit before filing
    unit_id = Column(String(40), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    reported_by = Column(String(120), nullable=True)
    priority = Column(String(20), nullable=False)

    images = Column(StringList, nullable=False, default=list)
    ai_analysis = Column(Text, nullable=True)
    suggested_parts = Column(StringList, nullable=True)

    status = Column(String(20), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String(120), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
