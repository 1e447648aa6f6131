"""
Unit SQLAlchemy model: a tracked fleet vehicle or trailer.
"""
from __future__ import annotations
from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, Integer, String

from core.database import Base


class UnitType(str, PyEnum):
    """Enum for unit types."""
    TRUCK = "TRUCK"
    TRAILER = "TRAILER"


class UnitStatus(str, PyEnum):
    """Enum for unit operational status."""
    ACTIVE = "ACTIVE"
    NEEDS_REPAIR = "NEEDS_REPAIR"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"


class UnitRecord(Base):
    __tablename__ = "units"

    # Human-assigned fleet code, e.g. "GST 01-01"
    id = Column(String(40), primary_key=True)
    name = Column(String(80), nullable=False)
    type = Column(String(20), nullable=False)
    model = Column(String(120), nullable=False)
    status = Column(String(20), nullable=False, default=UnitStatus.ACTIVE.value)
    mileage = Column(Integer, nullable=True)
    last_inspection = Column(DateTime(timezone=True), nullable=True)
