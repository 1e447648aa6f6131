from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from models.unit import UnitStatus, UnitType
from schemas.base import CamelModel, as_utc
from schemas.damage_report import DamageReport


class Unit(CamelModel):
    id: str = Field(..., min_length=1, max_length=40)
    name: str
    type: UnitType
    model: str
    status: UnitStatus = UnitStatus.ACTIVE
    mileage: Optional[int] = None
    last_inspection: Optional[datetime] = None

    @field_validator("last_inspection")
    @classmethod
    def coerce_utc(cls, value):
        return as_utc(value)


class UnitStatusUpdateRequest(CamelModel):
    status: UnitStatus


class UnitDetailResponse(Unit):
    reports: list[DamageReport] = []
