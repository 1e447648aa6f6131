from typing import Optional

from pydantic import Field

from models.damage_report import RepairPriority
from schemas.base import CamelModel


class AIAnalysisRequest(CamelModel):
    image_base64: str = Field(..., min_length=1)
    description: str = ""
    unit_context: str = "vehicle"


class AIAnalysisResult(CamelModel):
    damage_summary: str
    estimated_priority: RepairPriority
    suggested_actions: list[str]


class SummaryRequest(CamelModel):
    # None means "summarize every OPEN report"
    reports: Optional[list[str]] = None


class SummaryResponse(CamelModel):
    summary: str
