from fastapi import APIRouter, Depends

from api.dependencies import get_ai_service, get_workflow
from core.security import get_current_user
from models.damage_report import ReportStatus
from schemas.ai import AIAnalysisRequest, AIAnalysisResult, SummaryRequest, SummaryResponse
from schemas.user import Actor
from services.ai_service import DamageAnalysisService
from services.report_workflow import ReportWorkflow

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/analyze", response_model=AIAnalysisResult)
def analyze_damage(
    payload: AIAnalysisRequest,
    ai_service: DamageAnalysisService = Depends(get_ai_service),
    current_user: Actor = Depends(get_current_user)
):
    return ai_service.analyze_damage(payload.image_base64, payload.description, payload.unit_context)


@router.post("/summary", response_model=SummaryResponse)
def summarize_reports(
    payload: SummaryRequest,
    ai_service: DamageAnalysisService = Depends(get_ai_service),
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    lines = payload.reports
    if lines is None:
        lines = [
            f"Unit {report.unit_id}: {report.description} ({report.priority.value})"
            for report in workflow.list_reports(status=ReportStatus.OPEN)
        ]
    return SummaryResponse(summary=ai_service.summarize_reports(lines))
