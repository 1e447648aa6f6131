from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_gateway, get_workflow
from core.security import get_current_user
from models.damage_report import ReportStatus
from schemas.damage_report import DamageReport, DamageReportDraft
from schemas.user import Actor
from services.persistence_gateway import PersistenceGateway
from services.report_workflow import ReportWorkflow

router = APIRouter(prefix="/damage-reports", tags=["damage-reports"])


@router.get("/", response_model=list[DamageReport])
def list_damage_reports(
    unit_id: Optional[str] = None,
    status: Optional[ReportStatus] = None,
    gateway: PersistenceGateway = Depends(get_gateway),
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    # Pull from the remote store when reachable so the local cache is fresh
    gateway.fetch_reports()
    return workflow.list_reports(unit_id=unit_id, status=status)


@router.post("/", response_model=DamageReport, status_code=201)
def create_damage_report(
    payload: DamageReportDraft,
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    return workflow.submit(payload, current_user)


@router.get("/{report_id}", response_model=DamageReport)
def get_damage_report(
    report_id: str,
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    return workflow.get_report(report_id)


@router.post("/{report_id}/approve", response_model=DamageReport)
def approve_damage_report(
    report_id: str,
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    return workflow.approve(report_id, current_user)


@router.post("/{report_id}/resolve", response_model=DamageReport)
def resolve_damage_report(
    report_id: str,
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    return workflow.resolve(report_id, current_user)
