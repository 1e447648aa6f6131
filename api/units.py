from fastapi import APIRouter, Depends

from api.dependencies import get_gateway, get_workflow
from core.exceptions import UnitNotFoundError
from core.security import get_current_user
from schemas.unit import Unit, UnitDetailResponse, UnitStatusUpdateRequest
from schemas.user import Actor
from services.persistence_gateway import PersistenceGateway
from services.report_workflow import ReportWorkflow

router = APIRouter(prefix="/units", tags=["units"])


@router.get("/", response_model=list[Unit])
def list_units(
    gateway: PersistenceGateway = Depends(get_gateway),
    current_user: Actor = Depends(get_current_user)
):
    return gateway.fetch_units()


@router.get("/{unit_id}", response_model=UnitDetailResponse)
def get_unit(
    unit_id: str,
    gateway: PersistenceGateway = Depends(get_gateway),
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    unit = gateway.get_unit(unit_id)
    if unit is None:
        raise UnitNotFoundError(unit_id)
    return UnitDetailResponse(**unit.model_dump(), reports=workflow.list_reports(unit_id=unit_id))


@router.put("/{unit_id}/status", response_model=Unit)
def update_unit_status(
    unit_id: str,
    payload: UnitStatusUpdateRequest,
    workflow: ReportWorkflow = Depends(get_workflow),
    current_user: Actor = Depends(get_current_user)
):
    """Manager override of a unit's status (e.g. OUT_OF_SERVICE)."""
    return workflow.override_unit_status(unit_id, payload.status, current_user)
