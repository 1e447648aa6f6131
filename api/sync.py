from typing import Any

from fastapi import APIRouter, Body, Depends

from api.dependencies import get_gateway, require_manager
from core.security import get_current_user
from schemas.sync import ImportResponse, SyncData, SyncResult, SyncStatus
from schemas.user import Actor
from services.persistence_gateway import PersistenceGateway

router = APIRouter(prefix="/sync", tags=["sync"])


@router.get("/status", response_model=SyncStatus)
def sync_status(
    gateway: PersistenceGateway = Depends(get_gateway),
    current_user: Actor = Depends(get_current_user)
):
    return gateway.status()


@router.post("/", response_model=SyncResult)
def sync_offline_changes(
    gateway: PersistenceGateway = Depends(get_gateway),
    current_user: Actor = Depends(get_current_user)
):
    """Replay queued writes against the remote store."""
    return gateway.sync_offline_changes()


@router.get("/export", response_model=SyncData)
def export_snapshot(
    gateway: PersistenceGateway = Depends(get_gateway),
    current_user: Actor = Depends(get_current_user)
):
    return gateway.export_snapshot()


@router.post("/import", response_model=ImportResponse)
def import_snapshot(
    payload: Any = Body(...),
    gateway: PersistenceGateway = Depends(get_gateway),
    current_user: Actor = Depends(require_manager)
):
    """Overwrite the local cache with an exported bundle."""
    return gateway.import_snapshot(payload)
