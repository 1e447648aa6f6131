from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from pydantic import Field

from schemas.base import CamelModel, utcnow
from schemas.damage_report import DamageReport
from schemas.unit import Unit

SNAPSHOT_VERSION = "1.0"


class OfflineActionType(str, Enum):
    CREATE_REPORT = "CREATE_REPORT"
    UPDATE_REPORT = "UPDATE_REPORT"
    UPDATE_STATUS = "UPDATE_STATUS"


class OfflineAction(CamelModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    type: OfflineActionType
    payload: dict[str, Any]
    timestamp: datetime = Field(default_factory=utcnow)


class SyncData(CamelModel):
    """Export/import bundle."""
    units: list[Unit]
    reports: list[DamageReport]
    version: str = SNAPSHOT_VERSION
    exported_at: datetime = Field(default_factory=utcnow)


class SyncResult(CamelModel):
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    remaining: int = 0
    skipped: bool = False


class SyncStatus(CamelModel):
    remote_configured: bool
    pending_actions: int
    last_sync_at: Optional[datetime] = None


class ImportResponse(CamelModel):
    units: int
    reports: int
    sync: Optional[SyncResult] = None
