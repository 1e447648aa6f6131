"""
Services module - Business logic layer for FleetGuard.
"""
from services.local_store import LocalCacheStore
from services.offline_queue import OfflineActionQueue
from services.persistence_gateway import PersistenceGateway, WriteOutcome, WriteResult
from services.remote_store import RemoteDataStore
from services.report_workflow import ReportWorkflow

__all__ = [
    "LocalCacheStore",
    "OfflineActionQueue",
    "PersistenceGateway",
    "RemoteDataStore",
    "ReportWorkflow",
    "WriteOutcome",
    "WriteResult",
]
