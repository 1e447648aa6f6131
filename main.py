import logging
from threading import Event, Thread
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from api import ai, auth, damage_reports, sync, units
from api.dependencies import get_workflow
from core.config import Settings, get_settings
from core.exceptions import FleetGuardError
from core.security import get_current_user
from schemas.damage_report import DashboardStats
from services.ai_service import DamageAnalysisService
from services.persistence_gateway import PersistenceGateway
from services.report_workflow import ReportWorkflow

SERVICE_NAME = "FleetGuard Repair Tracker"
VERSION = "1.0.0"

log = logging.getLogger(__name__)


def _sync_scheduler_loop(gateway: PersistenceGateway, interval_seconds: int, stop_event: Event) -> None:
    while not stop_event.is_set():
        try:
            gateway.refresh()
        except Exception as exc:
            log.error("Scheduled sync failed: %s", exc, exc_info=True)

        stop_event.wait(interval_seconds)


def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[PersistenceGateway] = None,
    ai_service: Optional[DamageAnalysisService] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    )

    app = FastAPI(
        title=SERVICE_NAME,
        description="Fleet damage reporting with offline-tolerant persistence",
        version=VERSION
    )
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.ai_service = ai_service
    app.state.workflow = ReportWorkflow(gateway) if gateway is not None else None

    # Register routers
    app.include_router(auth.router)
    app.include_router(units.router, prefix="/api")
    app.include_router(damage_reports.router, prefix="/api")
    app.include_router(sync.router, prefix="/api")
    app.include_router(ai.router, prefix="/api")

    @app.exception_handler(FleetGuardError)
    async def handle_fleetguard_error(request: Request, exc: FleetGuardError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.on_event("startup")
    def start_services() -> None:
        if app.state.gateway is None:
            app.state.gateway = PersistenceGateway.from_settings(settings)
            app.state.workflow = ReportWorkflow(app.state.gateway)
        if app.state.ai_service is None:
            app.state.ai_service = DamageAnalysisService.from_settings(settings)

        app.state.gateway.initialize()

        if not settings.sync_enabled or not app.state.gateway.remote_configured:
            log.info("Background sync disabled (SYNC_ENABLED=%s, remote=%s)",
                     settings.sync_enabled, app.state.gateway.remote_configured)
            return

        stop_event = Event()
        thread = Thread(
            target=_sync_scheduler_loop,
            args=(app.state.gateway, settings.sync_interval_seconds, stop_event),
            daemon=True,
        )
        thread.start()
        app.state.sync_stop_event = stop_event
        app.state.sync_thread = thread

    @app.on_event("shutdown")
    def stop_services() -> None:
        stop_event = getattr(app.state, "sync_stop_event", None)
        if stop_event:
            stop_event.set()
        gateway_ = app.state.gateway
        if gateway_ is not None and gateway_.remote is not None:
            gateway_.remote.dispose()

    # ==================== HEALTH CHECK ====================
    @app.get("/health")
    def health_check():
        """Health check endpoint for Docker and Kubernetes."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": VERSION
        }

    @app.get("/api/health")
    def api_health(request: Request):
        """API health check including persistence mode."""
        gateway_ = request.app.state.gateway
        return {
            "status": "operational",
            "version": VERSION,
            "service": SERVICE_NAME,
            "remote_configured": bool(gateway_ and gateway_.remote_configured),
            "pending_actions": gateway_.queue_size() if gateway_ else 0,
        }

    # ==================== API: DASHBOARD STATS ====================
    @app.get("/api/dashboard-stats", response_model=DashboardStats)
    def api_dashboard_stats(
        workflow: ReportWorkflow = Depends(get_workflow),
        current_user=Depends(get_current_user)
    ):
        """Unit counts per status and open report counts per priority."""
        return workflow.dashboard_stats()

    return app


app = create_app()
