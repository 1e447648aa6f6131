from typing import List
from fastapi import Depends, HTTPException, Request, status

from core.security import get_current_user
from schemas.user import Actor
from services.ai_service import DamageAnalysisService
from services.persistence_gateway import PersistenceGateway
from services.report_workflow import ReportWorkflow


class RoleChecker:
    def __init__(self, allowed_roles: List[str]):
        self.allowed_roles = allowed_roles

    def __call__(self, user: Actor = Depends(get_current_user)) -> Actor:
        if user.role.value not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Operation not permitted. Required roles: {self.allowed_roles}"
            )
        return user


# Define reusable dependencies
require_manager = RoleChecker(["MANAGER"])


# The gateway, workflow and AI client are built once in main.py and live on app.state
def get_gateway(request: Request) -> PersistenceGateway:
    return request.app.state.gateway


def get_workflow(request: Request) -> ReportWorkflow:
    return request.app.state.workflow


def get_ai_service(request: Request) -> DamageAnalysisService:
    return request.app.state.ai_service
