"""
Exception hierarchy for FleetGuard.

Every error carries the HTTP status it maps to; main.py renders them with a
single exception handler.
"""
from typing import Any, Dict, Optional


class FleetGuardError(Exception):
    """
    Base exception for all FleetGuard domain errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "REPORT_404")
        details: Additional context as a dictionary
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "FLEET_000"
        self.details = details or {}

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detail": self.message,
            "code": self.code,
            "details": self.details,
        }


# =============================================================================
# VALIDATION
# =============================================================================

class DataValidationError(FleetGuardError):
    """Raised when caller-supplied data is malformed. No state is changed."""

    def __init__(self, message: str, code: str = "DATA_001", **kwargs):
        super().__init__(message=message, code=code, **kwargs)


class UnsupportedUpdateError(DataValidationError):
    """Raised when a partial report update matches neither the resolve nor the approve shape."""

    def __init__(self, fields, **kwargs):
        field_list = sorted(fields)
        super().__init__(
            message=f"Unsupported update shape: {', '.join(field_list) or '(empty)'}",
            code="DATA_002",
            details={"fields": field_list},
            **kwargs,
        )


class SnapshotFormatError(DataValidationError):
    """Raised when an import bundle is missing its units/reports collections."""

    def __init__(self, message: str = "Invalid file format: Missing units or reports.", **kwargs):
        super().__init__(message=message, code="DATA_003", **kwargs)


# =============================================================================
# AUTHORIZATION / LOOKUP / WORKFLOW
# =============================================================================

class AuthorizationError(FleetGuardError):
    status_code = 403

    def __init__(self, action: str, role: str):
        super().__init__(
            message=f"Operation '{action}' requires the MANAGER role",
            code="AUTH_403",
            details={"action": action, "role": role},
        )


class NotFoundError(FleetGuardError):
    status_code = 404


class UnitNotFoundError(NotFoundError):
    def __init__(self, unit_id: str):
        super().__init__(f"Unit not found: {unit_id}", code="UNIT_404", details={"unit_id": unit_id})


class ReportNotFoundError(NotFoundError):
    def __init__(self, report_id: str):
        super().__init__(
            f"Damage report not found: {report_id}",
            code="REPORT_404",
            details={"report_id": report_id},
        )


class InvalidTransitionError(FleetGuardError):
    status_code = 409

    def __init__(self, report_id: str, current: str, action: str):
        super().__init__(
            message=f"Cannot {action} report {report_id} while it is {current}",
            code="REPORT_409",
            details={"report_id": report_id, "status": current, "action": action},
        )


# =============================================================================
# EXTERNAL SERVICES
# =============================================================================

class AIServiceError(FleetGuardError):
    status_code = 502

    def __init__(self, message: str = "Failed to analyze damage report.", **kwargs):
        super().__init__(message=message, code="AI_001", **kwargs)
