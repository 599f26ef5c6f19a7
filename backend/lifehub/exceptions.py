"""
Structured exceptions and error responses for LifeHub.

Every store raises subclasses of LifehubException; the API layer turns them
into ``{"error", "message", "details"}`` JSON bodies.
"""

from typing import Any, Dict, Optional, List
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


# =============================================================================
# Error Response Schema
# =============================================================================

class ErrorResponse(BaseModel):
    """Structured error response format."""
    error: str  # Error code (e.g., "not_found", "dependency_unmet")
    message: str
    details: Optional[List[Dict[str, Any]]] = None


# =============================================================================
# Custom Exceptions
# =============================================================================

class LifehubException(Exception):
    """Base exception for all LifeHub errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "internal_error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(LifehubException):
    """Resource not found."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            message=f"{resource} with ID {resource_id} not found",
            error_code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.resource = resource
        self.resource_id = resource_id


class ValidationError(LifehubException):
    """Request validation error."""

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            message=message,
            error_code="validation_error",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
        )

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        """Wrap a pydantic ValidationError raised while building a model."""
        return cls(
            "Invalid input",
            details=[
                {"loc": [str(p) for p in err["loc"]], "msg": err["msg"], "type": err["type"]}
                for err in exc.errors()
            ],
        )


class InvalidDependencyError(LifehubException):
    """A task cannot depend on itself."""

    def __init__(self, task_id: str):
        super().__init__(
            message="A task cannot depend on itself",
            error_code="invalid_dependency",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
        self.task_id = task_id


class CycleDetectedError(LifehubException):
    """Adding a gating dependency would close a cycle."""

    def __init__(self, task_id: str, depends_on_task_id: str):
        super().__init__(
            message="Adding this dependency would create a cycle of blocking dependencies",
            error_code="cycle_detected",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=[{
                "loc": ["body"],
                "msg": f"Dependency {task_id} -> {depends_on_task_id} would create a cycle",
                "type": "cycle_error",
            }],
        )
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id


class DependencyUnmetError(LifehubException):
    """Completion attempted while a gating prerequisite is still open."""

    def __init__(self, task_id: str, unmet_task_ids: List[str]):
        super().__init__(
            message="Task has unfinished prerequisites",
            error_code="dependency_unmet",
            status_code=status.HTTP_409_CONFLICT,
            details=[
                {"loc": ["dependencies"], "msg": f"Prerequisite {prereq} is not completed", "type": "unmet"}
                for prereq in unmet_task_ids
            ],
        )
        self.task_id = task_id
        self.unmet_task_ids = unmet_task_ids


class SessionAlreadyActiveError(LifehubException):
    """Another time-tracking session is running."""

    def __init__(self, active_task_id: str):
        super().__init__(
            message=f"A time tracking session is already active for task {active_task_id}",
            error_code="session_already_active",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.active_task_id = active_task_id


class NoActiveSessionError(LifehubException):
    """No running session for the given task."""

    def __init__(self, task_id: str):
        super().__init__(
            message=f"No active time tracking session for task {task_id}",
            error_code="no_active_session",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.task_id = task_id


class DataPointExistsError(LifehubException):
    """The productivity log already holds a point for this date."""

    def __init__(self, day: str):
        super().__init__(
            message=f"A productivity data point for {day} already exists",
            error_code="data_point_exists",
            status_code=status.HTTP_409_CONFLICT,
        )
        self.day = day


class ExternalFetchFailedError(LifehubException):
    """An external feed (wearables) could not deliver data."""

    def __init__(self, source: str, message: str):
        super().__init__(
            message=f"{source}: {message}",
            error_code="external_fetch_failed",
            status_code=status.HTTP_502_BAD_GATEWAY,
        )
        self.source = source


# =============================================================================
# Exception Handlers
# =============================================================================

async def lifehub_exception_handler(request: Request, exc: LifehubException) -> JSONResponse:
    """Handle LifehubException and return structured response."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(LifehubException, lifehub_exception_handler)
