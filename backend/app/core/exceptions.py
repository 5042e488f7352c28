"""
Domain Exceptions

Services raise these; the HTTP layer converts them with ``to_http_exception``
(see the global handler in ``app.main``). Services never build HTTP responses
themselves.
"""
from typing import Any, Optional

from fastapi import HTTPException


class FieldOpsException(Exception):
    """Base class for all domain failures."""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EntityNotFoundException(FieldOpsException):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} '{identifier}' not found.",
            {"entity": entity, "identifier": str(identifier)},
        )
        self.entity = entity
        self.identifier = identifier


class ValidationException(FieldOpsException):
    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)
        self.field = field


class InvalidStateTransitionException(FieldOpsException):
    code = "INVALID_STATE"
    status_code = 409

    def __init__(self, entity: str, current_state: str, target_state: str):
        super().__init__(
            f"{entity} cannot move from '{current_state}' to '{target_state}'.",
            {"entity": entity, "current_state": current_state, "target_state": target_state},
        )
        self.current_state = current_state
        self.target_state = target_state


class ConflictException(FieldOpsException):
    code = "CONFLICT"
    status_code = 409


class StorageFailureException(FieldOpsException):
    code = "STORAGE_FAILURE"
    status_code = 503

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        super().__init__(f"Storage failure during {operation}.", {"operation": operation})
        self.operation = operation
        self.cause = cause


def to_http_exception(exc: FieldOpsException) -> HTTPException:
    detail = {"code": exc.code, "message": exc.message}
    if exc.details:
        detail["details"] = exc.details
    return HTTPException(status_code=exc.status_code, detail=detail)
