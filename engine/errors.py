# engine/errors.py
from __future__ import annotations
from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base class for errors surfaced to the caller as {error, code, details}."""
    status_code = 400
    default_code = "ENGINE_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInput(EngineError):
    """User input failed validation (bad range, overlap, import sums...)."""
    status_code = 422
    default_code = "VALIDATION_ERROR"


class InvariantViolation(EngineError):
    """Mutation rejected because it would break a data invariant."""
    status_code = 409
    default_code = "INVARIANT_VIOLATION"


class TermNotConfigured(EngineError):
    status_code = 409
    default_code = "TERM_NOT_CONFIGURED"

    def __init__(self, message: str = "No active term is configured"):
        super().__init__(message)


class NotFound(EngineError):
    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", details={"entity": entity, "id": entity_id})


class Conflict(EngineError):
    status_code = 409
    default_code = "CONFLICT"
