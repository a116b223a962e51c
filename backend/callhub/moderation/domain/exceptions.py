"""Error taxonomy for the moderation and publication pipeline."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for pipeline failures surfaced to callers."""

    reason: str = "pipeline_error"
    status_code: int = 500

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(reason or self.reason)
        if reason:
            self.reason = reason


class ValidationError(PipelineError):
    """A required field is missing or malformed."""

    reason = "validation_error"
    status_code = 400

    def __init__(self, field: str, reason: str | None = None) -> None:
        super().__init__(reason or f"invalid:{field}")
        self.field = field


class InvalidTransitionError(ValidationError):
    """The requested transition is not allowed from the current state."""

    status_code = 409

    def __init__(self, state: str, transition: str) -> None:
        super().__init__("state", f"invalid_transition:{transition}_from_{state}")
        self.state = state
        self.transition = transition


class AuthError(PipelineError):
    reason = "auth_required"
    status_code = 401


class ForbiddenError(AuthError):
    reason = "insufficient_role"
    status_code = 403


class NotFoundError(PipelineError):
    reason = "not_found"
    status_code = 404

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection}_not_found")
        self.collection = collection
        self.record_id = record_id


class ConflictError(PipelineError):
    """A uniquely constrained record already exists."""

    reason = "conflict"
    status_code = 409

    def __init__(self, collection: str, cause: str | None = None) -> None:
        super().__init__(f"{collection}_conflict")
        self.collection = collection
        self.cause = cause


class StoreError(PipelineError):
    """The content store failed a read or write; carries the raw cause."""

    reason = "store_error"
    status_code = 503

    def __init__(self, collection: str, op: str, cause: str) -> None:
        super().__init__(f"store_error:{collection}.{op}")
        self.collection = collection
        self.op = op
        self.cause = cause
