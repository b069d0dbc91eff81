"""
Workflow error taxonomy.

NotFound, Forbidden and StructuralViolation abort a request. ValidationFailed
is recoverable by the caller and is turned into output errors by the
components. Event cancellation and concurrency conflicts are outcomes
(``OperationStatus``), never exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass


class WorkflowError(Exception):
    """Base class for workflow faults."""


class NotFoundError(WorkflowError, LookupError):
    def __init__(self, what: str, ident: object) -> None:
        super().__init__(f"{what} {ident} not found")
        self.what = what
        self.ident = ident


class ForbiddenError(WorkflowError, PermissionError):
    def __init__(self, message: str = "Permission denied", node_id: int | None = None) -> None:
        super().__init__(message)
        self.node_id = node_id


class StructuralViolationError(WorkflowError):
    def __init__(self, reason: str, message: str | None = None) -> None:
        super().__init__(message or reason)
        self.reason = reason


class InvalidTransitionError(StructuralViolationError):
    def __init__(self, from_state: str, to_state: str) -> None:
        super().__init__(
            "invalid_transition", f"Invalid transition from {from_state} to {to_state}"
        )
        self.from_state = from_state
        self.to_state = to_state


@dataclass(frozen=True)
class FieldError:
    code: str
    message: str
    field: str | None = None


class ValidationFailedError(WorkflowError, ValueError):
    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__("; ".join(e.message for e in errors) or "Validation failed")
        self.errors = errors
