"""
Domain error taxonomy for the framework engine.

Every error carries a stable `code`, the HTTP status used by the error
envelope in main.py, a message that names the offending entity, and a
`details` dict with the ids involved.
"""
from __future__ import annotations

from typing import Any, Dict


class FrameworkError(Exception):
    code = "framework_error"
    status_code = 400

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details


class NotFoundError(FrameworkError):
    code = "not_found"
    status_code = 404


class ValidationError(FrameworkError):
    code = "validation_error"
    status_code = 400


class InvalidStateError(FrameworkError):
    code = "invalid_state"
    status_code = 409


class InvalidTransitionError(FrameworkError):
    code = "invalid_transition"
    status_code = 409


class DanglingReferenceError(FrameworkError):
    """A version item points at a catalogue entity that no longer exists."""

    code = "dangling_reference"
    status_code = 409


class IncoherentTreeError(FrameworkError):
    """Version rows cannot be nested (orphan theme/subtheme rows)."""

    code = "incoherent_tree"
    status_code = 409


class ConstraintError(FrameworkError):
    code = "constraint_violation"
    status_code = 409
