from __future__ import annotations


class ResumeMatchError(Exception):
    """Base class for errors raised by resumematch."""


class InferenceError(ResumeMatchError):
    """An inference operation could not produce a valid result."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.message = message


class SimulationPreconditionError(ResumeMatchError):
    """Raised when a simulation is requested before a baseline match score exists."""


class NoSessionError(ResumeMatchError):
    """Raised when an operation needs an analysis session and none was started."""


class RecordNotFoundError(ResumeMatchError, KeyError):
    """Raised when a saved analysis id is not in the store."""
