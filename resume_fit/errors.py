"""
Error types raised by the resume fit core and its collaborators.
"""

from typing import Any, Optional


class ResumeFitError(Exception):
    """Base class for all resume_fit errors."""


class ConfigurationError(ResumeFitError, ValueError):
    """Invalid weights or optimization parameters. Raised at construction time."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid configuration for '{field}': {message}")


class CollaboratorError(ResumeFitError, RuntimeError):
    """An extractor, matcher or reviser failed. The core never retries these."""

    def __init__(self, collaborator: str, message: str, state: Optional[Any] = None):
        self.collaborator = collaborator
        self.message = message
        # Failed OptimizationState, when raised from inside a run
        self.state = state
        super().__init__(f"{collaborator} failed: {message}")


class InvalidStateTransition(ResumeFitError, RuntimeError):
    """A completed or failed optimization state was asked to change."""


class OptimizationError(ResumeFitError, ValueError):
    """A result was requested for a run that never recorded a round."""
