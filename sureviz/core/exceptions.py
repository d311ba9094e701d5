"""
Exception hierarchy for SuREViz.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sureviz.models.data_classes import ValidationResult


class SureVizError(Exception):
    """Base class for all SuREViz errors."""
    pass


class ParseError(SureVizError):
    """Raised when locus text or flank value cannot be parsed."""
    pass


class ValidationFailure(SureVizError):
    """Raised when a query fails one or more input checks."""

    def __init__(self, result: "ValidationResult"):
        self.result = result
        super().__init__("; ".join(result.reasons) or "validation failed")


class RenderError(SureVizError):
    """Raised when the render pipeline fails on a valid query."""
    pass


class DownloadError(SureVizError):
    """Raised when current results cannot be packaged for download."""
    pass


class ReferenceNotAvailableError(SureVizError):
    """Raised when no reference genome is configured or the FASTA is missing."""
    pass


class StateInvariantViolation(SureVizError):
    """Internal bug: the session state machine reached an impossible state."""
    pass


class SessionNotFoundError(SureVizError):
    """Raised when a session id is unknown or closed."""
    pass
