"""Core utilities package."""

from sureviz.core.exceptions import (
    SureVizError,
    ParseError,
    ValidationFailure,
    RenderError,
    DownloadError,
    ReferenceNotAvailableError,
    StateInvariantViolation,
    SessionNotFoundError,
)
from sureviz.core.log import setup_logging

__all__ = [
    "SureVizError",
    "ParseError",
    "ValidationFailure",
    "RenderError",
    "DownloadError",
    "ReferenceNotAvailableError",
    "StateInvariantViolation",
    "SessionNotFoundError",
    "setup_logging",
]
