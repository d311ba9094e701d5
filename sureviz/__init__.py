"""
SuREViz - interactive viewer for SNP effects on regulatory elements

Query a genomic locus, validate it against the reference genome and the
uploaded SuRE data, and render the plots around it. Clicking a plotted SNP
re-centres the query on it.
"""

__version__ = "0.1.0"
__author__ = "SuREViz Team"

from sureviz.models.enums import FileRole, OutcomeStatus, SessionPhase
from sureviz.models.data_classes import (
    Query,
    ValidationResult,
    UploadedFileSet,
    RenderRequest,
    RenderOutcome,
)

__all__ = [
    # Enums
    "FileRole",
    "OutcomeStatus",
    "SessionPhase",
    # Data classes
    "Query",
    "ValidationResult",
    "UploadedFileSet",
    "RenderRequest",
    "RenderOutcome",
]
