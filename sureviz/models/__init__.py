"""Models package."""

from sureviz.models.enums import (
    FileRole,
    TriggerSource,
    SessionPhase,
    OutcomeStatus,
    ArtifactKind,
)
from sureviz.models.data_classes import (
    GenomicRegion,
    Query,
    ValidationResult,
    UploadedFile,
    UploadedFileSet,
    RenderRequest,
    ClickEvent,
    Artifact,
    ArtifactSet,
    RenderOutcome,
)

__all__ = [
    # Enums
    "FileRole",
    "TriggerSource",
    "SessionPhase",
    "OutcomeStatus",
    "ArtifactKind",
    # Data classes
    "GenomicRegion",
    "Query",
    "ValidationResult",
    "UploadedFile",
    "UploadedFileSet",
    "RenderRequest",
    "ClickEvent",
    "Artifact",
    "ArtifactSet",
    "RenderOutcome",
]
