"""
Pydantic data classes for SuREViz.

All core data structures passed between the session components.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Dict, List, Union
from pydantic import BaseModel, ConfigDict, Field, computed_field
from datetime import datetime

from sureviz.models.enums import (
    FileRole,
    TriggerSource,
    OutcomeStatus,
    ArtifactKind,
)


# =============================================================================
# Genomic Data Structures
# =============================================================================

def contig_key(chromosome: str) -> str:
    """Comparison key tolerant of the 'chr' prefix and case."""
    name = chromosome.lower()
    return name[3:] if name.startswith("chr") else name


class GenomicRegion(BaseModel):
    """A closed 1-based interval on a chromosome."""
    chromosome: str
    start: int
    end: int

    @computed_field
    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def overlaps(self, other: "GenomicRegion") -> bool:
        """Check if this region overlaps with another ('chr1' and '1' are the same contig)."""
        if contig_key(self.chromosome) != contig_key(other.chromosome):
            return False
        return self.start <= other.end and other.start <= self.end

    def __str__(self) -> str:
        return f"{self.chromosome}:{self.start}-{self.end}"


class Query(BaseModel):
    """A canonical locus query. Never mutated; a click builds a new one."""
    model_config = ConfigDict(frozen=True)

    raw_text: str
    chromosome: str = Field(..., min_length=1)
    position: int = Field(..., ge=1)
    flank: int = Field(..., ge=0)

    @computed_field
    @property
    def locus(self) -> str:
        return f"{self.chromosome}:{self.position}"

    @property
    def start(self) -> int:
        return max(1, self.position - self.flank)

    @property
    def end(self) -> int:
        return self.position + self.flank

    @property
    def window(self) -> GenomicRegion:
        return GenomicRegion(chromosome=self.chromosome, start=self.start, end=self.end)


class ValidationResult(BaseModel):
    """Verdict of one complete validator run."""
    passed: bool
    reasons: List[str] = Field(default_factory=list)


# =============================================================================
# Uploaded Files
# =============================================================================

class UploadedFile(BaseModel):
    """Metadata for one user-supplied file."""
    role: FileRole
    path: Path
    declared_type: Optional[str] = None
    present: bool = False
    parsed: bool = False
    error: Optional[str] = None
    size_bytes: int = 0

    # Merged intervals covered by the file's records (empty if not tabular)
    regions: List[GenomicRegion] = Field(default_factory=list)

    def overlaps(self, region: GenomicRegion) -> bool:
        return any(r.overlaps(region) for r in self.regions)


class UploadedFileSet(BaseModel):
    """Files supplied in one session, keyed by role."""
    files: Dict[FileRole, UploadedFile] = Field(default_factory=dict)

    def get(self, role: FileRole) -> Optional[UploadedFile]:
        return self.files.get(role)

    def put(self, uploaded: UploadedFile) -> None:
        self.files[uploaded.role] = uploaded

    def remove(self, role: FileRole) -> None:
        self.files.pop(role, None)

    def snapshot(self) -> "UploadedFileSet":
        """Deep copy handed to collaborators that must not see later changes."""
        return self.model_copy(deep=True)

    def __contains__(self, role: object) -> bool:
        return role in self.files

    def __iter__(self):
        return iter(self.files.values())

    def __len__(self) -> int:
        return len(self.files)


# =============================================================================
# Triggers
# =============================================================================

class RenderRequest(BaseModel):
    """Ephemeral request from a trigger point into the coordinator."""
    query: Query
    source: TriggerSource = TriggerSource.BUTTON


class ClickEvent(BaseModel):
    """A click on a rendered plot.

    ``y`` is a float for data points; ints and strings are axis labels.
    """
    x: float
    y: Optional[Union[int, float, str]] = None


# =============================================================================
# Render Results
# =============================================================================

class Artifact(BaseModel):
    """One file written by the render pipeline."""
    name: str
    kind: ArtifactKind
    path: Path


class ArtifactSet(BaseModel):
    """All artifacts of one render."""
    query: Query
    output_dir: Path
    artifacts: List[Artifact] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    def names(self) -> List[str]:
        return sorted(a.name for a in self.artifacts)


class RenderOutcome(BaseModel):
    """What happened to a trigger, for display by the UI layer."""
    status: OutcomeStatus
    query: Optional[Query] = None
    reasons: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    artifacts: Optional[ArtifactSet] = None
    prompt: Optional[str] = None

    @classmethod
    def rendered(cls, query: Query, artifacts: ArtifactSet) -> "RenderOutcome":
        return cls(status=OutcomeStatus.RENDERED, query=query, artifacts=artifacts)

    @classmethod
    def rejected(cls, reasons: List[str], query: Optional[Query] = None) -> "RenderOutcome":
        return cls(status=OutcomeStatus.REJECTED, query=query, reasons=list(reasons))

    @classmethod
    def failed(cls, query: Query, error: str) -> "RenderOutcome":
        return cls(status=OutcomeStatus.RENDER_FAILED, query=query, error=error)

    @classmethod
    def ignored(cls) -> "RenderOutcome":
        return cls(status=OutcomeStatus.IGNORED)

    @classmethod
    def awaiting(cls, query: Query, prompt: str) -> "RenderOutcome":
        return cls(status=OutcomeStatus.AWAITING_CONFIRMATION, query=query, prompt=prompt)
