"""
Core enumerations for SuREViz.
"""

from enum import Enum


class FileRole(str, Enum):
    """Role a user-supplied file plays in a render."""
    SNP_TABLE = "snps"                  # Query SNPs with reporter-assay scores
    ASSAY_SIGNAL = "assay_signal"       # SuRE reporter-assay signal track
    PEAK_ANNOTATION = "peaks"           # Regulatory element / ATAC peaks
    MOTIF_DATABASE = "motifs"           # TF motif database (MEME)
    REFERENCE = "reference"             # Custom reference sequence

    @classmethod
    def from_string(cls, value: str) -> "FileRole":
        """Parse a role from user input, handling common aliases."""
        aliases = {
            "snp": cls.SNP_TABLE,
            "sure": cls.ASSAY_SIGNAL,
            "signal": cls.ASSAY_SIGNAL,
            "peak": cls.PEAK_ANNOTATION,
            "annotation": cls.PEAK_ANNOTATION,
            "meme": cls.MOTIF_DATABASE,
            "motif": cls.MOTIF_DATABASE,
            "fasta": cls.REFERENCE,
        }
        for role in cls:
            if role.value == value.lower():
                return role
        if value.lower() in aliases:
            return aliases[value.lower()]
        raise ValueError(f"Unknown file role: {value}")


class TriggerSource(str, Enum):
    """What produced a render request."""
    BUTTON = "button"
    CLICK = "click"


class SessionPhase(str, Enum):
    """Phases of the per-session query/render machine."""
    IDLE = "idle"
    VALIDATING = "validating"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    RENDERING = "rendering"
    DONE = "done"


class OutcomeStatus(str, Enum):
    """Result of processing one trigger."""
    RENDERED = "rendered"
    REJECTED = "rejected"
    RENDER_FAILED = "render_failed"
    IGNORED = "ignored"
    AWAITING_CONFIRMATION = "awaiting_confirmation"


class ArtifactKind(str, Enum):
    """Kinds of files a render produces."""
    SEQUENCE = "sequence"
    TRACK = "track"
    MANIFEST = "manifest"
    PLOT = "plot"
