"""
Test configuration and fixtures for SuREViz.
"""

import pytest
from pathlib import Path
from typing import Dict, List, Optional

from sureviz.core.exceptions import DownloadError
from sureviz.genome.reference import GenomeReference
from sureviz.models.data_classes import (
    Artifact,
    ArtifactSet,
    Query,
    UploadedFileSet,
)
from sureviz.models.enums import ArtifactKind, FileRole
from sureviz.render.pipeline import RenderPipeline
from sureviz.session.validator import InputValidator
from sureviz.session.workflow import SessionWorkflow


CONTIG_LENGTHS = {
    "chr1": 248_956_422,
    "chr2": 242_193_529,
    "chrX": 156_040_895,
}

MAX_FLANK = 25_000
REQUIRED_ROLES = [FileRole.SNP_TABLE, FileRole.ASSAY_SIGNAL]


class RecordingPipeline(RenderPipeline):
    """Pipeline double that records calls and can be told to fail."""

    def __init__(self, output_dir: Path, fail_with: Optional[Exception] = None):
        self.output_dir = output_dir
        self.fail_with = fail_with
        self.calls: List[Query] = []

    def render(self, query: Query, files: UploadedFileSet) -> ArtifactSet:
        self.calls.append(query)
        if self.fail_with is not None:
            raise self.fail_with

        render_dir = self.output_dir / f"render_{len(self.calls)}"
        render_dir.mkdir(parents=True)
        plot = render_dir / "logo.png"
        plot.write_bytes(b"png")
        return ArtifactSet(
            query=query,
            output_dir=render_dir,
            artifacts=[Artifact(name="logo.png", kind=ArtifactKind.PLOT, path=plot)],
        )


class RecordingDownloader:
    """Download double; remembers what it was asked to package."""

    def __init__(self, download_dir: Path):
        self.download_dir = download_dir
        self.calls: List[Optional[ArtifactSet]] = []

    def download(self, artifacts: Optional[ArtifactSet]) -> Path:
        self.calls.append(artifacts)
        if artifacts is None:
            raise DownloadError("Nothing has been rendered yet")
        return self.download_dir / "results.zip"


@pytest.fixture
def contig_lengths() -> Dict[str, int]:
    return dict(CONTIG_LENGTHS)


@pytest.fixture
def reference(contig_lengths) -> GenomeReference:
    """Reference known only by its contig lengths."""
    return GenomeReference("hg38", contig_lengths=contig_lengths)


@pytest.fixture
def small_fasta(tmp_path: Path) -> Path:
    """Tiny two-contig FASTA (chr1: 2000bp, chr2: 1000bp)."""
    path = tmp_path / "mini.fa"
    chr1 = "ACGT" * 500
    chr2 = "GGCC" * 250
    lines = [">chr1"]
    lines.extend(chr1[i:i + 60] for i in range(0, len(chr1), 60))
    lines.append(">chr2")
    lines.extend(chr2[i:i + 60] for i in range(0, len(chr2), 60))
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def snp_table(tmp_path: Path) -> Path:
    """SNP table with scattered chr1 SNPs between 49,500 and 75,000 (1-based positions)."""
    path = tmp_path / "snps.tsv"
    path.write_text(
        "chr\tpos\tref\talt\twilcox_p\n"
        "chr1\t49500\tA\tG\t0.001\n"
        "chr1\t50000\tC\tT\t0.02\n"
        "chr1\t52000\tT\tC\t0.04\n"
        "chr1\t53000\tA\tT\t0.1\n"
        "chr1\t60000\tG\tC\t0.2\n"
        "chr1\t75000\tG\tA\t0.3\n"
    )
    return path


@pytest.fixture
def assay_bed(tmp_path: Path) -> Path:
    """SuRE signal as BED (0-based), covering chr1:40,001-80,000."""
    path = tmp_path / "sure.bed"
    path.write_text(
        "track name=sure\n"
        "chr1\t40000\t60000\t12.5\n"
        "chr1\t70000\t80000\t3.1\n"
    )
    return path


@pytest.fixture
def chr2_peaks(tmp_path: Path) -> Path:
    """Peaks only on chr2."""
    path = tmp_path / "peaks.narrowPeak"
    path.write_text("chr2\t1000\t2000\tpeak1\t500\n")
    return path


@pytest.fixture
def validator(reference) -> InputValidator:
    return InputValidator(reference, max_flank=MAX_FLANK, required_roles=REQUIRED_ROLES)


@pytest.fixture
def pipeline(tmp_path: Path) -> RecordingPipeline:
    return RecordingPipeline(tmp_path / "renders")


@pytest.fixture
def downloader(tmp_path: Path) -> RecordingDownloader:
    return RecordingDownloader(tmp_path / "downloads")


@pytest.fixture
def workflow(validator, pipeline, downloader, snp_table, assay_bed) -> SessionWorkflow:
    """Session with both required files uploaded."""
    wf = SessionWorkflow(validator, pipeline, downloader, session_id="test")
    wf.register_file(FileRole.SNP_TABLE, snp_table)
    wf.register_file(FileRole.ASSAY_SIGNAL, assay_bed)
    return wf


@pytest.fixture
def max_flank() -> int:
    return MAX_FLANK
