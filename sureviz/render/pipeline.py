"""
Render pipeline collaborator.

The session core only needs "given a validated query and the current files,
produce a set of artifacts, or fail". Plot drawing lives behind this seam.
"""

from __future__ import annotations

import csv
import json
import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import List

from sureviz.core.exceptions import ReferenceNotAvailableError, RenderError
from sureviz.genome.reference import GenomeReference
from sureviz.models.data_classes import (
    Artifact,
    ArtifactSet,
    Query,
    UploadedFileSet,
)
from sureviz.models.enums import ArtifactKind
from sureviz.uploads import TABULAR_TYPES, iter_records

logger = logging.getLogger(__name__)

FASTA_LINE_WIDTH = 60


class RenderPipeline(ABC):
    """
    Base class for render pipelines.

    Implementations are blocking and may write files; they are invoked at
    most once at a time per session.
    """

    @abstractmethod
    def render(self, query: Query, files: UploadedFileSet) -> ArtifactSet:
        """
        Produce artifacts for a validated query.

        Raises:
            RenderError: If any step fails
        """
        pass


class ReferenceWindowPipeline(RenderPipeline):
    """
    Writes the data behind the plots for one query window.

    Each render gets a fresh directory containing:
    - ``window.fa``: reference sequence of the window (when a FASTA is loaded)
    - ``<role>.window.tsv``: records of each tabular file inside the window
    - ``manifest.json``: the query and the input files
    """

    def __init__(self, reference: GenomeReference, output_dir: Path):
        self.reference = reference
        self.output_dir = Path(output_dir)

    def _new_render_dir(self, query: Query) -> Path:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        name = f"{query.chromosome}_{query.position}_{query.flank}_{stamp}_{uuid.uuid4().hex[:8]}"
        render_dir = self.output_dir / name
        render_dir.mkdir(parents=True, exist_ok=False)
        return render_dir

    def render(self, query: Query, files: UploadedFileSet) -> ArtifactSet:
        try:
            render_dir = self._new_render_dir(query)
            artifacts: List[Artifact] = []

            if self.reference.has_sequence:
                artifacts.append(self._write_sequence(query, render_dir))

            for uploaded in files:
                if uploaded.parsed and uploaded.declared_type in TABULAR_TYPES:
                    artifacts.append(self._write_track(query, uploaded.role.value,
                                                       uploaded.path, uploaded.declared_type,
                                                       render_dir))

            artifacts.append(self._write_manifest(query, files, artifacts, render_dir))
        except (OSError, ValueError, csv.Error, ReferenceNotAvailableError) as e:
            raise RenderError(f"Rendering {query.locus} failed: {e}") from e

        logger.info(f"Rendered {len(artifacts)} artifacts for {query.locus} into {render_dir}")
        return ArtifactSet(query=query, output_dir=render_dir, artifacts=artifacts)

    def _write_sequence(self, query: Query, render_dir: Path) -> Artifact:
        window = query.window
        seq = self.reference.get_sequence(window.chromosome, window.start, window.end)
        path = render_dir / "window.fa"
        lines = [f">{window}"]
        lines.extend(seq[i:i + FASTA_LINE_WIDTH] for i in range(0, len(seq), FASTA_LINE_WIDTH))
        path.write_text("\n".join(lines) + "\n")
        return Artifact(name=path.name, kind=ArtifactKind.SEQUENCE, path=path)

    def _write_track(
        self,
        query: Query,
        role: str,
        source: Path,
        file_type: str,
        render_dir: Path,
    ) -> Artifact:
        window = query.window
        path = render_dir / f"{role}.window.tsv"
        wanted = {window.chromosome, window.chromosome.removeprefix("chr"), f"chr{window.chromosome}"}

        n_records = 0
        with open(path, "w") as out:
            out.write("chromosome\tstart\tend\tfields\n")
            for chrom, start, end, fields in iter_records(source, file_type):
                if chrom not in wanted or end < window.start or start > window.end:
                    continue
                out.write(f"{chrom}\t{start}\t{end}\t{'|'.join(fields[3:])}\n")
                n_records += 1

        logger.debug(f"{role}: {n_records} records in {window}")
        return Artifact(name=path.name, kind=ArtifactKind.TRACK, path=path)

    def _write_manifest(
        self,
        query: Query,
        files: UploadedFileSet,
        artifacts: List[Artifact],
        render_dir: Path,
    ) -> Artifact:
        path = render_dir / "manifest.json"
        manifest = {
            "query": query.model_dump(mode="json"),
            "window": str(query.window),
            "reference": self.reference.name,
            "files": {
                f.role.value: {"path": str(f.path), "type": f.declared_type}
                for f in files
            },
            "artifacts": [a.name for a in artifacts],
        }
        path.write_text(json.dumps(manifest, indent=2))
        return Artifact(name=path.name, kind=ArtifactKind.MANIFEST, path=path)
