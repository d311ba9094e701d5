"""
Reference genome handling with lazy loading.

Uses pyfaidx for memory-efficient access to large FASTA files. The reference
is read-only and shared by every session.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Dict, Mapping
import logging
import threading

from pyfaidx import Fasta, FetchError

from sureviz.core.exceptions import ReferenceNotAvailableError

logger = logging.getLogger(__name__)


class GenomeReference:
    """
    Lazy-loading genome reference.

    Backed either by a FASTA file (via pyfaidx, which creates the .fai index
    if needed) or by an explicit contig-length mapping, which is enough for
    validation when no sequence is required.

    Features:
    - Memory-mapped FASTA (only loads requested regions)
    - Thread-safe loading
    - 'chr1' vs '1' naming tolerance
    """

    _shared: Dict[str, "GenomeReference"] = {}
    _shared_lock = threading.Lock()

    def __init__(
        self,
        name: str,
        fasta_path: Optional[Path] = None,
        contig_lengths: Optional[Mapping[str, int]] = None,
    ):
        self.name = name
        self.fasta_path = fasta_path
        self._fasta: Optional[Fasta] = None
        self._chromosome_lengths: Dict[str, int] = dict(contig_lengths or {})
        self._load_lock = threading.Lock()

    @classmethod
    def shared(cls, name: str, fasta_path: Optional[Path] = None) -> "GenomeReference":
        """One instance per build and FASTA path for the whole process."""
        key = f"{name}:{fasta_path}"
        with cls._shared_lock:
            if key not in cls._shared:
                cls._shared[key] = cls(name, fasta_path=fasta_path)
            return cls._shared[key]

    def _ensure_loaded(self) -> None:
        """Load FASTA index if not already loaded."""
        if self._fasta is not None or (self._chromosome_lengths and self.fasta_path is None):
            return

        with self._load_lock:
            if self._fasta is not None:
                return

            if self.fasta_path is None:
                raise ReferenceNotAvailableError(
                    f"No FASTA path configured for genome {self.name}. "
                    f"Set SUREVIZ_REFERENCE_FASTA or place {self.name}.fa in ~/.sureviz/genomes."
                )

            if not self.fasta_path.exists():
                raise ReferenceNotAvailableError(f"Genome FASTA not found: {self.fasta_path}")

            logger.info(f"Loading reference {self.name} from {self.fasta_path}")
            fasta = Fasta(str(self.fasta_path), build_index=True)
            self._chromosome_lengths = {chrom: len(fasta[chrom]) for chrom in fasta.keys()}
            self._fasta = fasta

    @property
    def has_sequence(self) -> bool:
        return self.fasta_path is not None

    @property
    def chromosomes(self) -> list[str]:
        """List of contig names."""
        self._ensure_loaded()
        return list(self._chromosome_lengths)

    def normalize_chromosome(self, chromosome: str) -> Optional[str]:
        """
        Map a user-supplied name onto a contig of this reference.

        Handles 'chr1' vs '1' naming conventions and case. Returns None if
        no contig matches.
        """
        self._ensure_loaded()

        if chromosome in self._chromosome_lengths:
            return chromosome

        alt = chromosome[3:] if chromosome.startswith("chr") else f"chr{chromosome}"
        if alt in self._chromosome_lengths:
            return alt

        for key in self._chromosome_lengths:
            if key.upper() == chromosome.upper():
                return key

        return None

    def has_chromosome(self, chromosome: str) -> bool:
        return self.normalize_chromosome(chromosome) is not None

    def get_chromosome_length(self, chromosome: str) -> int:
        """Get length of a chromosome."""
        chrom = self.normalize_chromosome(chromosome)
        if chrom is None:
            raise ValueError(f"Chromosome {chromosome} not found in {self.name}")
        return self._chromosome_lengths[chrom]

    def get_sequence(self, chromosome: str, start: int, end: int) -> str:
        """
        Get sequence from the reference.

        Args:
            chromosome: Chromosome name (with or without 'chr' prefix)
            start: Start position (1-based, inclusive)
            end: End position (1-based, inclusive)

        Returns:
            DNA sequence (uppercase), clamped to the contig
        """
        self._ensure_loaded()
        if self._fasta is None:
            raise ReferenceNotAvailableError(
                f"Reference {self.name} was built from contig lengths only; no sequence available"
            )

        chrom = self.normalize_chromosome(chromosome)
        if chrom is None:
            raise ValueError(f"Chromosome {chromosome} not found in {self.name}")

        # Clamp to valid range
        start = max(1, start)
        end = min(end, self._chromosome_lengths[chrom])

        if start > end:
            return ""

        try:
            return str(self._fasta[chrom][start - 1:end]).upper()
        except (KeyError, FetchError) as e:
            raise ValueError(f"Failed to fetch {chrom}:{start}-{end}: {e}")

    def close(self) -> None:
        """Close the FASTA file handle."""
        if self._fasta is not None:
            self._fasta.close()
            self._fasta = None
