"""
Input validation.

Runs every check on a parsed query and the session's uploaded files before an
expensive render is committed, and reports all problems in one pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sureviz.genome.reference import GenomeReference
from sureviz.models.data_classes import (
    Query,
    UploadedFileSet,
    ValidationResult,
)
from sureviz.models.enums import FileRole

logger = logging.getLogger(__name__)


@dataclass
class ValidationCheck:
    """Result of a single input check."""
    name: str
    passed: bool
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)


class InputValidator:
    """
    Validates a query against the reference genome and uploaded files.

    Checks, in order (none short-circuits):
    1. Chromosome is a known contig
    2. Position leaves room for the flank inside the contig
    3. Flank does not exceed the configured maximum
    4. Every required file role is present, still on disk and parsed
    5. Files declaring chromosome ranges overlap the query window
    """

    def __init__(
        self,
        reference: GenomeReference,
        max_flank: int,
        required_roles: Sequence[FileRole] = (),
    ):
        self.reference = reference
        self.max_flank = max_flank
        self.required_roles = list(required_roles)

    def validate(self, query: Query, files: UploadedFileSet) -> ValidationResult:
        """Run all checks and collect a reason for each failure."""
        checks = self.run_checks(query, files)
        reasons = [c.message for c in checks if not c.passed]
        result = ValidationResult(passed=not reasons, reasons=reasons)

        if result.passed:
            logger.info(f"Input follows the guidelines for {query.locus} (flank {query.flank})")
        else:
            logger.info(f"Input for {query.locus} rejected: {'; '.join(reasons)}")
        return result

    def run_checks(self, query: Query, files: UploadedFileSet) -> List[ValidationCheck]:
        """Run every check and return the individual verdicts in order."""
        return [
            self._check_chromosome(query),
            self._check_position(query),
            self._check_flank(query),
            self._check_required_files(files),
            self._check_file_overlap(query, files),
        ]

    def _contig_length(self, chromosome: str) -> Optional[int]:
        contig = self.reference.normalize_chromosome(chromosome)
        if contig is None:
            return None
        return self.reference.get_chromosome_length(contig)

    def _check_chromosome(self, query: Query) -> ValidationCheck:
        if self.reference.has_chromosome(query.chromosome):
            return ValidationCheck("chromosome", True)
        return ValidationCheck(
            "chromosome",
            False,
            f"unknown chromosome '{query.chromosome}' for reference {self.reference.name}",
            {"chromosome": query.chromosome},
        )

    def _check_position(self, query: Query) -> ValidationCheck:
        length = self._contig_length(query.chromosome)
        if length is None:
            return ValidationCheck(
                "position",
                False,
                f"position {query.position} cannot be placed on unknown chromosome '{query.chromosome}'",
            )

        upper = length - query.flank
        if 1 <= query.position <= upper:
            return ValidationCheck("position", True)
        return ValidationCheck(
            "position",
            False,
            f"position {query.position} is outside {query.chromosome}:1-{max(upper, 0)} "
            f"(contig length {length}, flank {query.flank})",
            {"length": length, "upper_bound": upper},
        )

    def _check_flank(self, query: Query) -> ValidationCheck:
        if query.flank <= self.max_flank:
            return ValidationCheck("flank", True)
        return ValidationCheck(
            "flank",
            False,
            f"flank {query.flank} exceeds maximum of {self.max_flank}",
            {"max_flank": self.max_flank},
        )

    def _check_required_files(self, files: UploadedFileSet) -> ValidationCheck:
        problems = []
        for role in self.required_roles:
            uploaded = files.get(role)
            if uploaded is None or not uploaded.present or not uploaded.path.is_file():
                problems.append(f"required file '{role.value}' is missing")
            elif not uploaded.parsed:
                detail = f": {uploaded.error}" if uploaded.error else ""
                problems.append(f"required file '{role.value}' could not be read{detail}")

        if not problems:
            return ValidationCheck("required_files", True)
        return ValidationCheck("required_files", False, "; ".join(problems))

    def _check_file_overlap(self, query: Query, files: UploadedFileSet) -> ValidationCheck:
        window = query.window

        outside = []
        for uploaded in files:
            if uploaded.regions and not uploaded.overlaps(window):
                outside.append(uploaded.role.value)

        if not outside:
            return ValidationCheck("file_overlap", True)
        return ValidationCheck(
            "file_overlap",
            False,
            f"no data overlapping {window} in file(s): {', '.join(outside)}",
            {"roles": outside},
        )
