"""
Per-session mutable state.

One SessionState belongs to exactly one session; it is never shared between
sessions and is only written from that session's trigger-processing turn.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from sureviz.models.data_classes import ArtifactSet, Query, ValidationResult


class SessionState:
    """
    Current query window, render memory and the validity flag gating renders.

    Attributes:
        chromosome, flank, position: Last accepted query window
        last_click_x: Render memory, the last click x-coordinate accepted
        validated: True only after a completed, passing validator run
    """

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Start from a clean slate; nothing renders on stale state."""
        self.chromosome: Optional[str] = None
        self.flank: Optional[int] = None
        self.position: Optional[int] = None
        self.last_click_x: Optional[float] = None
        self.validated: bool = False

        # UI-facing extras
        self.search_query_text: str = ""
        self.flank_text: str = ""
        self.last_validation: Optional[ValidationResult] = None
        self.last_artifacts: Optional[ArtifactSet] = None
        self.last_download: Optional[Path] = None

    # ----- query window -----

    def set_query(self, chromosome: str, flank: int, position: int) -> None:
        self.chromosome = chromosome
        self.flank = flank
        self.position = position

    def current_query(self) -> Optional[Query]:
        """The accepted query, or None before the first successful validation."""
        if self.chromosome is None or self.position is None or self.flank is None:
            return None
        return Query(
            raw_text=f"{self.chromosome}:{self.position}",
            chromosome=self.chromosome,
            position=self.position,
            flank=self.flank,
        )

    # ----- render memory -----

    def set_click_memory(self, x: Optional[float]) -> None:
        self.last_click_x = x

    def click_memory(self) -> Optional[float]:
        return self.last_click_x

    # ----- validity -----

    def mark_validated(self, passed: bool) -> None:
        self.validated = bool(passed)

    def is_validated(self) -> bool:
        return self.validated

    # ----- form values shown in the UI -----

    def set_form_values(self, search_query_text: str, flank_text: Any) -> None:
        self.search_query_text = str(search_query_text)
        self.flank_text = str(flank_text)

    def form_values(self) -> Tuple[str, str]:
        return self.search_query_text, self.flank_text

    def snapshot(self) -> Dict[str, Any]:
        """Plain-dict view for the API and CLI."""
        query = self.current_query()
        return {
            "chromosome": self.chromosome,
            "flank": self.flank,
            "position": self.position,
            "locus": query.locus if query else None,
            "last_click_x": self.last_click_x,
            "validated": self.validated,
            "search_query": self.search_query_text,
            "flank_text": self.flank_text,
            "last_validation": self.last_validation.model_dump() if self.last_validation else None,
            "artifacts": self.last_artifacts.names() if self.last_artifacts else [],
            "last_download": str(self.last_download) if self.last_download else None,
        }
