"""
Per-session query/render state machine.

Phases: IDLE -> VALIDATING -> RENDERING -> DONE, with AWAITING_CONFIRMATION
entered after an accepted plot click. Events are processed one at a time
under the session lock. While a confirmation is pending, every other trigger
is deferred and replayed, in order, once the user answers.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, Optional, Union

from sureviz.core.exceptions import DownloadError, ParseError
from sureviz.models.data_classes import (
    ClickEvent,
    RenderOutcome,
    RenderRequest,
    UploadedFile,
    UploadedFileSet,
    ValidationResult,
)
from sureviz.models.enums import FileRole, OutcomeStatus, SessionPhase, TriggerSource
from sureviz.render.download import ArchiveDownloader
from sureviz.render.pipeline import RenderPipeline
from sureviz.session.clicks import ClickInterpreter, ClickProposal, Ignored
from sureviz.session.coordinator import RenderCoordinator
from sureviz.session.query_parser import QueryParser
from sureviz.session.state import SessionState
from sureviz.session.validator import InputValidator
from sureviz.uploads import UploadHandler

logger = logging.getLogger(__name__)

HISTORY_SIZE = 50


# =============================================================================
# Events
# =============================================================================

@dataclass(frozen=True)
class ButtonPressed:
    """The render button, with the form values at the time of the press."""
    search_query_text: str
    flank_text: Union[str, int]


@dataclass(frozen=True)
class PlotClicked:
    """A click on a rendered plot; ``click`` is None when the selection was cleared."""
    click: Optional[ClickEvent]


@dataclass(frozen=True)
class ConfirmationResponded:
    accepted: bool


@dataclass(frozen=True)
class FilesChanged:
    role: Optional[FileRole] = None


SessionEvent = Union[ButtonPressed, PlotClicked, ConfirmationResponded, FilesChanged]


# =============================================================================
# Workflow
# =============================================================================

class SessionWorkflow:
    """
    Owns one session: its state, its files and its single-consumer event loop.

    Example:
        workflow = SessionWorkflow(validator, pipeline, downloader)
        workflow.register_file(FileRole.SNP_TABLE, Path("snps.tsv"))
        outcome = workflow.submit(ButtonPressed("chr1:50000", "1000"))
    """

    def __init__(
        self,
        validator: InputValidator,
        pipeline: RenderPipeline,
        downloader: Optional[ArchiveDownloader] = None,
        uploads: Optional[UploadHandler] = None,
        session_id: str = "local",
    ):
        self.session_id = session_id
        self.lock = threading.RLock()

        self.state = SessionState()
        self.files = UploadedFileSet()
        self.parser = QueryParser()
        self.validator = validator
        self.coordinator = RenderCoordinator(validator, pipeline, self.state, self.files, lock=self.lock)
        self.clicks = ClickInterpreter(downloader)

        self.uploads = uploads or UploadHandler()
        self.uploads.subscribe(lambda role: self.submit(FilesChanged(role)))

        self.phase = SessionPhase.IDLE
        self.pending: Optional[ClickProposal] = None
        self.deferred: Deque[SessionEvent] = deque()
        self.history: Deque[RenderOutcome] = deque(maxlen=HISTORY_SIZE)

        self.coordinator.phase_listeners.append(self._set_phase)

    def _set_phase(self, phase: SessionPhase) -> None:
        if phase != self.phase:
            logger.debug(f"[{self.session_id}] {self.phase.value} -> {phase.value}")
        self.phase = phase

    # ----- public entry points -----

    def submit(self, event: SessionEvent) -> RenderOutcome:
        """Process one event and return what happened to it."""
        with self.lock:
            if self.phase == SessionPhase.AWAITING_CONFIRMATION and not isinstance(event, ConfirmationResponded):
                logger.info(f"[{self.session_id}] Confirmation pending; deferring {type(event).__name__}")
                self.deferred.append(event)
                return RenderOutcome.awaiting(self.pending.query, self.pending.prompt)

            outcome = self._dispatch(event)
            self.history.append(outcome)

            if not isinstance(event, ConfirmationResponded):
                return outcome

            while self.deferred and self.phase != SessionPhase.AWAITING_CONFIRMATION:
                replayed = self._dispatch(self.deferred.popleft())
                self.history.append(replayed)
            return outcome

    def register_file(self, role: FileRole, path: Path, declared_type: Optional[str] = None) -> UploadedFile:
        """Add or replace a file; re-validates the current query but never renders."""
        with self.lock:
            return self.uploads.register(self.files, role, path, declared_type)

    def remove_file(self, role: FileRole) -> None:
        with self.lock:
            self.uploads.remove(self.files, role)

    def download_current(self) -> Path:
        """Package the current artifacts, as a declined click would."""
        with self.lock:
            if self.clicks.downloader is None:
                raise DownloadError("Downloads are not configured for this session")
            self.state.last_download = self.clicks.downloader.download(self.state.last_artifacts)
            return self.state.last_download

    def snapshot(self) -> dict:
        with self.lock:
            data = self.state.snapshot()
            data.update({
                "session_id": self.session_id,
                "phase": self.phase.value,
                "pending_prompt": self.pending.prompt if self.pending else None,
                "deferred_events": len(self.deferred),
                "files": {f.role.value: f.model_dump(mode="json") for f in self.files},
            })
            return data

    # ----- event handlers -----

    def _dispatch(self, event: SessionEvent) -> RenderOutcome:
        if isinstance(event, ButtonPressed):
            return self._on_button(event)
        if isinstance(event, PlotClicked):
            return self._on_click(event)
        if isinstance(event, ConfirmationResponded):
            return self._on_confirmation(event)
        if isinstance(event, FilesChanged):
            return self._on_files_changed(event)
        raise TypeError(f"Unknown session event: {event!r}")

    def _on_button(self, event: ButtonPressed) -> RenderOutcome:
        logger.info(
            f"[{self.session_id}] Observed search query : {event.search_query_text} flank : {event.flank_text}"
        )
        self.state.set_form_values(event.search_query_text, event.flank_text)
        self._set_phase(SessionPhase.VALIDATING)

        try:
            query = self.parser.parse(event.search_query_text, event.flank_text)
        except ParseError as e:
            logger.info(f"[{self.session_id}] Rejected query: {e}")
            self.state.mark_validated(False)
            self.state.last_validation = ValidationResult(passed=False, reasons=[str(e)])
            self._set_phase(SessionPhase.DONE)
            return RenderOutcome.rejected([str(e)])

        return self.coordinator.handle_trigger(RenderRequest(query=query, source=TriggerSource.BUTTON))

    def _on_click(self, event: PlotClicked) -> RenderOutcome:
        proposal = self.clicks.propose(event.click, self.state)
        if isinstance(proposal, Ignored):
            return RenderOutcome.ignored()

        self.pending = proposal
        self._set_phase(SessionPhase.AWAITING_CONFIRMATION)
        return RenderOutcome.awaiting(proposal.query, proposal.prompt)

    def _on_confirmation(self, event: ConfirmationResponded) -> RenderOutcome:
        if self.pending is None:
            logger.debug(f"[{self.session_id}] Confirmation with nothing pending, ignoring")
            return RenderOutcome.ignored()

        proposal, self.pending = self.pending, None
        request = self.clicks.resolve(proposal, event.accepted, self.state)

        if isinstance(request, Ignored):
            self._set_phase(SessionPhase.DONE)
            return RenderOutcome.ignored()

        outcome = self.coordinator.handle_trigger(request)
        if outcome.status in (OutcomeStatus.RENDERED, OutcomeStatus.RENDER_FAILED):
            # keep the search box in step with the confirmed position
            self.state.set_form_values(request.query.locus, request.query.flank)
        return outcome

    def _on_files_changed(self, event: FilesChanged) -> RenderOutcome:
        query = self.state.current_query()
        if query is None:
            return RenderOutcome.ignored()

        self._set_phase(SessionPhase.VALIDATING)
        try:
            result = self.validator.validate(query, self.files)
            self.state.mark_validated(result.passed)
            self.state.last_validation = result
        finally:
            self._set_phase(SessionPhase.DONE)

        if result.passed:
            return RenderOutcome.ignored()
        return RenderOutcome.rejected(result.reasons, query=query)
