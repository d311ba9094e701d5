"""
Render coordination.

validate -> (if valid) announce start -> run the pipeline -> announce finish.
Every trigger is validated afresh; the validated flag is never trusted across
trigger boundaries.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from sureviz.core.exceptions import ReferenceNotAvailableError, RenderError, StateInvariantViolation
from sureviz.models.data_classes import (
    Query,
    RenderOutcome,
    RenderRequest,
    UploadedFileSet,
)
from sureviz.models.enums import SessionPhase
from sureviz.render.pipeline import RenderPipeline
from sureviz.session.state import SessionState
from sureviz.session.validator import InputValidator

logger = logging.getLogger(__name__)

PhaseListener = Callable[[SessionPhase], None]
StartListener = Callable[[Query], None]
FinishListener = Callable[[RenderOutcome], None]


class RenderCoordinator:
    """
    Runs one validate/render cycle per trigger for a single session.

    The whole cycle runs under the session lock, so at most one pipeline
    invocation is in flight per session and later triggers wait their turn.
    """

    def __init__(
        self,
        validator: InputValidator,
        pipeline: RenderPipeline,
        state: SessionState,
        files: UploadedFileSet,
        lock: Optional[threading.RLock] = None,
    ):
        self.validator = validator
        self.pipeline = pipeline
        self.state = state
        self.files = files
        self.lock = lock or threading.RLock()

        self.phase_listeners: List[PhaseListener] = []
        self.start_listeners: List[StartListener] = []
        self.finish_listeners: List[FinishListener] = []

    def _enter(self, phase: SessionPhase) -> None:
        for listener in self.phase_listeners:
            listener(phase)

    def handle_trigger(self, request: RenderRequest) -> RenderOutcome:
        """
        Validate the request and, if it passes, render it.

        Returns:
            ``rejected`` with reasons, ``render_failed`` with the error, or
            ``rendered`` with the artifact set
        """
        with self.lock:
            query = request.query
            logger.info(f"Handling {request.source.value} trigger for {query.locus} (flank {query.flank})")

            self._enter(SessionPhase.VALIDATING)
            self.state.mark_validated(False)
            try:
                result = self.validator.validate(query, self.files)
            except ReferenceNotAvailableError:
                self._enter(SessionPhase.DONE)
                raise
            self.state.last_validation = result

            if not result.passed:
                logger.info("Input does not follow the guidelines. No processing done.")
                self._enter(SessionPhase.DONE)
                return RenderOutcome.rejected(result.reasons, query=query)

            self.state.mark_validated(True)
            self.state.set_query(query.chromosome, query.flank, query.position)

            outcome = self._render(query)
            self._enter(SessionPhase.DONE)
            return outcome

    def _render(self, query: Query) -> RenderOutcome:
        if not self.state.is_validated():
            raise StateInvariantViolation(f"Render of {query.locus} requested on an unvalidated session")

        self._enter(SessionPhase.RENDERING)
        for listener in self.start_listeners:
            listener(query)

        try:
            artifacts = self.pipeline.render(query, self.files.snapshot())
        except RenderError as e:
            logger.error(f"Render failed for {query.locus}: {e}")
            outcome = RenderOutcome.failed(query, str(e))
        except Exception as e:
            logger.exception(f"Unexpected render failure for {query.locus}")
            outcome = RenderOutcome.failed(query, f"Unexpected error: {e}")
        else:
            self.state.last_artifacts = artifacts
            outcome = RenderOutcome.rendered(query, artifacts)

        for listener in self.finish_listeners:
            listener(outcome)
        return outcome
