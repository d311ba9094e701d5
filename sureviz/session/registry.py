"""
Session registry.

Each browser session gets its own workflow (state, files, lock); the
reference genome and configuration are shared read-only.
"""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Dict, List, Optional

from sureviz.config import SureVizConfig
from sureviz.core.exceptions import SessionNotFoundError
from sureviz.genome.reference import GenomeReference
from sureviz.render.download import ArchiveDownloader
from sureviz.render.pipeline import ReferenceWindowPipeline
from sureviz.session.validator import InputValidator
from sureviz.session.workflow import SessionWorkflow
from sureviz.uploads import UploadHandler

logger = logging.getLogger(__name__)

WorkflowFactory = Callable[[str], SessionWorkflow]


def build_workflow(config: SureVizConfig, reference: GenomeReference, session_id: str) -> SessionWorkflow:
    """Wire a session's collaborators from configuration."""
    validator = InputValidator(
        reference,
        max_flank=config.validation.max_flank,
        required_roles=config.validation.required_file_roles,
    )
    return SessionWorkflow(
        validator=validator,
        pipeline=ReferenceWindowPipeline(reference, config.output_dir / session_id),
        downloader=ArchiveDownloader(config.download_dir / session_id),
        uploads=UploadHandler(
            max_upload_bytes=config.upload.max_upload_bytes,
            max_scan_lines=config.upload.max_scan_lines,
        ),
        session_id=session_id,
    )


class SessionRegistry:
    """Thread-safe map of session id to workflow."""

    def __init__(self, factory: WorkflowFactory):
        self.factory = factory
        self._sessions: Dict[str, SessionWorkflow] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: SureVizConfig, reference: GenomeReference) -> "SessionRegistry":
        return cls(lambda session_id: build_workflow(config, reference, session_id))

    def create(self, session_id: Optional[str] = None) -> SessionWorkflow:
        session_id = session_id or uuid.uuid4().hex
        workflow = self.factory(session_id)
        with self._lock:
            self._sessions[session_id] = workflow
        logger.info(f"Session {session_id} started")
        return workflow

    def get(self, session_id: str) -> SessionWorkflow:
        with self._lock:
            workflow = self._sessions.get(session_id)
        if workflow is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")
        return workflow

    def close(self, session_id: str) -> None:
        with self._lock:
            workflow = self._sessions.pop(session_id, None)
        if workflow is None:
            raise SessionNotFoundError(f"Unknown session: {session_id}")
        logger.info(f"Session {session_id} closed")

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)
