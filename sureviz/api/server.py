"""
SuREViz Web API

FastAPI interface over the per-session query/render state machine. The
dashboard front-end posts form values, plot clicks and confirmation answers
here and displays the outcomes.
"""

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Union, Dict, Any
from functools import lru_cache
from pathlib import Path
import logging
import uvicorn

from sureviz import __version__
from sureviz.config import get_config
from sureviz.core.exceptions import (
    DownloadError,
    ReferenceNotAvailableError,
    SessionNotFoundError,
    StateInvariantViolation,
)
from sureviz.genome.reference import GenomeReference
from sureviz.models.data_classes import ClickEvent, RenderOutcome
from sureviz.models.enums import FileRole
from sureviz.session.registry import SessionRegistry
from sureviz.session.workflow import (
    ButtonPressed,
    ConfirmationResponded,
    PlotClicked,
    SessionEvent,
    SessionWorkflow,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SuREViz",
    description="Interactive viewer for SNP effects on regulatory elements",
    version=__version__,
)

# CORS for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Request Models
# =============================================================================

class SessionCreateRequest(BaseModel):
    autorun: bool = Field(False, description="Submit the default query immediately")


class FileRegistrationRequest(BaseModel):
    role: str = Field(..., description="File role (snps, assay_signal, peaks, motifs, reference)")
    path: str = Field(..., min_length=1, description="Path of the uploaded file on the server")
    declared_type: Optional[str] = Field(None, description="Override the type sniffed from the extension")

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: str) -> str:
        return FileRole.from_string(v.strip()).value


class RenderFormRequest(BaseModel):
    search_query: str = Field(..., description="Locus, e.g. chr1:50000")
    flank: Union[int, str] = Field(..., description="Bases on each side of the locus")


class ClickRequest(BaseModel):
    x: Optional[float] = Field(None, description="Clicked x value; null when the selection was cleared")
    y: Optional[Union[int, float, str]] = None


class ConfirmRequest(BaseModel):
    accept: bool


# =============================================================================
# Dependencies
# =============================================================================

@lru_cache()
def get_registry() -> SessionRegistry:
    """Registry shared by all requests, built from configuration."""
    config = get_config()
    config.ensure_directories()
    reference = GenomeReference.shared(config.genome_build, config.resolve_reference_fasta())
    return SessionRegistry.from_config(config, reference)


def _get_session(session_id: str, registry: SessionRegistry) -> SessionWorkflow:
    try:
        return registry.get(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _submit(workflow: SessionWorkflow, event: SessionEvent) -> Dict[str, Any]:
    """Run one event and shape the response."""
    try:
        outcome: RenderOutcome = workflow.submit(event)
    except ReferenceNotAvailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except StateInvariantViolation as e:
        logger.error(f"Session {workflow.session_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "outcome": outcome.model_dump(mode="json"),
        "state": workflow.snapshot(),
    }


# =============================================================================
# API Endpoints
# =============================================================================

@app.get("/api/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.get("/api/info")
def info(registry: SessionRegistry = Depends(get_registry)):
    """Options the dashboard needs to build its forms."""
    config = get_config()
    return {
        "file_roles": [role.value for role in FileRole],
        "required_file_roles": [role.value for role in config.validation.required_file_roles],
        "max_flank": config.validation.max_flank,
        "default_query": config.default_query,
        "default_flank": config.default_flank,
        "genome_build": config.genome_build,
        "sessions": len(registry),
    }


@app.post("/api/sessions")
def create_session(
    request: Optional[SessionCreateRequest] = None,
    registry: SessionRegistry = Depends(get_registry),
):
    """Open a session, optionally running the default query right away."""
    workflow = registry.create()
    response: Dict[str, Any] = {"session_id": workflow.session_id, "outcome": None}

    if request is not None and request.autorun:
        config = get_config()
        logger.info("Initial run: programmatic render on session start")
        response.update(_submit(workflow, ButtonPressed(config.default_query, config.default_flank)))

    response["state"] = workflow.snapshot()
    return response


@app.get("/api/sessions/{session_id}")
def get_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _get_session(session_id, registry).snapshot()


@app.delete("/api/sessions/{session_id}")
def close_session(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    try:
        registry.close(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "closed", "session_id": session_id}


@app.post("/api/sessions/{session_id}/files")
def register_file(
    session_id: str,
    request: FileRegistrationRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """Attach an uploaded file to the session under a role."""
    workflow = _get_session(session_id, registry)
    try:
        uploaded = workflow.register_file(FileRole(request.role), Path(request.path), request.declared_type)
    except ReferenceNotAvailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"file": uploaded.model_dump(mode="json"), "state": workflow.snapshot()}


@app.post("/api/sessions/{session_id}/render")
def render(
    session_id: str,
    request: RenderFormRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """The render button."""
    workflow = _get_session(session_id, registry)
    return _submit(workflow, ButtonPressed(request.search_query, request.flank))


@app.post("/api/sessions/{session_id}/click")
def click(
    session_id: str,
    request: ClickRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """A click on a plotted point."""
    workflow = _get_session(session_id, registry)
    event = None if request.x is None else ClickEvent(x=request.x, y=request.y)
    return _submit(workflow, PlotClicked(event))


@app.post("/api/sessions/{session_id}/confirm")
def confirm(
    session_id: str,
    request: ConfirmRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    """The user's answer to the re-render prompt."""
    workflow = _get_session(session_id, registry)
    return _submit(workflow, ConfirmationResponded(request.accept))


@app.get("/api/sessions/{session_id}/download")
def download(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    """Zip of the current results."""
    workflow = _get_session(session_id, registry)
    try:
        archive = workflow.download_current()
    except DownloadError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return FileResponse(str(archive), media_type="application/zip", filename=archive.name)


def run(host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Start the server with uvicorn."""
    config = get_config()
    host = host or config.api_host
    port = port or config.api_port
    logger.info(f"Server started on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    from sureviz.core.log import setup_logging

    setup_logging()
    run()
