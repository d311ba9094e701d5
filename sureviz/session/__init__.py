"""Session core: parsing, validation, state, coordination and clicks."""

from sureviz.session.query_parser import QueryParser, parse_locus, parse_flank
from sureviz.session.validator import InputValidator, ValidationCheck
from sureviz.session.state import SessionState
from sureviz.session.coordinator import RenderCoordinator
from sureviz.session.clicks import ClickInterpreter, ClickProposal, IGNORED, Ignored
from sureviz.session.workflow import (
    SessionWorkflow,
    ButtonPressed,
    PlotClicked,
    ConfirmationResponded,
    FilesChanged,
)
from sureviz.session.registry import SessionRegistry, build_workflow

__all__ = [
    "QueryParser",
    "parse_locus",
    "parse_flank",
    "InputValidator",
    "ValidationCheck",
    "SessionState",
    "RenderCoordinator",
    "ClickInterpreter",
    "ClickProposal",
    "IGNORED",
    "Ignored",
    "SessionWorkflow",
    "ButtonPressed",
    "PlotClicked",
    "ConfirmationResponded",
    "FilesChanged",
    "SessionRegistry",
    "build_workflow",
]
