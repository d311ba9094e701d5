"""
Plot click interpretation.

Turns a click on a rendered plot into a new candidate query centred on the
clicked position, and asks the user before re-rendering.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from sureviz.core.exceptions import DownloadError
from sureviz.models.data_classes import ClickEvent, Query, RenderRequest
from sureviz.models.enums import TriggerSource
from sureviz.render.download import ArchiveDownloader
from sureviz.session.state import SessionState

logger = logging.getLogger(__name__)


class Ignored:
    """Marker returned when a click leads nowhere."""

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "IGNORED"


IGNORED = Ignored()


@dataclass(frozen=True)
class ClickProposal:
    """A click waiting for the user's yes/no."""
    x: float
    query: Query
    prompt: str


ConfirmCallback = Callable[[str], bool]


def is_axis_label(y: object) -> bool:
    """Integers and strings on the y axis are category labels, not data."""
    return isinstance(y, (bool, int, str))


class ClickInterpreter:
    """
    Converts plot clicks into render requests.

    Render memory (``SessionState.click_memory``) suppresses repeated
    identical clicks, so a latched click never prompts twice.
    """

    def __init__(self, downloader: Optional[ArchiveDownloader] = None):
        self.downloader = downloader

    def propose(self, event: Optional[ClickEvent], state: SessionState) -> Union[ClickProposal, Ignored]:
        """First half of a click: dedupe, filter and build the candidate query."""
        if event is None:
            return IGNORED

        if event.x == state.click_memory():
            logger.debug(f"Repeated click at x={event.x}, ignoring")
            return IGNORED

        if is_axis_label(event.y):
            logger.debug(f"Click on axis label y={event.y!r}, ignoring")
            return IGNORED

        if not math.isfinite(event.x) or round(event.x) < 1:
            logger.debug(f"Click outside the genome at x={event.x}, ignoring")
            return IGNORED

        current = state.current_query()
        if current is None:
            logger.debug("Click before any query was accepted, ignoring")
            return IGNORED

        state.set_click_memory(event.x)

        position = int(round(event.x))
        locus = f"{current.chromosome}:{position}"
        query = Query(
            raw_text=locus,
            chromosome=current.chromosome,
            position=position,
            flank=current.flank,
        )
        prompt = f"Make new plots for selected position \n{locus}"
        logger.info(f"Valid click. Captured search query : {locus} flank : {current.flank}")
        return ClickProposal(x=event.x, query=query, prompt=prompt)

    def resolve(
        self,
        proposal: ClickProposal,
        accepted: bool,
        state: SessionState,
    ) -> Union[RenderRequest, Ignored]:
        """Second half of a click: act on the user's answer."""
        if accepted:
            return RenderRequest(query=proposal.query, source=TriggerSource.CLICK)

        logger.info(f"User declined plotting {proposal.query.locus}; downloading current results")
        if self.downloader is not None:
            try:
                state.last_download = self.downloader.download(state.last_artifacts)
            except DownloadError as e:
                logger.warning(f"Download skipped: {e}")
        return IGNORED

    def on_click(
        self,
        event: Optional[ClickEvent],
        state: SessionState,
        confirm: ConfirmCallback,
    ) -> Union[RenderRequest, Ignored]:
        """
        Handle a click end to end, blocking on ``confirm(prompt)``.

        Returns:
            A click-sourced RenderRequest if the user accepted, else IGNORED
        """
        proposal = self.propose(event, state)
        if isinstance(proposal, Ignored):
            return proposal
        return self.resolve(proposal, bool(confirm(proposal.prompt)), state)
