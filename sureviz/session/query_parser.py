"""
Locus query parsing.

Converts the free-text search box and flank field into a canonical Query.
"""

from __future__ import annotations

import re
from typing import Tuple, Union

from sureviz.core.exceptions import ParseError
from sureviz.models.data_classes import Query

# chromosome token, colon, integer position (thousands separators allowed)
LOCUS_PATTERN = re.compile(r"^(?P<chrom>[^:\s]+):(?P<pos>\d[\d,]*)$")

MALFORMED_LOCUS = "malformed locus syntax"
INVALID_FLANK = "invalid flank"


def parse_locus(text: str) -> Tuple[str, int]:
    """
    Split ``chr:pos`` into its parts.

    Raises:
        ParseError: For any other shape, or a position below 1
    """
    if text is None:
        raise ParseError(MALFORMED_LOCUS)

    match = LOCUS_PATTERN.match(str(text).strip())
    if match is None:
        raise ParseError(MALFORMED_LOCUS)

    position = int(match.group("pos").replace(",", ""))
    if position < 1:
        raise ParseError(MALFORMED_LOCUS)

    return match.group("chrom"), position


def parse_flank(flank_text: Union[str, int, float, None]) -> int:
    """
    Convert the flank field to a non-negative whole number of bases.

    Numeric strings such as "1000", "1e3" or "1000.0" are accepted.
    """
    if flank_text is None or isinstance(flank_text, bool):
        raise ParseError(INVALID_FLANK)

    if isinstance(flank_text, int):
        value = flank_text
    else:
        text = str(flank_text).strip()
        try:
            value = int(text)
        except ValueError:
            try:
                as_float = float(text)
            except ValueError:
                raise ParseError(INVALID_FLANK)
            if not as_float.is_integer():
                raise ParseError(INVALID_FLANK)
            value = int(as_float)

    if value < 0:
        raise ParseError(INVALID_FLANK)
    return value


class QueryParser:
    """Parses raw form values into a Query. Stateless."""

    def parse(self, raw_text: str, flank_text: Union[str, int, None]) -> Query:
        """
        Parse locus text plus flank.

        Args:
            raw_text: Locus in the form ``<chromosome>:<position>``
            flank_text: Bases to extend on each side

        Returns:
            Canonical Query

        Raises:
            ParseError: "malformed locus syntax" or "invalid flank"
        """
        chromosome, position = parse_locus(raw_text)
        flank = parse_flank(flank_text)
        return Query(
            raw_text=str(raw_text),
            chromosome=chromosome,
            position=position,
            flank=flank,
        )
