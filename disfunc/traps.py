"""Find the calls the Go compiler inserts for failed bounds checks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable

from disfunc.listing import BLOCK_HEADER_PREFIX, InstructionRecord, Listing, ParseError, parse_block_header

logger = logging.getLogger(__name__)

DEFAULT_TRAP_ROUTINES = ("runtime.panicIndex",)
CALL_MNEMONICS = frozenset({"CALL", "RET"})


@dataclass(frozen=True, order=True)
class LocationRecord:
    source_file: str
    source_line: int
    symbol: str = ""
    # declared path of the enclosing block, used to find the source text.
    source_path: str = field(default="", compare=False)

    @property
    def location(self) -> str:
        return f"{self.source_file}:{self.source_line}"


def is_bounds_check_trap(record: InstructionRecord, routines: Iterable[str] = DEFAULT_TRAP_ROUTINES) -> bool:
    """Tell whether the instruction calls into a bounds-check trap routine.
    """
    return record.mnemonic in CALL_MNEMONICS and record.argument.startswith(tuple(routines))


def find_trap_locations(listing: Listing, routines: Iterable[str] = DEFAULT_TRAP_ROUTINES) -> list[LocationRecord]:
    """Collect every trap call site of a parsed listing, sorted by file and line.
    """
    routines = tuple(routines)
    locations = [
        LocationRecord(
            source_file=record.source_file,
            source_line=record.source_line,
            symbol=block.symbol,
            source_path=block.source_file,
        )
        for block, record in listing.instructions()
        if is_bounds_check_trap(record, routines)
    ]
    logger.debug("found %d bounds check trap sites", len(locations))
    return sorted(locations)


def scan_trap_locations(
    text: str,
    routines: Iterable[str] = DEFAULT_TRAP_ROUTINES,
    header_prefix: str = BLOCK_HEADER_PREFIX,
) -> list[LocationRecord]:
    """Collect trap call sites straight from listing text, sorted by file and line.

    Only the lines mentioning a trap call are decoded, so this is tolerant of
    listing lines the full parser would reject.

    Raises:
        ParseError: If a trap line has no `<file>:<line>` column.

    """
    needles = tuple(f"CALL {routine}" for routine in routines)
    symbol = ""
    source_path = ""
    locations: list[LocationRecord] = []
    for line in text.splitlines():
        if line.startswith(header_prefix):
            block = parse_block_header(line, header_prefix)
            symbol, source_path = block.symbol, block.source_file
            continue
        if not any(needle in line for needle in needles):
            continue
        body = line.strip()
        colon = body.find(":")
        tab = body.find("\t")
        if colon == -1 or tab == -1 or colon > tab:
            raise ParseError(line, "expected <file>:<line> followed by a tab")
        try:
            source_line = int(body[colon + 1:tab])
        except ValueError:
            raise ParseError(line, "invalid source line number") from None
        locations.append(
            LocationRecord(
                source_file=body[:colon],
                source_line=source_line,
                symbol=symbol,
                source_path=source_path,
            )
        )
    logger.debug("found %d bounds check trap sites", len(locations))
    return sorted(locations)


def filter_locations(locations: list[LocationRecord], file_name: str | None) -> list[LocationRecord]:
    """Keep the locations whose file has the given base name; all of them when no name is given.
    """
    if not file_name:
        return list(locations)
    return [location for location in locations if PurePosixPath(location.source_file).name == file_name]
