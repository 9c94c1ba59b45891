"""Parse `go tool objdump` listings into per-symbol instruction records.

A listing looks like this:

    TEXT github.com/maruel/nin.CanonicalizePath(SB) /home/maruel/src/nin/util.go
      util.go:65		0x505dc0		4c8da42420feffff	LEAQ 0xfffffe20(SP), R12
      util.go:65		0x505dc8		4d3b6610		CMPQ 0x10(R14), R12

    TEXT github.com/maruel/nin.(*Edge).AllInputsReady(SB) /home/maruel/src/nin/graph.go
      ...

each `TEXT` header opens a symbol block, each indented line is one
instruction, and a blank line ends the block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator

logger = logging.getLogger(__name__)

BLOCK_HEADER_PREFIX = "TEXT "


class ParseError(Exception):
    """Raised when a listing line does not match the disassembler format.
    """

    def __init__(self, line: str, reason: str | None = None):
        self.line = line
        self.reason = reason
        message = f"error decoding {line!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


@dataclass
class InstructionRecord:
    index: int
    source_file: str
    source_line: int
    binary_offset: int
    symbol_offset: int
    raw_bytes: str
    decoded: str
    mnemonic: str
    argument: str
    alias: str = ""

    @property
    def location(self) -> str:
        return f"{self.source_file}:{self.source_line}"

    @property
    def display_argument(self) -> str:
        """The resolved alias when known, otherwise the raw argument.
        """
        return self.alias or self.argument


@dataclass
class SymbolBlock:
    source_file: str
    symbol: str
    start_offset: int = 0
    instructions: list[InstructionRecord] = field(default_factory=list)


class AddressIndex:
    """Map of absolute binary offsets to the instruction found there.

    Covers every block of a listing, including blocks later hidden by a
    display filter.
    """

    def __init__(self) -> None:
        self._by_offset: dict[int, InstructionRecord] = {}

    @classmethod
    def from_blocks(cls, blocks: list[SymbolBlock]) -> AddressIndex:
        index = cls()
        for block in blocks:
            for record in block.instructions:
                index.add(record)
        return index

    def add(self, record: InstructionRecord) -> None:
        self._by_offset[record.binary_offset] = record

    def lookup(self, offset: int) -> InstructionRecord | None:
        return self._by_offset.get(offset)

    def __contains__(self, offset: object) -> bool:
        return offset in self._by_offset

    def __len__(self) -> int:
        return len(self._by_offset)


@dataclass
class Listing:
    blocks: list[SymbolBlock]
    index: AddressIndex

    def instructions(self) -> Iterator[tuple[SymbolBlock, InstructionRecord]]:
        for block in self.blocks:
            for record in block.instructions:
                yield block, record


def parse_int(value: str) -> int:
    """Parse an integer written in decimal, 0x hex, 0o octal or 0b binary.

    Raises:
        ValueError: If the value is not an integer literal.

    """
    # objdump only prints 0x hex. Unlike Go, a leading-zero "010" is rejected
    # and "1_0" is accepted.
    return int(value.strip(), 0)


def parse_block_header(line: str, prefix: str = BLOCK_HEADER_PREFIX) -> SymbolBlock:
    """Create an empty block from a `TEXT <symbol> <file>` header.

    Raises:
        ParseError: If the header does not name both a symbol and a file.

    """
    symbol, separator, source_file = line[len(prefix):].partition(" ")
    if not separator or not symbol or not source_file:
        raise ParseError(line, "block header must name a symbol and a file")
    return SymbolBlock(source_file=source_file, symbol=symbol)


def _split_column(line: str, rest: str, name: str) -> tuple[str, str]:
    end = rest.find("\t")
    if end == -1:
        raise ParseError(line, f"missing {name} column")
    return rest[:end], rest[end:].strip()


def parse_instruction(line: str, index: int, block: SymbolBlock) -> InstructionRecord:
    """Decode one `<file>:<line> <offset> <bytes> <instruction>` line.

    The record's symbol offset is relative to `block.start_offset`, which the
    caller sets from the block's first instruction.

    Raises:
        ParseError: If a column is missing or a number cannot be parsed.

    """
    body = line.strip()
    colon = body.find(":")
    tab = body.find("\t")
    if colon == -1 or tab == -1 or colon > tab:
        raise ParseError(line, "expected <file>:<line> followed by a tab")
    source_file = body[:colon]
    try:
        source_line = int(body[colon + 1:tab])
    except ValueError:
        raise ParseError(line, "invalid source line number") from None

    offset_text, rest = _split_column(line, body[tab:].strip(), "offset")
    try:
        binary_offset = parse_int(offset_text)
    except ValueError:
        raise ParseError(line, "invalid binary offset") from None

    raw_bytes, decoded = _split_column(line, rest, "raw bytes")
    if not decoded:
        raise ParseError(line, "missing decoded instruction")
    mnemonic, _, argument = decoded.partition(" ")

    if not block.instructions:
        block.start_offset = binary_offset
    return InstructionRecord(
        index=index,
        source_file=source_file,
        source_line=source_line,
        binary_offset=binary_offset,
        symbol_offset=binary_offset - block.start_offset,
        raw_bytes=raw_bytes,
        decoded=decoded,
        mnemonic=mnemonic,
        argument=argument.strip(),
    )


def parse_listing(text: str, header_prefix: str = BLOCK_HEADER_PREFIX) -> Listing:
    """Parse a whole disassembly listing.

    Either the whole listing parses or nothing is returned: a single bad line
    would shift every address the resolver relies on.

    Raises:
        ParseError: If any line is malformed.

    """
    blocks: list[SymbolBlock] = []
    current: SymbolBlock | None = None
    index = 0
    for line in text.splitlines():
        if not line.strip():
            # end of block; the next instruction needs a fresh header.
            current = None
            index = 0
            continue
        if line.startswith(header_prefix):
            current = parse_block_header(line, header_prefix)
            blocks.append(current)
            index = 0
            continue
        if current is None and blocks:
            raise ParseError(line, "instruction after a blank line must follow a new block header")
        if current is None:
            raise ParseError(line, "instruction outside of a symbol block")
        current.instructions.append(parse_instruction(line, index, current))
        index += 1

    listing = Listing(blocks=blocks, index=AddressIndex.from_blocks(blocks))
    logger.debug("parsed %d blocks, %d addresses", len(blocks), len(listing.index))
    return listing
