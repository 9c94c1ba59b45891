"""Output views over parsed listings and trap locations.

All views are deterministic: every grouping step sorts explicitly.
"""

from __future__ import annotations

import itertools
import logging
from typing import IO, Iterable

from rich.console import Console
from rich.text import Text

from disfunc.config import ToolConfig
from disfunc.highlight import expand_tabs, highlight_brackets
from disfunc.listing import InstructionRecord, SymbolBlock
from disfunc.traps import CALL_MNEMONICS, LocationRecord, is_bounds_check_trap

logger = logging.getLogger(__name__)

SYMBOL_STYLE = "bright_yellow"
SOURCE_STYLE = "bold bright_yellow"
CALL_STYLE = "bright_green"
TRAP_STYLE = "bold red"
JUMP_STYLE = "bright_blue"
SENTINEL_STYLE = "bright_red"
PADDING_STYLE = "bright_magenta"
COMMENT_STYLE = "grey58"

SENTINEL_MNEMONIC = "UD2"
# unconditional control transfers end a basic block.
TERMINATOR_MNEMONICS = frozenset({"JMP", "RET", SENTINEL_MNEMONIC})


def make_console(file: IO[str] | None = None, color: bool = False) -> Console:
    """Create a console that embeds ANSI colors exactly when asked to.
    """
    return Console(
        file=file,
        force_terminal=color,
        no_color=not color,
        color_system="standard" if color else None,
        markup=False,
        highlight=False,
        emoji=False,
        soft_wrap=True,
        width=None if color else 10_000,
    )


def group_lines_by_file(locations: Iterable[LocationRecord]) -> dict[str, list[int]]:
    """Map each file name to its trap line numbers, files in sorted order.
    """
    grouped: dict[str, list[int]] = {}
    for location in sorted(locations):
        grouped.setdefault(location.source_file, []).append(location.source_line)
    return grouped


def render_raw(locations: Iterable[LocationRecord], console: Console) -> None:
    """Print one `file:line` per trap site.
    """
    for location in sorted(locations):
        console.print(location.location)


def render_terse(locations: Iterable[LocationRecord], console: Console) -> None:
    """Print one `file: line, line, ...` summary per file.
    """
    for name, lines in group_lines_by_file(locations).items():
        console.print(f"{name}: {', '.join(str(line) for line in lines)}")


def read_source_lines(name: str, config: ToolConfig) -> list[str]:
    """Read a source file as a list of lines, without line terminators.

    Raises:
        OSError: If the file cannot be read.

    """
    path = config.resolve_source_path(name)
    content = path.read_text(encoding="utf-8", errors="replace")
    return [line.rstrip("\r") for line in content.split("\n")]


def source_text(lines: list[str], line_number: int, config: ToolConfig) -> str:
    if 1 <= line_number <= len(lines):
        return expand_tabs(lines[line_number - 1], config.tab_width)
    return ""


def instruction_style(record: InstructionRecord, routines: Iterable[str]) -> str:
    """Pick the color class of an instruction from its mnemonic.
    """
    mnemonic = record.mnemonic
    if mnemonic in CALL_MNEMONICS:
        return TRAP_STYLE if is_bounds_check_trap(record, routines) else CALL_STYLE
    if mnemonic.startswith("J"):
        return JUMP_STYLE
    if mnemonic == SENTINEL_MNEMONIC:
        return SENTINEL_STYLE
    # INT 3 is used as padding between functions.
    if mnemonic == "INT" or mnemonic.startswith("NOP"):
        return PADDING_STYLE
    return ""


def ends_basic_block(record: InstructionRecord, routines: Iterable[str]) -> bool:
    """Tell whether control never falls through to the next instruction.
    """
    return record.mnemonic in TERMINATOR_MNEMONICS or is_bounds_check_trap(record, routines)


def format_instruction(record: InstructionRecord, routines: Iterable[str]) -> Text:
    argument = record.display_argument
    body = f"{record.mnemonic:<5} {argument}" if argument else record.mnemonic
    text = Text(f" {record.index:4d} ")
    text.append(body, style=instruction_style(record, routines))
    return text


def annotate_block(block: SymbolBlock, source_lines: list[str], config: ToolConfig) -> list[Text]:
    """Render one symbol block interleaved with its source lines.

    Instructions are shown grouped by source line, in emission order within
    a line. The block itself is left untouched.
    """
    routines = tuple(config.trap_routines)
    ordered = sorted(block.instructions, key=lambda record: (record.source_line, record.index))
    output = [Text(block.symbol, style=SYMBOL_STYLE)]
    for line_number, group in itertools.groupby(ordered, key=lambda record: record.source_line):
        records = list(group)
        source = source_text(source_lines, line_number, config)
        if any(is_bounds_check_trap(record, routines) for record in records):
            rendered = highlight_brackets(source, base_style=SOURCE_STYLE)
        else:
            rendered = Text(source, style=SOURCE_STYLE)
        header = Text(f"{line_number}  ")
        header.append_text(rendered)
        output.append(header)

        for record in records:
            output.append(format_instruction(record, routines))
            if ends_basic_block(record, routines):
                output.append(Text())
    return output


def render_annotated(blocks: Iterable[SymbolBlock], console: Console, config: ToolConfig) -> None:
    """Print every block, by file then symbol, annotated with its source.

    A block whose source file cannot be read is skipped with a note.
    """
    for block in sorted(blocks, key=lambda block: (block.source_file, block.symbol)):
        try:
            source_lines = read_source_lines(block.source_file, config)
        except OSError as exc:
            logger.warning("failed to read source for %s: %s", block.symbol, exc)
            console.print(f'couldn\'t read "{block.source_file}", skipping')
            continue
        for text in annotate_block(block, source_lines, config):
            console.print(text)


def trap_context(location: LocationRecord, source_lines: list[str], config: ToolConfig) -> list[Text]:
    """Render the source lines around one trap site, the trap line highlighted.
    """
    output: list[Text] = []
    if location.symbol:
        output.append(Text(f"; {location.symbol}", style=COMMENT_STYLE))
    first = location.source_line - config.context_lines
    last = location.source_line + config.context_lines
    for line_number in range(first, last + 1):
        if not 1 <= line_number <= len(source_lines):
            continue
        source = source_text(source_lines, line_number, config)
        text = Text(f"{line_number:5d} ")
        if line_number == location.source_line:
            text.append_text(highlight_brackets(source))
        else:
            text.append(source)
        output.append(text)
    return output


def render_trap_context(locations: Iterable[LocationRecord], console: Console, config: ToolConfig) -> None:
    """Print each file's trap sites with surrounding source lines.

    Files that cannot be read are skipped.
    """
    by_file: dict[str, list[LocationRecord]] = {}
    for location in sorted(locations):
        by_file.setdefault(location.source_file, []).append(location)

    for name, file_locations in by_file.items():
        path = file_locations[0].source_path or name
        try:
            source_lines = read_source_lines(path, config)
        except OSError as exc:
            logger.warning("failed to read %s, skipping: %s", path, exc)
            continue
        console.print(name)
        for position, location in enumerate(file_locations):
            if position:
                console.print()
            for text in trap_context(location, source_lines, config):
                console.print(text)
