from __future__ import annotations

from rich.text import Text

BRACKET_STYLE = "bold red"
DEFAULT_TAB_WIDTH = 2


def expand_tabs(line: str, tab_width: int = DEFAULT_TAB_WIDTH) -> str:
    """Replace each tab with a fixed number of spaces.
    """
    return line.replace("\t", " " * tab_width)


def find_index_spans(line: str) -> list[tuple[int, int]]:
    """Find the outermost `[...]` pairs of a source line, as (start, end) slices.

    Brackets inside string and character literals are ignored. An unclosed
    bracket extends to the end of the line.
    """
    spans: list[tuple[int, int]] = []
    in_quote = False
    in_double_quote = False
    escaped = False
    depth = 0
    start = 0
    for position, char in enumerate(line):
        if escaped:
            escaped = False
            continue
        if char == "\\" and (in_quote or in_double_quote):
            escaped = True
        elif char == "'" and not in_double_quote:
            in_quote = not in_quote
        elif char == '"' and not in_quote:
            in_double_quote = not in_double_quote
        elif in_quote or in_double_quote:
            continue
        elif char == "[":
            depth += 1
            if depth == 1:
                start = position
        elif char == "]" and depth > 0:
            depth -= 1
            if depth == 0:
                spans.append((start, position + 1))
    if depth > 0:
        spans.append((start, len(line)))
    return spans


def highlight_brackets(line: str, style: str = BRACKET_STYLE, base_style: str = "") -> Text:
    """Render a source line with its indexing expressions highlighted.
    """
    text = Text(line, style=base_style)
    for start, end in find_index_spans(line):
        text.stylize(style, start, end)
    return text
