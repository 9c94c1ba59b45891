"""Tests for listing parsing."""

from __future__ import annotations

from textwrap import dedent

import pytest

from disfunc.listing import ParseError, parse_instruction, parse_int, parse_listing, SymbolBlock


def test_parse_blocks(listing_text: str, source_root) -> None:
    listing = parse_listing(listing_text)

    assert [block.symbol for block in listing.blocks] == ["pkg.Foo(SB)", "pkg.Bar(SB)", "pkg.Baz(SB)"]
    assert listing.blocks[0].source_file == f"{source_root}/util.go"
    assert listing.blocks[2].source_file == f"{source_root}/other.go"
    assert [len(block.instructions) for block in listing.blocks] == [6, 4, 3]


def test_instruction_fields(listing_text: str) -> None:
    listing = parse_listing(listing_text)
    record = listing.blocks[0].instructions[2]

    assert record.index == 2
    assert record.source_file == "util.go"
    assert record.source_line == 10
    assert record.location == "util.go:10"
    assert record.binary_offset == 0x106
    assert record.symbol_offset == 6
    assert record.raw_bytes == "488b04c3"
    assert record.decoded == "MOVQ 0(BX)(AX*8), AX"
    assert record.mnemonic == "MOVQ"
    assert record.argument == "0(BX)(AX*8), AX"
    assert record.alias == ""


def test_instruction_without_argument(listing_text: str) -> None:
    record = parse_listing(listing_text).blocks[0].instructions[3]
    assert record.mnemonic == "RET"
    assert record.argument == ""
    assert record.display_argument == ""


def test_start_offset_is_first_instruction(listing_text: str) -> None:
    listing = parse_listing(listing_text)
    assert [block.start_offset for block in listing.blocks] == [0x100, 0x120, 0x140]
    assert [record.symbol_offset for record in listing.blocks[1].instructions] == [0, 5, 6, 11]


def test_index_resets_per_block(listing_text: str) -> None:
    for block in parse_listing(listing_text).blocks:
        assert [record.index for record in block.instructions] == list(range(len(block.instructions)))


def test_consecutive_headers_reset_index() -> None:
    text = (
        "TEXT a.One(SB) /src/a.go\n"
        "  a.go:1\t0x10\t90\tNOPL\n"
        "  a.go:1\t0x11\t90\tNOPL\n"
        "TEXT a.Two(SB) /src/a.go\n"
        "  a.go:2\t0x20\t90\tNOPL\n"
    )
    listing = parse_listing(text)

    assert [block.symbol for block in listing.blocks] == ["a.One(SB)", "a.Two(SB)"]
    assert [record.index for record in listing.blocks[1].instructions] == [0]
    assert listing.blocks[1].start_offset == 0x20


def test_address_index_covers_all_blocks(listing_text: str) -> None:
    listing = parse_listing(listing_text)

    assert len(listing.index) == 13
    assert 0x144 in listing.index
    assert listing.index.lookup(0x144) is listing.blocks[2].instructions[2]
    assert listing.index.lookup(0x999) is None


def test_decimal_offsets_and_extra_whitespace() -> None:
    text = "TEXT a.F(SB) /src/a.go\n    a.go:7 \t\t 256 \t\t c3 \t RET  \n"
    record = parse_listing(text).blocks[0].instructions[0]
    assert record.binary_offset == 256
    assert record.raw_bytes == "c3 "
    assert record.decoded == "RET"


def test_symbol_with_spaces_in_file() -> None:
    listing = parse_listing("TEXT a.F(SB) /my src/a.go\n")
    assert listing.blocks[0].source_file == "/my src/a.go"
    assert listing.blocks[0].instructions == []


def test_windows_line_endings() -> None:
    text = "TEXT a.F(SB) /src/a.go\r\n  a.go:1\t0x1\tc3\tRET\r\n\r\n"
    listing = parse_listing(text)
    assert listing.blocks[0].instructions[0].mnemonic == "RET"


@pytest.mark.parametrize(
    "line",
    [
        "  util.go:abc\t0x100\tc3\tRET",
        "  util.go:10\tzzz\tc3\tRET",
        "  util.go:10\t0x100",
        "  util.go:10\t0x100\tc3",
        "  util.go 10\t0x100\tc3\tRET",
        "  garbage",
    ],
)
def test_malformed_instruction_line(line: str) -> None:
    text = f"TEXT a.F(SB) /src/util.go\n  util.go:9\t0x10\tc3\tRET\n{line}\n"
    with pytest.raises(ParseError) as excinfo:
        parse_listing(text)
    assert excinfo.value.line == line
    assert repr(line) in str(excinfo.value)


def test_instruction_before_header() -> None:
    with pytest.raises(ParseError, match="outside of a symbol block"):
        parse_listing("  a.go:1\t0x1\tc3\tRET\n")


def test_instruction_after_blank_line_needs_header() -> None:
    text = dedent("""\
        TEXT a.F(SB) /src/a.go
          a.go:1\t0x1\tc3\tRET

          a.go:2\t0x2\tc3\tRET
    """)
    with pytest.raises(ParseError, match="must follow a new block header"):
        parse_listing(text)


def test_header_without_file() -> None:
    with pytest.raises(ParseError, match="must name a symbol and a file"):
        parse_listing("TEXT a.F(SB)\n")


def test_custom_header_prefix() -> None:
    listing = parse_listing("FUNC a.F(SB) /src/a.go\n  a.go:1\t0x1\tc3\tRET\n", header_prefix="FUNC ")
    assert listing.blocks[0].symbol == "a.F(SB)"


def test_parse_instruction_sets_start_offset() -> None:
    block = SymbolBlock(source_file="/src/a.go", symbol="a.F(SB)")
    record = parse_instruction("  a.go:1\t0x40\t90\tNOPL", 0, block)
    assert block.start_offset == 0x40
    assert record.symbol_offset == 0


@pytest.mark.parametrize("text, expected", [("0x505dc0", 0x505dc0), ("42", 42), ("0b101", 5), ("1_0", 10)])
def test_parse_int(text: str, expected: int) -> None:
    assert parse_int(text) == expected


def test_parse_int_leading_zero() -> None:
    with pytest.raises(ValueError):
        parse_int("010")
