"""Shared fixtures for disfunc tests.

The sample listing mimics `go tool objdump` output for three functions:
pkg.Foo and pkg.Bar in util.go (which exists on disk) and pkg.Baz in
other.go (which does not).
"""

from __future__ import annotations

from pathlib import Path

import pytest

UTIL_GO = [
    "package pkg",
    "",
    "func Foo(s []int, i int) int {",
    '\tx := "a[b]"',
    "\t_ = x",
    "\tif i < 0 {",
    "\t\treturn 0",
    "\t}",
    "\tn := len(s)",
    "\treturn s[i] + n",
    "}",
    "",
    "func Bar() int {",
    "\treturn 1",
    "}",
]


def instruction_line(location: str, offset: int, raw: str, decoded: str) -> str:
    return f"  {location}\t\t{offset:#x}\t\t{raw}\t{decoded}"


def build_listing(root: Path) -> str:
    lines = [
        f"TEXT pkg.Foo(SB) {root}/util.go",
        instruction_line("util.go:9", 0x100, "4883f803", "CMPQ AX, $0x3"),
        instruction_line("util.go:9", 0x104, "7305", "JAE 0x10b"),
        instruction_line("util.go:10", 0x106, "488b04c3", "MOVQ 0(BX)(AX*8), AX"),
        instruction_line("util.go:10", 0x10A, "c3", "RET"),
        instruction_line("util.go:10", 0x10B, "e800000000", "CALL runtime.panicIndex(SB)"),
        instruction_line("util.go:10", 0x110, "90", "NOPL"),
        "",
        f"TEXT pkg.Bar(SB) {root}/util.go",
        instruction_line("util.go:14", 0x120, "b801000000", "MOVL $0x1, AX"),
        instruction_line("util.go:14", 0x125, "c3", "RET"),
        instruction_line("util.go:13", 0x126, "e9d5ffffff", "JMP 0x100"),
        instruction_line("util.go:14", 0x12B, "e800000000", "CALL runtime.panicIndex(SB)"),
        "",
        f"TEXT pkg.Baz(SB) {root}/other.go",
        instruction_line("other.go:3", 0x140, "ffe0", "JMP AX"),
        instruction_line("other.go:4", 0x142, "7555", "JNE 0x999"),
        instruction_line("other.go:5", 0x144, "e9bdffffff", "JMP 0x106"),
        "",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    (tmp_path / "util.go").write_text("\n".join(UTIL_GO) + "\n")
    return tmp_path


@pytest.fixture
def listing_text(source_root: Path) -> str:
    return build_listing(source_root)


@pytest.fixture
def listing_file(tmp_path: Path, listing_text: str) -> Path:
    path = tmp_path / "listing.txt"
    path.write_text(listing_text)
    return path
