"""Produce disassembly listings with the Go toolchain.
"""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

GO = "go"


class ToolchainError(Exception):
    """Raised when the Go toolchain cannot be run or reports a failure.
    """

    def __init__(self, command: list[str], detail: str):
        self.command = command
        self.detail = detail
        message = f"{' '.join(command)} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


def run_go(args: list[str]) -> str:
    """Run a go subcommand and return its standard output.

    Raises:
        ToolchainError: If go is missing or exits with a non-zero status.

    """
    command = [GO, *args]
    logger.debug("running: %s", " ".join(command))
    try:
        completed = subprocess.run(
            command,
            check=False,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except OSError as exc:
        raise ToolchainError(command, str(exc)) from exc
    if completed.returncode != 0:
        raise ToolchainError(command, completed.stderr.strip())
    return completed.stdout


def build_binary(package: str, binary: Path) -> None:
    """Build a Go package into the given executable path.

    Raises:
        ToolchainError: If the build fails.

    """
    run_go(["build", "-o", str(binary), package])


def objdump(binary: Path, symbol_filter: str | None = None) -> str:
    """Disassemble a binary, optionally restricted to symbols matching a regexp.

    Raises:
        ToolchainError: If objdump fails.

    """
    args = ["tool", "objdump"]
    if symbol_filter:
        args.extend(["-s", symbol_filter])
    args.append(str(binary))
    return run_go(args)


def disassemble_package(package: str, binary: Path, symbol_filter: str | None = None) -> str:
    """Build a package and return its disassembly listing.

    Raises:
        ToolchainError: If building or disassembling fails.

    """
    build_binary(package, binary)
    return objdump(binary, symbol_filter)


def read_listing(path: str) -> str:
    """Read an existing listing from a file, or from stdin when path is `-`.

    Bytes that are not UTF-8 are replaced. In a symbol name or path that is
    harmless; in a numeric column the parser still rejects the line.

    Raises:
        OSError: If the file cannot be read.

    """
    if path == "-":
        stream = getattr(sys.stdin, "buffer", None)
        if stream is None:
            return sys.stdin.read()
        return stream.read().decode("utf-8", errors="replace")
    return Path(path).read_text(encoding="utf-8", errors="replace")
