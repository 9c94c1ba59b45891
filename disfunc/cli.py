"""Command line front ends: disfunc and boundcheck.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Callable

from disfunc import __version__
from disfunc.config import ConfigError, ToolConfig
from disfunc.listing import ParseError, parse_listing
from disfunc.render import make_console, render_annotated, render_raw, render_terse, render_trap_context
from disfunc.resolve import filter_by_file, resolve_targets
from disfunc.toolchain import ToolchainError, disassemble_package, read_listing
from disfunc.traps import filter_locations, find_trap_locations, scan_trap_locations

logger = logging.getLogger(__name__)

DISFUNC_EPILOG = """\
It is recommended to use one of -f or --file.

Colors:
- Green:  calls/returns
- Red:    panic() due to bound checking and traps
- Blue:   jumps (both conditional and unconditional)
- Violet: padding and noops
- Yellow: source code; bound check highlighted red

example:
  disfunc -f 'nin\\.CanonicalizePath$' --pkg ./cmd/nin | less -R
"""

BOUNDCHECK_EPILOG = """\
example:
  boundcheck -f nin --pkg ./cmd/nin --file util.go
"""


class UsageError(Exception):
    """Raised when CLI arguments are invalid.
    """


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--pkg", default=".", help="package to build, preferably an executable")
    parser.add_argument("--bin", type=Path, help="binary to generate (default: a temporary file)")
    parser.add_argument("--input", metavar="PATH", help="read an existing objdump listing instead of building ('-' for stdin)")
    parser.add_argument("--file", help="filter on one source file, by base name")
    parser.add_argument("--raw", action="store_true", help="raw output: one file:line per bound check")
    parser.add_argument("--terse", action="store_true", help="terse output: bound check lines grouped per file")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--trap", action="append", dest="traps", metavar="SYMBOL", help="bound check trap routine prefix (repeatable)")
    parser.add_argument("--color", choices=["auto", "always", "never"], default="auto", help="colorize annotated output")
    parser.add_argument("-d", "--debug", action="store_true", help="enable debugging output on STDERR")
    parser.add_argument("-q", "--quiet", action="store_true", help="disable all output but errors")
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")


def build_disfunc_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="disfunc",
        description="disfunc prints out an annotated function.",
        epilog=DISFUNC_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-f", dest="symbol_filter", metavar="REGEXP", help="function to print out")
    add_common_arguments(parser)
    return parser


def build_boundcheck_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="boundcheck",
        description="boundcheck prints out all the lines that the compiler inserted a slice bound check in.",
        epilog=BOUNDCHECK_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-f", dest="package_filter", metavar="PKG", help="package to filter symbols on")
    parser.add_argument("--context", type=int, help="source lines shown around each bound check")
    add_common_arguments(parser)
    return parser


def configure_logging(args: argparse.Namespace) -> None:
    logging.basicConfig()
    if args.quiet:
        logging.getLogger().setLevel(logging.WARNING)
    elif args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.INFO)


def load_config(args: argparse.Namespace) -> ToolConfig:
    """Merge the optional config file with command line overrides.

    Raises:
        ConfigError: If the config file is invalid.
        UsageError: If an override is out of range.

    """
    config = ToolConfig.from_yaml(args.config) if args.config else ToolConfig()
    if args.traps:
        config.trap_routines = list(args.traps)
    context = getattr(args, "context", None)
    if context is not None:
        if context < 0:
            raise UsageError("--context must be >= 0")
        config.context_lines = context
    return config


def use_color(choice: str) -> bool:
    if choice == "always":
        return True
    if choice == "never":
        return False
    return sys.stdout.isatty() and os.environ.get("TERM") != "dumb"


def acquire_listing(args: argparse.Namespace, symbol_filter: str | None) -> str:
    """Return the listing to analyze, building the package when no input is given.

    Raises:
        ToolchainError: If the package cannot be built or disassembled.
        OSError: If the input file cannot be read.

    """
    if args.input:
        logger.debug("reading listing from %s", args.input)
        return read_listing(args.input)
    if args.bin is not None:
        logger.info("building %s", args.pkg)
        return disassemble_package(args.pkg, args.bin, symbol_filter)
    with tempfile.TemporaryDirectory(prefix="disfunc-") as tmp:
        logger.info("building %s", args.pkg)
        return disassemble_package(args.pkg, Path(tmp) / Path.cwd().name, symbol_filter)


def parse_arguments(parser: argparse.ArgumentParser, argv: list[str]) -> argparse.Namespace | int:
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 2
    if args.raw and args.terse:
        raise UsageError("--raw and --terse cannot be used together")
    return args


def run_disfunc(argv: list[str]) -> int:
    """Run disfunc and return its exit code.
    """
    args = parse_arguments(build_disfunc_parser(), argv)
    if isinstance(args, int):
        return args
    configure_logging(args)
    config = load_config(args)

    text = acquire_listing(args, args.symbol_filter)
    listing = resolve_targets(parse_listing(text, config.block_header_prefix))
    if args.file:
        listing = filter_by_file(listing, args.file)

    if args.raw or args.terse:
        locations = find_trap_locations(listing, config.trap_routines)
        render = render_raw if args.raw else render_terse
        render(locations, make_console())
        return 0

    render_annotated(listing.blocks, make_console(color=use_color(args.color)), config)
    return 0


def run_boundcheck(argv: list[str]) -> int:
    """Run boundcheck and return its exit code.
    """
    args = parse_arguments(build_boundcheck_parser(), argv)
    if isinstance(args, int):
        return args
    configure_logging(args)
    config = load_config(args)

    symbol_filter = f"{args.package_filter}\\." if args.package_filter else None
    text = acquire_listing(args, symbol_filter)
    locations = scan_trap_locations(text, config.trap_routines, config.block_header_prefix)
    locations = filter_locations(locations, args.file)

    if args.raw:
        render_raw(locations, make_console())
    elif args.terse:
        render_terse(locations, make_console())
    else:
        render_trap_context(locations, make_console(color=use_color(args.color)), config)
    return 0


def run_main(prog: str, run: Callable[[list[str]], int], argv: list[str] | None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    try:
        return run(argv)
    except UsageError as exc:
        print(f"{prog}: {exc}", file=sys.stderr)
        return 2
    except (ParseError, ToolchainError, ConfigError, OSError) as exc:
        print(f"{prog}: {exc}", file=sys.stderr)
        return 1


def disfunc_main(argv: list[str] | None = None) -> int:
    """disfunc entry point.
    """
    return run_main("disfunc", run_disfunc, argv)


def boundcheck_main(argv: list[str] | None = None) -> int:
    """boundcheck entry point.
    """
    return run_main("boundcheck", run_boundcheck, argv)


if __name__ == "__main__":
    sys.exit(disfunc_main())
