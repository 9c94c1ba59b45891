"""Source-annotated Go disassembly and bounds check trap locator.
"""

__version__ = "0.1.0"

from disfunc.config import ConfigError, ToolConfig
from disfunc.highlight import expand_tabs, find_index_spans, highlight_brackets
from disfunc.listing import AddressIndex, InstructionRecord, Listing, ParseError, SymbolBlock, parse_listing
from disfunc.render import annotate_block, render_annotated, render_raw, render_terse, render_trap_context
from disfunc.resolve import filter_by_file, resolve_targets
from disfunc.traps import LocationRecord, find_trap_locations, is_bounds_check_trap, scan_trap_locations

__all__ = [
    "AddressIndex",
    "ConfigError",
    "InstructionRecord",
    "Listing",
    "LocationRecord",
    "ParseError",
    "SymbolBlock",
    "ToolConfig",
    "annotate_block",
    "expand_tabs",
    "filter_by_file",
    "find_index_spans",
    "find_trap_locations",
    "highlight_brackets",
    "is_bounds_check_trap",
    "parse_listing",
    "render_annotated",
    "render_raw",
    "render_terse",
    "render_trap_context",
    "resolve_targets",
    "scan_trap_locations",
]
