from __future__ import annotations

import logging
from pathlib import PurePosixPath

from disfunc.listing import Listing, parse_int

logger = logging.getLogger(__name__)

JUMP_PREFIX = "J"


def resolve_targets(listing: Listing) -> Listing:
    """Set the alias of every jump whose target address is in the listing.

    Jumps through a register, or to an address outside the disassembled
    range, keep an empty alias.
    """
    resolved = 0
    unresolved = 0
    for _, record in listing.instructions():
        if not record.mnemonic.startswith(JUMP_PREFIX):
            continue
        try:
            target = parse_int(record.argument)
        except ValueError:
            unresolved += 1
            continue
        destination = listing.index.lookup(target)
        if destination is None:
            unresolved += 1
            continue
        record.alias = f"{destination.location} ({destination.index})"
        resolved += 1
    logger.debug("resolved %d jump targets, %d left unresolved", resolved, unresolved)
    return listing


def filter_by_file(listing: Listing, file_name: str) -> Listing:
    """Keep only the blocks declared in a file with the given base name.

    The address index is shared with the input so aliases into dropped blocks
    stay meaningful.
    """
    blocks = [block for block in listing.blocks if PurePosixPath(block.source_file).name == file_name]
    logger.debug("file filter %r kept %d of %d blocks", file_name, len(blocks), len(listing.blocks))
    return Listing(blocks=blocks, index=listing.index)
