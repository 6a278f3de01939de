"""Replace unsafe interpolations inside a single `run:` command block."""

import logging

from .catalog import UnsafePattern
from .errors import InvalidOffset
from .lines import Document, indent_of, is_at_or_above_indent

logger = logging.getLogger(__name__)


def check_offset(doc: Document, offset: int) -> int:
    """Validate a 1-based line offset and return its 0-based index."""
    index = offset - 1
    if index < 0 or index >= len(doc.lines):
        raise InvalidOffset(offset, len(doc.lines))
    return index


def command_block(doc: Document, offset: int) -> range:
    """Line indices of the command starting at `offset`.

    The block runs until the first substantive line indented at or above the
    `run:` line itself, which is where the next key or step begins.
    """
    start = check_offset(doc, offset)
    run_indent = indent_of(doc.lines[start])
    end = start + 1
    while end < len(doc.lines) and not is_at_or_above_indent(doc.lines[end], run_indent):
        end += 1
    return range(start, end)


def rewrite_site(doc: Document, offset: int, pattern: UnsafePattern) -> int:
    """Replace every unsafe interpolation in the command block with the envvar.

    Returns the number of replacements made.
    """
    replaced = 0
    for i in command_block(doc, offset):
        doc.lines[i], count = pattern.wrapper.subn(pattern.name, doc.lines[i])
        replaced += count

    logger.debug("Replaced %d occurrence(s) with $%s in the command at line %d", replaced, pattern.name, offset)
    return replaced
