"""Locate the workflow-level `env:` block, or plan where a new one goes."""

import logging
import re
from typing import NamedTuple, Tuple

from .errors import NoGlobalIndent, NoInsertionPoint
from .lines import Document, find_label, indent_of, is_at_or_above_indent, is_blank, is_blank_or_comment, is_comment

logger = logging.getLogger(__name__)

ON_RE = re.compile(r'^\s*on:')

DEFAULT_INDENT_STEP = 2


class NewBlockPlan(NamedTuple):
    insert_at: int      # index of the `jobs:` line; `env:` goes right above it
    spacing: int        # blank lines to leave between `env:` and `jobs:`
    decl_indent: int    # indentation for the declarations under `env:`


def find_global_indent(doc: Document) -> int:
    """Indentation of the required `on:` block, 0 in almost every workflow."""
    for line in doc.lines:
        if ON_RE.match(line):
            return indent_of(line)
    raise NoGlobalIndent()


def indent_step(doc: Document) -> int:
    """Indentation step of the document: from `jobs:` to the first job under it."""
    jobs_idx = -1
    for i, line in enumerate(doc.lines):
        if re.match(r'^\s*jobs:', line):
            jobs_idx = i
            break
    if jobs_idx < 0:
        return DEFAULT_INDENT_STEP

    jobs_indent = indent_of(doc.lines[jobs_idx])
    for line in doc.lines[jobs_idx + 1:]:
        if is_blank_or_comment(line):
            continue
        return indent_of(line) - jobs_indent
    return DEFAULT_INDENT_STEP


def find_existing_block(doc: Document, indent: int) -> Tuple[int, int]:
    """Find where a new declaration goes in an existing `env:` block.

    Returns the index right after the last declaration line and the
    indentation the declarations use, or (-1, -1) without an `env:` block.
    """
    env_idx = find_label(doc.lines, "env", indent)
    if env_idx < 0:
        return -1, -1

    insert_at = env_idx + 1
    decl_indent = -1
    for i in range(env_idx + 1, len(doc.lines)):
        line = doc.lines[i]
        if is_blank_or_comment(line):
            continue
        if is_at_or_above_indent(line, indent):
            # no longer declaring envvars
            break
        # continuation lines of a multi-line value sit deeper than the names
        line_indent = indent_of(line)
        decl_indent = line_indent if decl_indent < 0 else min(decl_indent, line_indent)
        insert_at = i + 1

    if decl_indent < 0:
        decl_indent = indent + indent_step(doc)

    logger.debug("Existing env block at line %d, inserting at line %d", env_idx + 1, insert_at + 1)
    return insert_at, decl_indent


def block_spacing(doc: Document, jobs_idx: int) -> int:
    """Blank lines between `jobs:` and the end of the block before it.

    Comments in between are skipped but not counted.
    """
    blanks = 0
    for i in range(jobs_idx - 1, -1, -1):
        line = doc.lines[i]
        if is_blank(line):
            blanks += 1
        elif not is_comment(line):
            break
    return blanks


def plan_new_block(doc: Document, indent: int) -> NewBlockPlan:
    """Plan a new `env:` block right above the `jobs:` label."""
    jobs_idx = find_label(doc.lines, "jobs", indent)
    if jobs_idx < 0:
        raise NoInsertionPoint()

    return NewBlockPlan(
        insert_at=jobs_idx,
        spacing=block_spacing(doc, jobs_idx),
        decl_indent=indent + indent_step(doc),
    )
