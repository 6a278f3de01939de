"""Catalog of attacker-controlled GitHub context expressions.

Each entry maps an expression an attacker can influence (PR title, issue body,
commit message, ...) to the environment variable name used when moving it out
of a `run:` command. The list is ordered and scanned linearly: the first entry
whose pattern matches wins, so order encodes precedence.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from .errors import UnknownDangerousVariable

logger = logging.getLogger(__name__)

# Array subscripts and object filters, i.e. `commits[0]` or `pages.*`. Any
# text is accepted when detecting; inside a wrapper the subscript stops at
# whitespace and braces so that a match stays within one interpolation.
_DETECT_SUBSCRIPT = r".*?"
_WRAPPER_SUBSCRIPT = r"[^\s}]*?"

# Text inside a `{{ ... }}` interpolation that does not close it
_INSIDE = r"(?:(?!\}\}).)*?"

ARRAY_INDEX_RE = re.compile(r"\[(.+?)\]")


@dataclass(frozen=True)
class UnsafePattern:
    """A dangerous expression and the variable that replaces it."""
    name: str
    detect: Pattern      # matches the bare expression
    wrapper: Pattern     # matches the whole `{{ ... }}` around it

    def renamed(self, name: str) -> "UnsafePattern":
        return UnsafePattern(name=name, detect=self.detect, wrapper=self.wrapper)


def new_unsafe_pattern(name: str, expression: str, wrapped: Optional[str] = None) -> UnsafePattern:
    """Build a pattern from an expression regex.

    `detect` identifies the expression that triggered a finding. `wrapper`
    matches the full interpolation containing it (or `wrapped`, when given),
    minus the leading `$`, so replacing it with the variable name leaves a
    shell reference behind: `${{ github.event.issue.title }}` -> `$ISSUE_TITLE`.
    """
    if wrapped is None:
        wrapped = expression
    return UnsafePattern(
        name=name,
        detect=re.compile(expression),
        wrapper=re.compile(r"(?<=\$)\{\{\s*" + _INSIDE + wrapped + _INSIDE + r"\s*\}\}"),
    )


def new_array_pattern(name: str, head: str, tail: str) -> UnsafePattern:
    """Build a pattern for a field reached through an array or object filter."""
    return new_unsafe_pattern(
        name,
        head + _DETECT_SUBSCRIPT + tail,
        wrapped=head + _WRAPPER_SUBSCRIPT + tail,
    )


CATALOG: List[UnsafePattern] = [
    new_array_pattern("AUTHOR_EMAIL", r"github\.event\.commits", r"\.author\.email"),
    new_unsafe_pattern("AUTHOR_EMAIL", r"github\.event\.head_commit\.author\.email"),
    new_array_pattern("AUTHOR_NAME", r"github\.event\.commits", r"\.author\.name"),
    new_unsafe_pattern("AUTHOR_NAME", r"github\.event\.head_commit\.author\.name"),
    new_unsafe_pattern("COMMENT_BODY", r"github\.event\.comment\.body"),
    new_array_pattern("COMMIT_MESSAGE", r"github\.event\.commits", r"\.message"),
    new_unsafe_pattern("COMMIT_MESSAGE", r"github\.event\.head_commit\.message"),
    new_unsafe_pattern("DISCUSSION_TITLE", r"github\.event\.discussion\.title"),
    new_unsafe_pattern("DISCUSSION_BODY", r"github\.event\.discussion\.body"),
    new_unsafe_pattern("ISSUE_BODY", r"github\.event\.issue\.body"),
    new_unsafe_pattern("ISSUE_COMMENT_BODY", r"github\.event\.issue_comment\.comment\.body"),
    new_unsafe_pattern("ISSUE_TITLE", r"github\.event\.issue\.title"),
    new_array_pattern("PAGE_NAME", r"github\.event\.pages", r"\.page_name"),
    new_unsafe_pattern("PR_BODY", r"github\.event\.pull_request\.body"),
    new_unsafe_pattern("PR_DEFAULT_BRANCH", r"github\.event\.pull_request\.head\.repo\.default_branch"),
    new_unsafe_pattern("PR_HEAD_LABEL", r"github\.event\.pull_request\.head\.label"),
    new_unsafe_pattern("PR_HEAD_REF", r"github\.event\.pull_request\.head\.ref"),
    new_unsafe_pattern("PR_TITLE", r"github\.event\.pull_request\.title"),
    new_unsafe_pattern("REVIEW_BODY", r"github\.event\.review\.body"),
    new_unsafe_pattern("REVIEW_COMMENT_BODY", r"github\.event\.review_comment\.body"),

    new_unsafe_pattern("HEAD_REF", r"github\.head_ref"),
]


def _index_suffix(index: str) -> str:
    if index.strip() == "*":
        return "ALL"
    return re.sub(r"\W+", "_", index).strip("_")


def classify(snippet: str) -> UnsafePattern:
    """Return the catalog pattern for an unsafe expression.

    Array variables (`github.event.commits[0].message`) get a pattern of their
    own: the index is appended to the name and only the exact expression is
    matched, so `commits[0]` and `commits[1]` never share a variable.
    """
    unsafe_var = snippet.strip()
    for pattern in CATALOG:
        if not pattern.detect.search(unsafe_var):
            continue

        m = ARRAY_INDEX_RE.search(unsafe_var)
        if not m:
            logger.debug("Classified %s as %s", unsafe_var, pattern.name)
            return pattern

        name = f"{pattern.name}_{_index_suffix(m.group(1))}"
        logger.debug("Classified array variable %s as %s", unsafe_var, name)
        return new_unsafe_pattern(name, re.escape(unsafe_var))

    raise UnknownDangerousVariable(unsafe_var)


def match_expression(expression: str):
    """Return the first catalog match inside an expression, or None."""
    for pattern in CATALOG:
        m = pattern.detect.search(expression)
        if m:
            return m
    return None
