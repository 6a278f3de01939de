"""Decide which workflow-level envvar carries an unsafe value, and declare it."""

import logging
import re
from typing import Dict, Mapping, Optional

from .catalog import UnsafePattern
from .envblock import find_existing_block, find_global_indent, plan_new_block
from .lines import Document
from .workflow import Workflow

logger = logging.getLogger(__name__)

# simple `${{ github.x.y }}` definitions, without brackets or function calls
SIMPLE_EXPRESSION_RE = re.compile(r'\$\{\{\s*(github\.[^\s]*?)\s*}}')

COLLISION_SUFFIX = "_1"


def index_declarations(env: Mapping[str, str]) -> Dict[str, str]:
    """Map each declared value to its envvar name.

    i.e. {"github.event.issue.body": "ISSUE_BODY"}. Simple expressions are
    reduced to the expression itself; any other value is kept verbatim.
    """
    index: Dict[str, str] = {}
    for name, value in env.items():
        if "${{" in value:
            m = SIMPLE_EXPRESSION_RE.search(value)
            if m and m.group(0) == value.strip():
                value = m.group(1)
        index[value] = name
    return index


def declaration_line(name: str, unsafe_expression: str, indent: int) -> str:
    return " " * indent + f"{name}: ${{{{ {unsafe_expression} }}}}"


class DeclarationManager:
    """Tracks the declarations of one workflow's top-level `env:` block.

    Should an existing envvar already hold the unsafe value, it is reused
    instead of declaring a second one. Should an existing envvar already use
    the name we would pick, a fixed suffix is appended to ours.
    """

    def __init__(self, workflow: Optional[Workflow] = None):
        env = workflow.env if workflow is not None else {}
        self.names = set(env)
        self.index = index_declarations(env)

    def is_declared(self, unsafe_expression: str) -> bool:
        return unsafe_expression in self.index

    def reconcile(self, pattern: UnsafePattern, unsafe_expression: str) -> UnsafePattern:
        """Return the pattern, renamed to fit the existing declarations."""
        existing = self.index.get(unsafe_expression)
        if existing is not None:
            logger.debug("Reusing existing envvar %s for %s", existing, unsafe_expression)
            return pattern.renamed(existing)

        if pattern.name in self.names:
            # Clumsy, but collisions are rare and the validator rejects a
            # duplicated key should the suffixed name be taken too.
            logger.debug("Envvar %s already in use, renaming", pattern.name)
            return pattern.renamed(pattern.name + COLLISION_SUFFIX)

        return pattern

    def declare(self, doc: Document, pattern: UnsafePattern, unsafe_expression: str) -> None:
        """Add the envvar to the global `env:` block, creating the block if needed.

        A new block goes right above `jobs:`, followed by as many blank lines
        as the document leaves before `jobs:`.
        """
        global_indent = find_global_indent(doc)

        if self.is_declared(unsafe_expression):
            return

        insert_at, decl_indent = find_existing_block(doc, global_indent)
        if insert_at < 0:
            plan = plan_new_block(doc, global_indent)
            doc.insert(plan.insert_at, [" " * global_indent + "env:"] + [""] * plan.spacing)
            insert_at, decl_indent = plan.insert_at + 1, plan.decl_indent
            logger.debug("Created env block at line %d", plan.insert_at + 1)

        doc.insert(insert_at, [declaration_line(pattern.name, unsafe_expression, decl_indent)])
        logger.debug("Declared %s at line %d", pattern.name, insert_at + 1)
