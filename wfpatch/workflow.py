"""Workflow parsing and diagnostics.

The workflow is composed into a YAML node tree rather than loaded into Python
objects: node marks give every diagnostic a position, and scalars keep their
source text so the `on:` key is never coerced into a boolean.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import yaml

TOP_LEVEL_KEYS = (
    "concurrency",
    "defaults",
    "env",
    "jobs",
    "name",
    "on",
    "permissions",
    "run-name",
)

INVALID_ENV_NAME_RE = re.compile(r'[&=\s]')


@dataclass(frozen=True)
class Diagnostic:
    """A problem found while parsing a workflow."""
    line: int
    column: int
    kind: str
    message: str

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.message} [{self.kind}]"


@dataclass
class Workflow:
    """The parts of a parsed workflow the remediation engine looks at."""
    env: Dict[str, str] = field(default_factory=dict)
    jobs: List[str] = field(default_factory=list)


def _node_kind(node: yaml.Node) -> str:
    if isinstance(node, yaml.MappingNode):
        return "mapping"
    if isinstance(node, yaml.SequenceNode):
        return "sequence"
    return "scalar"


def _is_null(node: yaml.Node) -> bool:
    return isinstance(node, yaml.ScalarNode) and node.tag == "tag:yaml.org,2002:null"


class _Parser:
    """Walks the composed node tree, collecting diagnostics."""

    def __init__(self):
        self.diagnostics: List[Diagnostic] = []

    def error(self, node: yaml.Node, message: str, kind: str = "syntax-check") -> None:
        mark = node.start_mark
        self.diagnostics.append(Diagnostic(mark.line + 1, mark.column + 1, kind, message))

    def check_duplicates(self, node: yaml.Node, section: str) -> None:
        if isinstance(node, yaml.SequenceNode):
            for item in node.value:
                self.check_duplicates(item, section)
            return
        if not isinstance(node, yaml.MappingNode):
            return

        seen: Dict[str, yaml.Node] = {}
        for key, value in node.value:
            if isinstance(key, yaml.ScalarNode):
                if key.value in seen:
                    prev = seen[key.value].start_mark
                    self.error(
                        key,
                        f'key "{key.value}" is duplicated in "{section}" section. '
                        f"previously defined at line:{prev.line + 1},col:{prev.column + 1}",
                    )
                else:
                    seen[key.value] = key
                self.check_duplicates(value, key.value)
            else:
                self.check_duplicates(value, section)

    def parse_env(self, node: yaml.Node) -> Dict[str, str]:
        env: Dict[str, str] = {}
        if _is_null(node):
            return env
        if isinstance(node, yaml.ScalarNode) and "${{" in node.value:
            # the whole env given as one expression, e.g. `env: ${{ fromJSON(...) }}`
            return env
        if not isinstance(node, yaml.MappingNode):
            self.error(node, f'"env" section must be mapping node but got {_node_kind(node)} node')
            return env

        for key, value in node.value:
            name = key.value if isinstance(key, yaml.ScalarNode) else ""
            if not name or INVALID_ENV_NAME_RE.search(name):
                self.error(
                    key,
                    f'environment variable name "{name}" is invalid. '
                    "'&', '=' and spaces should not be contained",
                    kind="env-var",
                )
                continue
            if not isinstance(value, yaml.ScalarNode):
                self.error(value, f'value of environment variable "{name}" must be scalar but got {_node_kind(value)} node')
                continue
            env[name] = value.value
        return env

    def parse_jobs(self, node: yaml.Node) -> List[str]:
        if not isinstance(node, yaml.MappingNode):
            self.error(node, f'"jobs" section must be mapping node but got {_node_kind(node)} node')
            return []

        jobs = []
        for key, value in node.value:
            job_id = key.value if isinstance(key, yaml.ScalarNode) else ""
            if not isinstance(value, yaml.MappingNode):
                self.error(value, f'"{job_id}" job must be mapping node but got {_node_kind(value)} node')
            jobs.append(job_id)
        return jobs

    def parse(self, root: yaml.Node) -> Workflow:
        workflow = Workflow()
        self.check_duplicates(root, "workflow")

        sections: Dict[str, yaml.Node] = {}
        for key, value in root.value:
            name = key.value if isinstance(key, yaml.ScalarNode) else ""
            if name not in TOP_LEVEL_KEYS:
                expected = ", ".join(f'"{k}"' for k in TOP_LEVEL_KEYS)
                self.error(key, f'unexpected key "{name}" for "workflow" section. expected one of {expected}')
                continue
            sections.setdefault(name, value)

        if "on" not in sections:
            self.error(root, '"on" section is missing in workflow')
        if "jobs" not in sections:
            self.error(root, '"jobs" section is missing in workflow')
        else:
            workflow.jobs = self.parse_jobs(sections["jobs"])
        if "env" in sections:
            workflow.env = self.parse_env(sections["env"])

        return workflow


def parse_workflow(content: str) -> Tuple[Optional[Workflow], List[Diagnostic]]:
    """Parse workflow text into a `Workflow` and its diagnostics.

    Args:
        content: Raw workflow YAML

    Returns:
        The workflow (None when the text is not usable YAML) and the
        diagnostics, sorted by position
    """
    try:
        root = yaml.compose(content, Loader=yaml.SafeLoader)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        line, column = (mark.line + 1, mark.column + 1) if mark else (0, 0)
        problem = e.problem or e.context or "invalid document"
        return None, [Diagnostic(line, column, "syntax-check", f"could not parse as YAML: {problem}")]
    except yaml.YAMLError as e:
        return None, [Diagnostic(0, 0, "syntax-check", f"could not parse as YAML: {e}")]

    if root is None:
        return None, [Diagnostic(0, 0, "syntax-check", "workflow is empty")]

    parser = _Parser()
    if not isinstance(root, yaml.MappingNode):
        parser.error(root, f"workflow is {_node_kind(root)} node but mapping node is expected")
        return None, parser.diagnostics

    workflow = parser.parse(root)
    diagnostics = sorted(parser.diagnostics, key=lambda d: (d.line, d.column))
    return workflow, diagnostics
