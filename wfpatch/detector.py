"""Find untrusted inputs used directly in `run:` blocks (shell injection risk)."""

import re
from dataclasses import dataclass
from typing import List

from .catalog import match_expression

# GitHub expression syntax
EXPR_RE = re.compile(r'\$\{\{\s*(.*?)\s*\}\}')

# Start of a run: key, both `run:` and `- run:`
RUN_RE = re.compile(r'^(\s*(?:-\s+)?)run\s*:\s*(.*)')

BLOCK_SCALARS = ("|", "|+", "|-", ">", ">-", ">+")


@dataclass(frozen=True)
class Finding:
    """A dangerous expression interpolated into a `run:` command."""
    path: str
    offset: int    # 1-based line of the `run:` key
    snippet: str   # the unsafe expression, i.e. github.event.issue.title

    def __str__(self) -> str:
        return f"{self.path}:{self.offset}: {self.snippet}"


def _check_line_for_injection(line, offset, filepath, findings):
    """Record a finding for each untrusted expression on a single line.

    A command is rewritten as a whole, so an expression repeated within the
    same command is reported once.
    """
    for expr_match in EXPR_RE.finditer(line):
        m = match_expression(expr_match.group(1))
        if not m:
            continue
        finding = Finding(path=filepath, offset=offset, snippet=m.group(0))
        if finding not in findings:
            findings.append(finding)


def scan_script_injection(lines: List[str], filepath: str) -> List[Finding]:
    """Scan workflow lines for script injection.

    Every finding inside a multi-line `run: |` block points at the `run:`
    line, so that the whole command can be remediated at once.
    """
    findings: List[Finding] = []
    in_run = False
    run_indent = 0
    run_line = 0

    for line_num, line in enumerate(lines, 1):
        stripped = line.strip()
        indent = len(line) - len(line.lstrip())

        run_match = RUN_RE.match(line)
        if run_match:
            run_indent = len(run_match.group(1))
            run_line = line_num
            inline_content = run_match.group(2).strip()
            if inline_content not in BLOCK_SCALARS:
                _check_line_for_injection(inline_content, line_num, filepath, findings)
            # deeper lines continue the command, plain scalars included
            in_run = True
            continue

        # Inside multiline run block
        if in_run:
            if stripped == "" or indent > run_indent:
                _check_line_for_injection(line, run_line, filepath, findings)
            else:
                in_run = False

    return findings


def scan_file(content: str, filepath: str) -> List[Finding]:
    """Scan workflow text for script injection findings."""
    # split like the patcher does, so line numbers agree
    return scan_script_injection(content.split("\n"), filepath)
