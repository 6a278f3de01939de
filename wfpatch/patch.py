"""Generate patches that fix script injection findings.

Each finding is fixed on its own copy of the original workflow: the unsafe
interpolation in the `run:` command is replaced by a shell reference to an
envvar declared in the workflow-level `env:` block. The result is returned as
a unified diff users can apply (with `git apply` or `patch`) themselves.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .catalog import classify
from .declarations import DeclarationManager
from .detector import Finding
from .diff import unified_diff
from .errors import PatchRegression, RemediationError
from .lines import Document
from .rewriter import check_offset, rewrite_site
from .validation import validate_patch
from .workflow import Diagnostic, Workflow, parse_workflow

logger = logging.getLogger(__name__)


@dataclass
class PatchResult:
    """Outcome of remediating one finding. An empty patch means no fix."""
    finding: Finding
    patch: str = ""
    error: Optional[RemediationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.patch)


def patch_workflow(finding: Finding, content: str, workflow: Optional[Workflow] = None) -> str:
    """Return a patched version of the workflow without the finding's injection."""
    unsafe_var = finding.snippet.strip()
    doc = Document.from_text(content)
    check_offset(doc, finding.offset)

    pattern = classify(unsafe_var)

    if workflow is None:
        workflow, _ = parse_workflow(content)
    declarations = DeclarationManager(workflow)
    pattern = declarations.reconcile(pattern, unsafe_var)

    rewrite_site(doc, finding.offset, pattern)
    declarations.declare(doc, pattern, unsafe_var)

    return doc.to_text()


def generate_patch(
    finding: Finding,
    content: str,
    workflow: Optional[Workflow] = None,
    diagnostics: Optional[Sequence[Diagnostic]] = None,
) -> str:
    """Fix the finding and return the change as a unified diff.

    Args:
        finding: The script injection to fix
        content: Original workflow text
        workflow: Parsed original workflow, parsed from `content` if omitted
        diagnostics: Parse diagnostics of the original workflow

    Raises:
        RemediationError: The finding can't be fixed; nothing is patched
    """
    if workflow is None or diagnostics is None:
        workflow, diagnostics = parse_workflow(content)

    patched = patch_workflow(finding, content, workflow)

    errs = validate_patch(patched, diagnostics)
    if errs:
        raise PatchRegression(errs)

    return unified_diff(finding.path, content, patched)


def remediate(content: str, findings: Sequence[Finding], max_workers: int = 1) -> List[PatchResult]:
    """Generate one patch per finding of a single workflow.

    A failure only affects its own finding. Results come back sorted by
    offset, findings on the same line in their original order.
    """
    workflow, diagnostics = parse_workflow(content)

    def fix(finding: Finding) -> PatchResult:
        try:
            return PatchResult(finding, patch=generate_patch(finding, content, workflow, diagnostics))
        except RemediationError as e:
            logger.warning("Could not patch %s: %s", finding, e)
            return PatchResult(finding, error=e)

    if max_workers > 1 and len(findings) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(fix, findings))
    else:
        results = [fix(f) for f in findings]

    return sorted(results, key=lambda r: r.finding.offset)
