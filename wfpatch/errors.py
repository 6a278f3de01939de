"""Errors raised while remediating a single script-injection finding.

Every error here is fatal to the finding being processed and to nothing else:
callers remediating several findings catch `RemediationError` per finding.
"""

from typing import List


class RemediationError(Exception):
    """Base class for deterministic remediation failures."""


class UnknownDangerousVariable(RemediationError):
    """The finding's snippet matches no entry of the unsafe-expression catalog."""

    def __init__(self, snippet: str):
        super().__init__(f"Unknown dangerous variable: {snippet}")
        self.snippet = snippet


class InvalidOffset(RemediationError):
    """The finding points outside the workflow it was reported for."""

    def __init__(self, offset: int, num_lines: int):
        super().__init__(
            f"Invalid dangerous workflow offset: {offset} (workflow has {num_lines} lines)"
        )
        self.offset = offset


class NoGlobalIndent(RemediationError):
    """The workflow has no `on:` block to take the global indentation from."""

    def __init__(self):
        super().__init__("Could not determine global indentation")


class NoInsertionPoint(RemediationError):
    """There is no `jobs:` label to plant a new `env:` block above."""

    def __init__(self):
        super().__init__("Could not determine location for new environment")


class PatchRegression(RemediationError):
    """The patched workflow has parse diagnostics the original did not."""

    def __init__(self, diagnostics: List):
        self.diagnostics = list(diagnostics)
        details = "\n".join(f"  {d}" for d in self.diagnostics)
        super().__init__(f"Patched workflow introduces {len(self.diagnostics)} new error(s):\n{details}")
