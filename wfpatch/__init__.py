"""wfpatch - automated fixes for GitHub Actions script injection.

Finds attacker-controlled `${{ ... }}` expressions interpolated into `run:`
commands and generates unified diffs that move them into environment
variables.
"""

from .catalog import UnsafePattern, classify
from .detector import Finding, scan_file, scan_script_injection
from .errors import (
    InvalidOffset,
    NoGlobalIndent,
    NoInsertionPoint,
    PatchRegression,
    RemediationError,
    UnknownDangerousVariable,
)
from .patch import PatchResult, generate_patch, patch_workflow, remediate
from .workflow import Diagnostic, Workflow, parse_workflow

__version__ = "1.0.0"

__all__ = [
    "Diagnostic",
    "Finding",
    "InvalidOffset",
    "NoGlobalIndent",
    "NoInsertionPoint",
    "PatchRegression",
    "PatchResult",
    "RemediationError",
    "UnknownDangerousVariable",
    "UnsafePattern",
    "Workflow",
    "classify",
    "generate_patch",
    "parse_workflow",
    "patch_workflow",
    "remediate",
    "scan_file",
    "scan_script_injection",
]
