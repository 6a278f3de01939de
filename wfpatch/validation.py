"""Check that a patch does not add syntax errors to a workflow.

If the original workflow already had errors, the patched version will too. As
long as every error of the patched workflow pairs up with one of the
original's, the patch is considered valid.
"""

from typing import List, Sequence

from .workflow import Diagnostic, parse_workflow


def normalize_message(message: str) -> str:
    """First sentence of a message.

    Some messages carry line metadata that legitimately moves after a patch
    (i.e. "previously defined at line:3,col:1").
    """
    return message.split(".")[0]


def _same(a: Diagnostic, b: Diagnostic) -> bool:
    return (
        a.column == b.column
        and a.kind == b.kind
        and normalize_message(a.message) == normalize_message(b.message)
    )


def new_diagnostics(patched: Sequence[Diagnostic], original: Sequence[Diagnostic]) -> List[Diagnostic]:
    """Diagnostics of the patched workflow that the original did not have.

    Pairs are matched greedily and in order: each patched diagnostic is
    compared against the next unmatched original one.
    """
    if not original:
        return list(patched)

    new: List[Diagnostic] = []
    o = 0
    for diag in patched:
        if o < len(original) and _same(original[o], diag):
            o += 1
        else:
            new.append(diag)
    return new


def validate_patch(content: str, original: Sequence[Diagnostic]) -> List[Diagnostic]:
    """Re-parse patched workflow text and return the diagnostics it introduced."""
    _, patched = parse_workflow(content)
    if not patched:
        return []
    return new_diagnostics(patched, original)
