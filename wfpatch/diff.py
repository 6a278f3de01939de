"""Unified diffs of a workflow before and after patching."""

import difflib

NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


def _split_lines(text: str):
    """Split on newlines only; str.splitlines also breaks on form feeds etc."""
    lines = [line + "\n" for line in text.split("\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def unified_diff(path: str, original: str, patched: str, context: int = 3) -> str:
    """Return the changes as a unified diff, same as `git diff` or `diff -u`.

    The result applies with `git apply` or `patch -p1`. Identical contents
    give an empty string.
    """
    path = path.lstrip("/")
    diff_lines = difflib.unified_diff(
        _split_lines(original),
        _split_lines(patched),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
        n=context,
    )

    out = []
    for line in diff_lines:
        out.append(line)
        if not line.endswith("\n"):
            # only the last line of either side can lack one
            out.append("\n" + NO_NEWLINE_MARKER)
    return "".join(out)
