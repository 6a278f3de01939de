"""Indentation-aware helpers over the raw lines of a workflow.

The engine never rewrites the YAML tree. Block boundaries are approximated
from indentation: a block ends at the first substantive line indented at or
above the line that opened it. Blank and comment-only lines never end a block.
"""

import re
from dataclasses import dataclass, field
from typing import List, Pattern

BLANK_RE = re.compile(r'^\s*$')
COMMENT_RE = re.compile(r'^\s*#')


@dataclass
class Document:
    """Lines of a workflow, without `\\n` terminators, plus its final-newline flag.

    CRLF workflows keep the `\\r` on every line; `carriage_return` records it
    so that inserted lines end the same way.
    """
    lines: List[str] = field(default_factory=list)
    trailing_newline: bool = False
    carriage_return: bool = False

    @classmethod
    def from_text(cls, text: str) -> "Document":
        lines = text.split("\n")
        crlf = len(lines) > 1 and lines[0].endswith("\r")
        trailing = len(lines) > 1 and lines[-1] == ""
        if trailing:
            lines.pop()
        return cls(lines=lines, trailing_newline=trailing, carriage_return=crlf)

    def to_text(self) -> str:
        text = "\n".join(self.lines)
        if self.trailing_newline:
            text += "\n"
        return text

    def copy(self) -> "Document":
        return Document(
            lines=list(self.lines),
            trailing_newline=self.trailing_newline,
            carriage_return=self.carriage_return,
        )

    def insert(self, index: int, new_lines: List[str]) -> None:
        # without a final newline the last line has no terminator at all
        if self.carriage_return and (index < len(self.lines) or self.trailing_newline):
            new_lines = [line + "\r" for line in new_lines]
        self.lines[index:index] = new_lines

    def __len__(self) -> int:
        return len(self.lines)


def indent_of(line: str) -> int:
    """Leading spaces and dashes; a list marker is indentation in YAML."""
    return len(line) - len(line.lstrip(" -"))


def is_blank(line: str) -> bool:
    return bool(BLANK_RE.match(line))


def is_comment(line: str) -> bool:
    return bool(COMMENT_RE.match(line))


def is_blank_or_comment(line: str) -> bool:
    return is_blank(line) or is_comment(line)


def is_at_or_above_indent(line: str, reference: int) -> bool:
    """Whether `line` closes a block opened at `reference` indentation.

    For example, walking the lines under `job_foo:`:

        job_foo:
          runs-on: ubuntu-latest   # indent 2 > 0, still inside job_foo
          # a comment              # ignored
        job_bar:                   # indent 0 <= 0, job_foo is done

    Blank lines and comment-only lines always return False.
    """
    if is_blank_or_comment(line):
        return False
    return indent_of(line) <= reference


def label_regex(label: str, indent: int) -> Pattern:
    """Match `label:` starting exactly at column `indent`."""
    return re.compile(f"^{' ' * indent}{re.escape(label)}:")


def find_label(lines: List[str], label: str, indent: int) -> int:
    """Index of the first line bearing `label:` at `indent`, or -1."""
    regex = label_regex(label, indent)
    for i, line in enumerate(lines):
        if regex.match(line):
            return i
    return -1
