from __future__ import annotations

import re
from typing import Iterator, List, Tuple

TAG_PREFIX = "tag: "
HEAD = "HEAD"

CHANGE_CODES = frozenset("MADRCU")
UNTRACKED_CODE = "?"
STATUS_CODES = frozenset(" MADRCUT?!")

_LOG_LINE = re.compile(
    r"^(?P<hash>[0-9a-f]{40}(?:[0-9a-f]{24})?)\s*(?:\((?P<refs>.*?)\))?\s*$"
)
_REF_SEPARATOR = re.compile(r"\s*,\s*")
_HEAD_POINTER = re.compile(r"^HEAD\s*->\s*(?P<branch>.+)$")


class ParseError(ValueError):
    """Raised when captured command output does not have the expected shape."""

    def __init__(self, message: str, *, line_number: int | None = None, line: str | None = None) -> None:
        if line_number is not None:
            message = f"{message} (line {line_number}: {line!r})"
        super().__init__(message)
        self.line_number = line_number
        self.line = line


def iter_lines(output: str) -> Iterator[Tuple[int, str]]:
    """Yield ``(line_number, line)`` for every non-blank line, 1-based."""
    for number, line in enumerate(output.splitlines(), start=1):
        if line.strip():
            yield number, line


def parse_log_line(line: str, line_number: int | None = None) -> Tuple[str, List[str], List[str]]:
    """
    Split one ``%H%d`` log line into its hash, ref names and bare tag names.
    """
    match = _LOG_LINE.match(line.strip())
    if match is None:
        raise ParseError("Malformed log line", line_number=line_number, line=line)

    names = _split_refs(match.group("refs"))
    tags = [name[len(TAG_PREFIX):] for name in names if name.startswith(TAG_PREFIX)]
    return match.group("hash"), names, tags


def _split_refs(refs: str | None) -> List[str]:
    if not refs or not refs.strip():
        return []

    names: List[str] = []
    for ref in _REF_SEPARATOR.split(refs.strip()):
        if not ref:
            continue
        pointer = _HEAD_POINTER.match(ref)
        if pointer:
            names.append(HEAD)
            names.append(pointer.group("branch"))
        else:
            names.append(ref)
    return names


def parse_status_line(line: str, line_number: int | None = None) -> Tuple[str, str, str]:
    """Split a porcelain status line into ``(index, worktree, path)``."""
    if len(line) < 4 or line[2] != " ":
        raise ParseError("Malformed status line", line_number=line_number, line=line)
    index, worktree = line[0], line[1]
    if index not in STATUS_CODES or worktree not in STATUS_CODES:
        raise ParseError("Unknown status code", line_number=line_number, line=line)
    return index, worktree, line[3:]


def dirty_codes(strict: bool = False) -> frozenset:
    if strict:
        return CHANGE_CODES | {UNTRACKED_CODE}
    return CHANGE_CODES
