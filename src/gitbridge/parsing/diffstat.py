"""Diff-stat line parsing for merge, pull and stash output."""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["DiffStatSummary", "parse_stat_files", "parse_stat_summary"]

#: `` path/to/file | 12 +++--`` or `` image.png | Bin 0 -> 12 bytes``.
_STAT_LINE_RE = re.compile(r"^\s*(?P<path>\S.*?)\s+\|\s+(?:\d+|Bin\b)")

_STAT_SUMMARY_RE = re.compile(
    r"(\d+)\s+files?\s+changed"
    r"(?:,\s+(\d+)\s+insertions?\(\+\))?"
    r"(?:,\s+(\d+)\s+deletions?\(-\))?"
)


@dataclass(frozen=True, slots=True)
class DiffStatSummary:
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0


def parse_stat_files(text: str) -> list[str]:
    """Return file paths from `` file | n ++-`` lines, skipping CONFLICT lines."""
    files: list[str] = []
    for line in text.splitlines():
        if line.lstrip().startswith("CONFLICT"):
            continue
        match = _STAT_LINE_RE.match(line)
        if match:
            files.append(match.group("path"))
    return files


def parse_stat_summary(text: str) -> DiffStatSummary:
    """Parse the ``N files changed, X insertions(+), Y deletions(-)`` line.

    Singular forms and a missing insertions or deletions clause are accepted.
    """
    match = _STAT_SUMMARY_RE.search(text)
    if not match:
        return DiffStatSummary()
    return DiffStatSummary(
        files_changed=int(match.group(1)),
        insertions=int(match.group(2) or 0),
        deletions=int(match.group(3) or 0),
    )
