"""Line classification for git's human-oriented output.

One pass over stdout and stderr assigns each line a :class:`LineKind`.
When a line could match more than one kind, the priority is::

    conflict > rejected ref > new ref > other ref update > other

Operations read the aggregate :class:`OutputScan` instead of scanning text
themselves: merge, rebase, cherry-pick, pull and stash apply use its conflict
view; push and fetch use its ref-update view.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "LineKind",
    "RefUpdate",
    "ClassifiedLine",
    "OutputScan",
    "ConflictReport",
    "classify_line",
    "parse_ref_update",
    "scan_output",
    "detect_conflicts",
]


class LineKind(str, Enum):
    """Classification of one output line, in priority order."""

    CONFLICT = "conflict"
    REF_REJECTED = "ref_rejected"
    REF_NEW = "ref_new"
    REF_UPDATED = "ref_updated"
    REF_PRUNED = "ref_pruned"
    OTHER = "other"


_CONFLICT_RE = re.compile(r"^CONFLICT \((?P<type>[^)]*)\):\s*(?P<detail>.*)$")
_MERGE_CONFLICT_IN_RE = re.compile(r"Merge conflict in (?P<path>.+?)\s*$")

#: `` <flag> <summary> <from> -> <to> [(<reason>)]`` as printed by fetch/push.
_REF_UPDATE_RE = re.compile(
    r"^\s*(?P<flag>[-+*!=t])?\s*"
    r"(?P<summary>\[[^\]]+\]|[0-9a-f]{4,}\.{2,3}[0-9a-f]{4,})\s+"
    r"(?P<source>\S+)\s+->\s+(?P<destination>\S+)"
    r"(?:\s+\((?P<reason>[^)]*)\))?\s*$"
)


@dataclass(frozen=True, slots=True)
class RefUpdate:
    """One ref-update status line.

    Attributes:
        kind: REF_REJECTED, REF_NEW, REF_UPDATED or REF_PRUNED.
        flag: git's one-character status flag (" " for a fast-forward).
        summary: Bracketed status or commit range (``"new branch"``, ``"a1..b2"``).
        source: Ref on the sending side (``"(none)"`` for deletions).
        destination: Ref on the receiving side.
        reason: Parenthesised reason, e.g. ``"non-fast-forward"``.
    """

    kind: LineKind
    flag: str
    summary: str
    source: str
    destination: str
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class ClassifiedLine:
    """A line with its classification and extracted payload."""

    kind: LineKind
    text: str
    path: str | None = None
    ref: RefUpdate | None = None


@dataclass(frozen=True, slots=True)
class ConflictReport:
    """Conflict view of an output scan.

    Attributes:
        conflicts: True if any conflict line was seen.
        files: Conflicted paths, de-duplicated, in first-seen order.
    """

    conflicts: bool
    files: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class OutputScan:
    """All classified lines of one invocation (stdout first, then stderr)."""

    lines: tuple[ClassifiedLine, ...]

    def of_kind(self, kind: LineKind) -> tuple[ClassifiedLine, ...]:
        return tuple(line for line in self.lines if line.kind is kind)

    def refs(self, kind: LineKind) -> tuple[RefUpdate, ...]:
        return tuple(
            line.ref for line in self.of_kind(kind) if line.ref is not None
        )

    @property
    def conflicted_files(self) -> tuple[str, ...]:
        return tuple(
            dict.fromkeys(
                line.path for line in self.of_kind(LineKind.CONFLICT) if line.path
            )
        )

    @property
    def has_conflicts(self) -> bool:
        return any(line.kind is LineKind.CONFLICT for line in self.lines)

    @property
    def conflict_report(self) -> ConflictReport:
        return ConflictReport(
            conflicts=self.has_conflicts, files=self.conflicted_files
        )

    @property
    def other_lines(self) -> tuple[str, ...]:
        return tuple(line.text for line in self.of_kind(LineKind.OTHER))


def parse_ref_update(line: str) -> RefUpdate | None:
    """Parse a fetch/push ref-update line, or return None."""
    match = _REF_UPDATE_RE.match(line.rstrip())
    if not match:
        return None
    flag = match.group("flag") or " "
    summary = match.group("summary").strip("[]")
    lowered = summary.lower()

    if flag == "!" or "rejected" in lowered:
        kind = LineKind.REF_REJECTED
    elif flag == "*" or lowered.startswith("new "):
        kind = LineKind.REF_NEW
    elif flag == "-" or lowered == "deleted":
        kind = LineKind.REF_PRUNED
    elif flag == "=":
        # "[up to date]": nothing moved
        kind = LineKind.OTHER
    else:
        kind = LineKind.REF_UPDATED

    return RefUpdate(
        kind=kind,
        flag=flag,
        summary=summary,
        source=match.group("source"),
        destination=match.group("destination"),
        reason=match.group("reason"),
    )


def _conflict_path(detail: str) -> str | None:
    merge_in = _MERGE_CONFLICT_IN_RE.search(detail)
    if merge_in:
        return merge_in.group("path")
    # "(modify/delete): src/a.py deleted in HEAD and modified in topic."
    first = detail.split(maxsplit=1)
    return first[0] if first else None


def classify_line(line: str) -> ClassifiedLine:
    """Classify a single output line."""
    stripped = line.strip()
    conflict = _CONFLICT_RE.match(stripped)
    if conflict:
        return ClassifiedLine(
            kind=LineKind.CONFLICT,
            text=stripped,
            path=_conflict_path(conflict.group("detail")),
        )

    ref = parse_ref_update(line)
    if ref is not None:
        return ClassifiedLine(kind=ref.kind, text=stripped, ref=ref)

    return ClassifiedLine(kind=LineKind.OTHER, text=stripped)


def scan_output(*texts: str) -> OutputScan:
    """Classify every non-blank line of each text, in order."""
    return OutputScan(
        lines=tuple(
            classify_line(line)
            for text in texts
            for line in text.splitlines()
            if line.strip()
        )
    )


def detect_conflicts(stdout: str, stderr: str) -> ConflictReport:
    """Scan both streams for ``CONFLICT (...)`` lines, regardless of exit code."""
    return scan_output(stdout, stderr).conflict_report
