"""Parser for ``git status --porcelain=v2 -b``."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field

__all__ = ["ChangeSet", "PorcelainStatus", "parse_porcelain_v2"]

_AHEAD_BEHIND_RE = re.compile(r"^\+(\d+) -(\d+)$")


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """Paths grouped by change type for one side (index or worktree)."""

    added: tuple[str, ...] = ()
    modified: tuple[str, ...] = ()
    deleted: tuple[str, ...] = ()
    renamed: tuple[str, ...] = ()

    @property
    def empty(self) -> bool:
        return not (self.added or self.modified or self.deleted or self.renamed)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class _ChangeLists:
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    renamed: list[str] = field(default_factory=list)

    def record(self, code: str, path: str) -> None:
        if code == "A":
            self.added.append(path)
        elif code in ("M", "T"):
            self.modified.append(path)
        elif code == "D":
            self.deleted.append(path)
        elif code in ("R", "C"):
            self.renamed.append(path)

    def freeze(self) -> ChangeSet:
        return ChangeSet(
            added=tuple(self.added),
            modified=tuple(self.modified),
            deleted=tuple(self.deleted),
            renamed=tuple(self.renamed),
        )


@dataclass(frozen=True, slots=True)
class PorcelainStatus:
    """Parsed porcelain v2 output.

    Attributes:
        current_branch: Checked-out branch, None when HEAD is detached.
        upstream: Upstream of the current branch, if configured.
        ahead: Commits ahead of upstream.
        behind: Commits behind upstream.
        staged: Changes recorded in the index.
        unstaged: Changes in the worktree not yet staged.
        untracked_files: Paths git does not track.
        conflicted_files: Paths with unmerged entries.
    """

    current_branch: str | None
    upstream: str | None
    ahead: int
    behind: int
    staged: ChangeSet
    unstaged: ChangeSet
    untracked_files: tuple[str, ...]
    conflicted_files: tuple[str, ...]

    @property
    def is_clean(self) -> bool:
        return (
            self.staged.empty
            and self.unstaged.empty
            and not self.untracked_files
            and not self.conflicted_files
        )


def parse_porcelain_v2(text: str) -> PorcelainStatus:
    """Parse porcelain v2 status output with branch headers."""
    branch: str | None = None
    upstream: str | None = None
    ahead = behind = 0
    staged = _ChangeLists()
    unstaged = _ChangeLists()
    untracked: list[str] = []
    conflicted: list[str] = []

    for line in text.splitlines():
        if not line:
            continue
        if line.startswith("# "):
            key, _, value = line[2:].partition(" ")
            if key == "branch.head":
                branch = None if value == "(detached)" else value
            elif key == "branch.upstream":
                upstream = value or None
            elif key == "branch.ab":
                counts = _AHEAD_BEHIND_RE.match(value)
                if counts:
                    ahead, behind = int(counts.group(1)), int(counts.group(2))
            continue

        entry_type = line[0]
        if entry_type == "1":
            parts = line.split(" ", 8)
            if len(parts) == 9:
                _record_xy(parts[1], parts[8], staged, unstaged)
        elif entry_type == "2":
            parts = line.split(" ", 9)
            if len(parts) == 10:
                # "<path>\t<origPath>"
                path = parts[9].split("\t", 1)[0]
                _record_xy(parts[1], path, staged, unstaged)
        elif entry_type == "u":
            parts = line.split(" ")
            path = " ".join(parts[10:]) if len(parts) > 10 else parts[-1]
            conflicted.append(path)
        elif entry_type == "?":
            untracked.append(line[2:])

    return PorcelainStatus(
        current_branch=branch,
        upstream=upstream,
        ahead=ahead,
        behind=behind,
        staged=staged.freeze(),
        unstaged=unstaged.freeze(),
        untracked_files=tuple(untracked),
        conflicted_files=tuple(conflicted),
    )


def _record_xy(
    xy: str, path: str, staged: _ChangeLists, unstaged: _ChangeLists
) -> None:
    if len(xy) != 2:
        return
    staged.record(xy[0], path)
    unstaged.record(xy[1], path)
