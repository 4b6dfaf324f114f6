"""Typed results, one per command (and per mode for multi-mode commands).

All results are frozen dataclasses with ``success`` as a first-class field
and ``to_dict()`` for serialisation. ``success`` comes from the content of
the output, not only from the exit code: a merge that exits 0 but prints
conflict lines is reported with ``success = False``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from gitbridge.parsing.status import ChangeSet

__all__ = [
    "OperationState",
    "BranchInfo",
    "CommitInfo",
    "DiffEntry",
    "ReflogEntry",
    "RemoteInfo",
    "StashEntry",
    "AddResult",
    "BranchCreateResult",
    "BranchDeleteResult",
    "BranchListResult",
    "BranchRenameResult",
    "CheckoutResult",
    "CherryPickResult",
    "CleanResult",
    "CloneResult",
    "CommitResult",
    "DiffResult",
    "FetchResult",
    "InitResult",
    "LogResult",
    "MergeResult",
    "PullResult",
    "PushResult",
    "RebaseResult",
    "ReflogResult",
    "RemoteAddResult",
    "RemoteListResult",
    "RemoteRemoveResult",
    "RemoteRenameResult",
    "RemoteSetUrlResult",
    "RemoteUrlResult",
    "ResetResult",
    "ShowResult",
    "StashApplyResult",
    "StashClearResult",
    "StashDropResult",
    "StashListResult",
    "StashPushResult",
    "StatusResult",
    "TagCreateResult",
    "TagDeleteResult",
    "TagListResult",
    "ParsedResult",
]


class OperationState(str, Enum):
    """State of a multi-step operation (rebase, cherry-pick) after a call.

    Inferred from git's response to each call; nothing is tracked between
    calls.
    """

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CONFLICTED = "conflicted"
    ABORTED = "aborted"


class _Result:
    __slots__ = ()

    def to_dict(self) -> dict[str, object]:
        return asdict(self)  # type: ignore[call-overload]


# =============================================================================
# Shared value objects
# =============================================================================


@dataclass(frozen=True, slots=True)
class BranchInfo(_Result):
    """A local or remote-tracking branch.

    Attributes:
        name: Branch name without the ``refs/heads/`` or ``refs/remotes/`` prefix.
        commit_hash: Commit the branch points to.
        current: True for the checked-out branch.
        upstream: Upstream name, if configured.
        ahead: Commits ahead of upstream.
        behind: Commits behind upstream.
        gone: Upstream is configured but no longer exists.
    """

    name: str
    commit_hash: str
    current: bool = False
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    gone: bool = False


@dataclass(frozen=True, slots=True)
class CommitInfo(_Result):
    """A commit from ``git log``.

    ``body``, ``stat`` and ``patch`` are None when empty or not requested.
    """

    hash: str
    short_hash: str
    author: str
    email: str
    timestamp: int
    subject: str
    parents: tuple[str, ...] = ()
    body: str | None = None
    stat: str | None = None
    patch: str | None = None


@dataclass(frozen=True, slots=True)
class RemoteInfo(_Result):
    name: str
    fetch_url: str = ""
    push_url: str = ""


@dataclass(frozen=True, slots=True)
class StashEntry(_Result):
    """One ``stash list`` line (``stash@{0}: WIP on main: abc123 msg``)."""

    ref: str
    index: int
    description: str
    branch: str | None = None


# =============================================================================
# History
# =============================================================================


@dataclass(frozen=True, slots=True)
class CommitResult(_Result):
    commit_hash: str
    message: str
    author: str = ""
    timestamp: int = 0
    files_changed: tuple[str, ...] = ()
    signed: bool = False
    success: bool = True


@dataclass(frozen=True, slots=True)
class LogResult(_Result):
    commits: tuple[CommitInfo, ...] = ()
    success: bool = True

    @property
    def total_count(self) -> int:
        return len(self.commits)


@dataclass(frozen=True, slots=True)
class ResetResult(_Result):
    mode: str
    commit: str
    files_reset: tuple[str, ...] = ()
    success: bool = True


@dataclass(frozen=True, slots=True)
class CherryPickResult(_Result):
    picked_commits: tuple[str, ...] = ()
    conflicts: bool = False
    conflicted_files: tuple[str, ...] = ()
    state: OperationState = OperationState.COMPLETED
    success: bool = True


# =============================================================================
# Inspection
# =============================================================================


@dataclass(frozen=True, slots=True)
class DiffEntry(_Result):
    """One ``diff --name-status`` line.

    ``status`` is spelled out (``added``, ``modified``, ``deleted``,
    ``renamed``, ``copied``, ``type_changed``, ``unmerged``); unknown letters
    are kept as-is. ``old_path`` is set for renames and copies.
    """

    path: str
    status: str
    old_path: str | None = None
    similarity: int | None = None


@dataclass(frozen=True, slots=True)
class DiffResult(_Result):
    mode: str
    patch: str = ""
    files: tuple[DiffEntry, ...] = ()
    untracked_files: tuple[str, ...] = ()
    success: bool = True

    @property
    def is_empty(self) -> bool:
        return not (self.patch.strip() or self.files or self.untracked_files)


@dataclass(frozen=True, slots=True)
class ShowResult(_Result):
    """A commit (``commit`` set) or a file at a ref (``path``/``content`` set)."""

    ref: str
    commit: CommitInfo | None = None
    path: str | None = None
    content: str | None = None
    success: bool = True


@dataclass(frozen=True, slots=True)
class ReflogEntry(_Result):
    """One reflog record, e.g. ``HEAD@{2}`` -> ``checkout: moving from a to b``."""

    hash: str
    selector: str
    index: int
    message: str
    timestamp: int


@dataclass(frozen=True, slots=True)
class ReflogResult(_Result):
    ref: str
    entries: tuple[ReflogEntry, ...] = ()
    success: bool = True

    @property
    def total_count(self) -> int:
        return len(self.entries)


# =============================================================================
# Branches and tags
# =============================================================================


@dataclass(frozen=True, slots=True)
class BranchListResult(_Result):
    branches: tuple[BranchInfo, ...] = ()
    success: bool = True

    @property
    def current(self) -> BranchInfo | None:
        return next((b for b in self.branches if b.current), None)


@dataclass(frozen=True, slots=True)
class BranchCreateResult(_Result):
    created: str
    success: bool = True


@dataclass(frozen=True, slots=True)
class BranchDeleteResult(_Result):
    deleted: str
    success: bool = True


@dataclass(frozen=True, slots=True)
class BranchRenameResult(_Result):
    renamed_from: str
    renamed_to: str
    success: bool = True


@dataclass(frozen=True, slots=True)
class CheckoutResult(_Result):
    target: str
    branch_created: bool = False
    files_modified: tuple[str, ...] = ()
    success: bool = True


@dataclass(frozen=True, slots=True)
class TagListResult(_Result):
    tags: tuple[str, ...] = ()
    success: bool = True


@dataclass(frozen=True, slots=True)
class TagCreateResult(_Result):
    created: str
    signed: bool = False
    success: bool = True


@dataclass(frozen=True, slots=True)
class TagDeleteResult(_Result):
    deleted: str
    success: bool = True


@dataclass(frozen=True, slots=True)
class MergeResult(_Result):
    """Result of ``git merge``.

    Attributes:
        strategy: Strategy requested (``"ort"`` unless overridden).
        fast_forward: git reported a fast-forward.
        conflicts: Conflict lines were printed.
        conflicted_files: Paths from those lines.
        merged_files: Paths from the diff-stat lines.
        message: The caller's merge message, or git's stdout.
        aborted: The call was ``merge --abort``.
    """

    strategy: str
    fast_forward: bool = False
    conflicts: bool = False
    conflicted_files: tuple[str, ...] = ()
    merged_files: tuple[str, ...] = ()
    insertions: int = 0
    deletions: int = 0
    message: str = ""
    aborted: bool = False
    success: bool = True


@dataclass(frozen=True, slots=True)
class RebaseResult(_Result):
    mode: str
    rebased_commits: int = 0
    conflicts: bool = False
    conflicted_files: tuple[str, ...] = ()
    state: OperationState = OperationState.COMPLETED
    success: bool = True


# =============================================================================
# Remotes and synchronisation
# =============================================================================


@dataclass(frozen=True, slots=True)
class RemoteListResult(_Result):
    remotes: tuple[RemoteInfo, ...] = ()
    success: bool = True


@dataclass(frozen=True, slots=True)
class RemoteAddResult(_Result):
    added: RemoteInfo
    success: bool = True


@dataclass(frozen=True, slots=True)
class RemoteRemoveResult(_Result):
    removed: str
    success: bool = True


@dataclass(frozen=True, slots=True)
class RemoteRenameResult(_Result):
    renamed_from: str
    renamed_to: str
    success: bool = True


@dataclass(frozen=True, slots=True)
class RemoteUrlResult(_Result):
    remote: RemoteInfo
    success: bool = True


@dataclass(frozen=True, slots=True)
class RemoteSetUrlResult(_Result):
    name: str
    url: str
    push: bool = False
    success: bool = True


@dataclass(frozen=True, slots=True)
class FetchResult(_Result):
    remote: str
    fetched_refs: tuple[str, ...] = ()
    updated_refs: tuple[str, ...] = ()
    pruned_refs: tuple[str, ...] = ()
    success: bool = True


@dataclass(frozen=True, slots=True)
class PullResult(_Result):
    remote: str
    branch: str
    strategy: str
    conflicts: bool = False
    conflicted_files: tuple[str, ...] = ()
    files_changed: tuple[str, ...] = ()
    insertions: int = 0
    deletions: int = 0
    success: bool = True


@dataclass(frozen=True, slots=True)
class PushResult(_Result):
    """Result of ``git push``; any rejected ref makes ``success`` False."""

    remote: str
    branch: str
    upstream_set: bool = False
    pushed_refs: tuple[str, ...] = ()
    rejected_refs: tuple[str, ...] = ()
    dry_run: bool = False
    success: bool = True


# =============================================================================
# Working tree
# =============================================================================


@dataclass(frozen=True, slots=True)
class StashListResult(_Result):
    stashes: tuple[StashEntry, ...] = ()
    success: bool = True


@dataclass(frozen=True, slots=True)
class StashPushResult(_Result):
    created: str | None
    message: str | None = None
    success: bool = True


@dataclass(frozen=True, slots=True)
class StashApplyResult(_Result):
    applied: str
    popped: bool = False
    conflicts: bool = False
    conflicted_files: tuple[str, ...] = ()
    success: bool = True


@dataclass(frozen=True, slots=True)
class StashDropResult(_Result):
    dropped: str
    success: bool = True


@dataclass(frozen=True, slots=True)
class StashClearResult(_Result):
    success: bool = True


@dataclass(frozen=True, slots=True)
class CleanResult(_Result):
    files_removed: tuple[str, ...] = ()
    directories_removed: tuple[str, ...] = ()
    dry_run: bool = False
    success: bool = True


@dataclass(frozen=True, slots=True)
class StatusResult(_Result):
    current_branch: str | None
    is_clean: bool
    staged: ChangeSet = ChangeSet()
    unstaged: ChangeSet = ChangeSet()
    untracked_files: tuple[str, ...] = ()
    conflicted_files: tuple[str, ...] = ()
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    success: bool = True


@dataclass(frozen=True, slots=True)
class AddResult(_Result):
    staged_files: tuple[str, ...] = ()
    all: bool = False
    success: bool = True


# =============================================================================
# Repository creation
# =============================================================================


@dataclass(frozen=True, slots=True)
class CloneResult(_Result):
    remote_url: str
    local_path: str
    branch: str | None = None
    bare: bool = False
    success: bool = True


@dataclass(frozen=True, slots=True)
class InitResult(_Result):
    path: str
    initial_branch: str
    bare: bool = False
    success: bool = True


ParsedResult = (
    AddResult
    | BranchCreateResult
    | BranchDeleteResult
    | BranchListResult
    | BranchRenameResult
    | CheckoutResult
    | CherryPickResult
    | CleanResult
    | CloneResult
    | CommitResult
    | DiffResult
    | FetchResult
    | InitResult
    | LogResult
    | MergeResult
    | PullResult
    | PushResult
    | RebaseResult
    | ReflogResult
    | RemoteAddResult
    | RemoteListResult
    | RemoteRemoveResult
    | RemoteRenameResult
    | RemoteSetUrlResult
    | RemoteUrlResult
    | ResetResult
    | ShowResult
    | StashApplyResult
    | StashClearResult
    | StashDropResult
    | StashListResult
    | StashPushResult
    | StatusResult
    | TagCreateResult
    | TagDeleteResult
    | TagListResult
)
