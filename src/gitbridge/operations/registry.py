"""Operation registry.

Maps each command family to its executor and each ``(command, mode)`` pair
to its :class:`Access`: whether it reads or writes, which state tag a
cacheable read is stored under, and which tags a write invalidates.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from gitbridge.cache import ALL_TAGS, StateTag
from gitbridge.models.options import CommandKind
from gitbridge.operations.base import OperationExecutor
from gitbridge.operations.branches import BranchExecutor, CheckoutExecutor
from gitbridge.operations.history import (
    CherryPickExecutor,
    CommitExecutor,
    LogExecutor,
    ResetExecutor,
)
from gitbridge.operations.inspection import DiffExecutor, ReflogExecutor, ShowExecutor
from gitbridge.operations.integration import MergeExecutor, RebaseExecutor
from gitbridge.operations.remotes import (
    FetchExecutor,
    PullExecutor,
    PushExecutor,
    RemoteExecutor,
)
from gitbridge.operations.repository import CloneExecutor, InitExecutor
from gitbridge.operations.stash import StashExecutor
from gitbridge.operations.tags import TagExecutor
from gitbridge.operations.worktree import AddExecutor, CleanExecutor, StatusExecutor

__all__ = [
    "ACCESS_TABLE",
    "Access",
    "AccessKind",
    "EXECUTORS",
    "access_for",
    "build_argv",
    "executor_for",
]


class AccessKind(str, Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True, slots=True)
class Access:
    """How one command/mode touches repository state.

    Attributes:
        kind: Read or write.
        read_tag: Tag a cacheable read is stored under; None for reads that
            are never cached and for writes.
        write_tags: Tags a write invalidates on completion.
        creates_repository: The write targets a new repository path
            (clone, init) instead of the request's working directory.
    """

    kind: AccessKind
    read_tag: StateTag | None = None
    write_tags: frozenset[StateTag] = frozenset()
    creates_repository: bool = False

    @property
    def cacheable(self) -> bool:
        return self.kind is AccessKind.READ and self.read_tag is not None


def _read(tag: StateTag | None = None) -> Access:
    return Access(kind=AccessKind.READ, read_tag=tag)


def _write(*tags: StateTag) -> Access:
    return Access(kind=AccessKind.WRITE, write_tags=frozenset(tags))


_HISTORY_WRITE = _write(
    StateTag.COMMIT, StateTag.BRANCH, StateTag.STATUS, StateTag.WORKING_TREE
)

#: Keyed by ``(command, mode)``; mode is None for single-mode commands.
ACCESS_TABLE: dict[tuple[CommandKind, str | None], Access] = {
    (CommandKind.BRANCH, "list"): _read(StateTag.BRANCH),
    (CommandKind.BRANCH, "create"): _write(StateTag.BRANCH, StateTag.STATUS),
    (CommandKind.BRANCH, "delete"): _write(StateTag.BRANCH, StateTag.STATUS),
    (CommandKind.BRANCH, "rename"): _write(StateTag.BRANCH, StateTag.STATUS),
    (CommandKind.TAG, "list"): _read(StateTag.TAG),
    (CommandKind.TAG, "create"): _write(StateTag.TAG),
    (CommandKind.TAG, "delete"): _write(StateTag.TAG),
    (CommandKind.REMOTE, "list"): _read(StateTag.REMOTE),
    (CommandKind.REMOTE, "get-url"): _read(),
    (CommandKind.REMOTE, "add"): _write(StateTag.REMOTE, StateTag.BRANCH),
    (CommandKind.REMOTE, "remove"): _write(StateTag.REMOTE, StateTag.BRANCH),
    (CommandKind.REMOTE, "rename"): _write(StateTag.REMOTE, StateTag.BRANCH),
    (CommandKind.REMOTE, "set-url"): _write(StateTag.REMOTE, StateTag.BRANCH),
    (CommandKind.STASH, "list"): _read(StateTag.STASH),
    (CommandKind.STASH, "push"): _write(
        StateTag.STASH, StateTag.STATUS, StateTag.WORKING_TREE
    ),
    (CommandKind.STASH, "pop"): _write(
        StateTag.STASH, StateTag.STATUS, StateTag.WORKING_TREE
    ),
    (CommandKind.STASH, "apply"): _write(
        StateTag.STASH, StateTag.STATUS, StateTag.WORKING_TREE
    ),
    (CommandKind.STASH, "drop"): _write(StateTag.STASH),
    (CommandKind.STASH, "clear"): _write(StateTag.STASH),
    (CommandKind.LOG, None): _read(StateTag.COMMIT),
    (CommandKind.SHOW, None): _read(StateTag.COMMIT),
    (CommandKind.REFLOG, None): _read(StateTag.COMMIT),
    (CommandKind.DIFF, "unstaged"): _read(),
    (CommandKind.DIFF, "staged"): _read(StateTag.WORKING_TREE),
    (CommandKind.DIFF, "refs"): _read(StateTag.COMMIT),
    (CommandKind.STATUS, None): _read(),
    (CommandKind.COMMIT, None): _write(
        StateTag.COMMIT, StateTag.STATUS, StateTag.BRANCH, StateTag.WORKING_TREE
    ),
    (CommandKind.ADD, None): _write(StateTag.STATUS, StateTag.WORKING_TREE),
    # Both move remote-tracking refs
    (CommandKind.PUSH, None): _write(StateTag.REMOTE, StateTag.BRANCH, StateTag.COMMIT),
    (CommandKind.FETCH, None): _write(
        StateTag.REMOTE, StateTag.BRANCH, StateTag.TAG, StateTag.STATUS, StateTag.COMMIT
    ),
    (CommandKind.PULL, None): _write(
        StateTag.COMMIT,
        StateTag.BRANCH,
        StateTag.STATUS,
        StateTag.WORKING_TREE,
        StateTag.REMOTE,
        StateTag.TAG,
    ),
    (CommandKind.MERGE, None): _HISTORY_WRITE,
    (CommandKind.REBASE, None): _HISTORY_WRITE,
    (CommandKind.CHERRY_PICK, None): _HISTORY_WRITE,
    (CommandKind.RESET, None): _HISTORY_WRITE,
    (CommandKind.CHECKOUT, None): _HISTORY_WRITE,
    (CommandKind.CLEAN, None): _write(StateTag.STATUS, StateTag.WORKING_TREE),
    (CommandKind.CLONE, None): Access(
        kind=AccessKind.WRITE, write_tags=ALL_TAGS, creates_repository=True
    ),
    (CommandKind.INIT, None): Access(
        kind=AccessKind.WRITE, write_tags=ALL_TAGS, creates_repository=True
    ),
}

#: Commands whose mode does not change how they touch state.
_MODELESS: frozenset[CommandKind] = frozenset(
    {CommandKind.REBASE, CommandKind.RESET}
)

EXECUTORS: dict[CommandKind, OperationExecutor[Any, Any]] = {
    executor.command: executor
    for executor in (
        AddExecutor(),
        BranchExecutor(),
        CheckoutExecutor(),
        CherryPickExecutor(),
        CleanExecutor(),
        CloneExecutor(),
        CommitExecutor(),
        DiffExecutor(),
        FetchExecutor(),
        InitExecutor(),
        LogExecutor(),
        MergeExecutor(),
        PullExecutor(),
        PushExecutor(),
        RebaseExecutor(),
        ReflogExecutor(),
        RemoteExecutor(),
        ResetExecutor(),
        ShowExecutor(),
        StashExecutor(),
        StatusExecutor(),
        TagExecutor(),
    )
}


def executor_for(command: CommandKind | str) -> OperationExecutor[Any, Any]:
    return EXECUTORS[CommandKind(command)]


def access_for(options: Any) -> Access:
    """Access classification for an options model."""
    command = CommandKind(options.command)
    mode = None if command in _MODELESS else options.mode_name
    return ACCESS_TABLE[(command, mode)]


def build_argv(options: Any) -> tuple[str, ...]:
    """Build the argument vector for any options model.

    Pure: the same options always produce the same vector, and nothing is
    executed.

    Raises:
        GitValidationError: A field required by the selected mode is missing.
    """
    return executor_for(options.command).build_argv(options)
