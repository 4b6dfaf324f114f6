"""Operation executors, one per command family, and their registry."""

from __future__ import annotations

from gitbridge.operations.base import OperationContext, OperationExecutor
from gitbridge.operations.branches import BranchExecutor, CheckoutExecutor
from gitbridge.operations.history import (
    CherryPickExecutor,
    CommitExecutor,
    LogExecutor,
    ResetExecutor,
)
from gitbridge.operations.inspection import DiffExecutor, ReflogExecutor, ShowExecutor
from gitbridge.operations.integration import MergeExecutor, RebaseExecutor
from gitbridge.operations.registry import (
    ACCESS_TABLE,
    EXECUTORS,
    Access,
    AccessKind,
    access_for,
    build_argv,
    executor_for,
)
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
    # Base
    "OperationContext",
    "OperationExecutor",
    # Registry
    "ACCESS_TABLE",
    "EXECUTORS",
    "Access",
    "AccessKind",
    "access_for",
    "build_argv",
    "executor_for",
    # Executors
    "AddExecutor",
    "BranchExecutor",
    "CheckoutExecutor",
    "CherryPickExecutor",
    "CleanExecutor",
    "CloneExecutor",
    "CommitExecutor",
    "DiffExecutor",
    "FetchExecutor",
    "InitExecutor",
    "LogExecutor",
    "MergeExecutor",
    "PullExecutor",
    "PushExecutor",
    "RebaseExecutor",
    "ReflogExecutor",
    "RemoteExecutor",
    "ResetExecutor",
    "ShowExecutor",
    "StashExecutor",
    "StatusExecutor",
    "TagExecutor",
]
