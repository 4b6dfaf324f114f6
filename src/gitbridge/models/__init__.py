"""Request, option and result models."""

from __future__ import annotations

from gitbridge.models.options import (
    AddOptions,
    AuthorOptions,
    BranchOptions,
    CheckoutOptions,
    CherryPickOptions,
    CleanOptions,
    CloneOptions,
    CommandKind,
    CommitOptions,
    DiffOptions,
    FetchOptions,
    InitOptions,
    LogOptions,
    MergeOptions,
    OperationOptions,
    PullOptions,
    PushOptions,
    RebaseOptions,
    ReflogOptions,
    RemoteOptions,
    ResetOptions,
    ShowOptions,
    StashOptions,
    StatusOptions,
    TagOptions,
    parse_options,
)
from gitbridge.models.requests import OperationRequest, RequestContext
from gitbridge.models.results import (
    AddResult,
    BranchCreateResult,
    BranchDeleteResult,
    BranchInfo,
    BranchListResult,
    BranchRenameResult,
    CheckoutResult,
    CherryPickResult,
    CleanResult,
    CloneResult,
    CommitInfo,
    CommitResult,
    DiffEntry,
    DiffResult,
    FetchResult,
    InitResult,
    LogResult,
    MergeResult,
    OperationState,
    ParsedResult,
    PullResult,
    PushResult,
    RebaseResult,
    ReflogEntry,
    ReflogResult,
    RemoteAddResult,
    RemoteInfo,
    RemoteListResult,
    RemoteRemoveResult,
    RemoteRenameResult,
    RemoteSetUrlResult,
    RemoteUrlResult,
    ResetResult,
    ShowResult,
    StashApplyResult,
    StashClearResult,
    StashDropResult,
    StashEntry,
    StashListResult,
    StashPushResult,
    StatusResult,
    TagCreateResult,
    TagDeleteResult,
    TagListResult,
)

__all__ = [
    # Options
    "CommandKind",
    "AddOptions",
    "AuthorOptions",
    "BranchOptions",
    "CheckoutOptions",
    "CherryPickOptions",
    "CleanOptions",
    "CloneOptions",
    "CommitOptions",
    "DiffOptions",
    "FetchOptions",
    "InitOptions",
    "LogOptions",
    "MergeOptions",
    "OperationOptions",
    "PullOptions",
    "PushOptions",
    "RebaseOptions",
    "ReflogOptions",
    "RemoteOptions",
    "ResetOptions",
    "ShowOptions",
    "StashOptions",
    "StatusOptions",
    "TagOptions",
    "parse_options",
    # Requests
    "OperationRequest",
    "RequestContext",
    # Results
    "AddResult",
    "BranchCreateResult",
    "BranchDeleteResult",
    "BranchInfo",
    "BranchListResult",
    "BranchRenameResult",
    "CheckoutResult",
    "CherryPickResult",
    "CleanResult",
    "CloneResult",
    "CommitInfo",
    "CommitResult",
    "DiffEntry",
    "DiffResult",
    "FetchResult",
    "InitResult",
    "LogResult",
    "MergeResult",
    "OperationState",
    "ParsedResult",
    "PullResult",
    "PushResult",
    "RebaseResult",
    "ReflogEntry",
    "ReflogResult",
    "RemoteAddResult",
    "RemoteInfo",
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
    "StashEntry",
    "StashListResult",
    "StashPushResult",
    "StatusResult",
    "TagCreateResult",
    "TagDeleteResult",
    "TagListResult",
]
