"""Option models, one per command family.

Each model is a frozen pydantic model tagged by a ``command`` literal so the
whole set forms a discriminated union (:data:`OperationOptions`). Field
constraints that hold for every mode (non-negative counts, literal modes)
are enforced here; mode-dependent requirements (a branch name for
``create``, an upstream for rebase ``start``) are checked by the argument
builders so they surface as :class:`~gitbridge.exceptions.GitValidationError`
before any process is spawned.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from gitbridge.constants import DEFAULT_INITIAL_BRANCH, DEFAULT_REMOTE
from gitbridge.exceptions import GitValidationError

__all__ = [
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
    "OperationOptions",
    "parse_options",
]


class CommandKind(str, Enum):
    """Command families exposed by the service."""

    ADD = "add"
    BRANCH = "branch"
    CHECKOUT = "checkout"
    CHERRY_PICK = "cherry-pick"
    CLEAN = "clean"
    CLONE = "clone"
    COMMIT = "commit"
    DIFF = "diff"
    FETCH = "fetch"
    INIT = "init"
    LOG = "log"
    MERGE = "merge"
    PULL = "pull"
    PUSH = "push"
    REBASE = "rebase"
    REFLOG = "reflog"
    REMOTE = "remote"
    RESET = "reset"
    SHOW = "show"
    STASH = "stash"
    STATUS = "status"
    TAG = "tag"


class _Options(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def mode_name(self) -> str | None:
        """The ``mode`` of multi-mode commands, else None."""
        return getattr(self, "mode", None)


class AuthorOptions(BaseModel):
    """Commit author override, rendered as ``Name <email>``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    email: str = Field(min_length=1)

    def render(self) -> str:
        return f"{self.name} <{self.email}>"


# =============================================================================
# History
# =============================================================================


class CommitOptions(_Options):
    """Options for ``git commit``.

    Attributes:
        message: Commit message (required).
        amend: Replace the tip of the current branch.
        allow_empty: Permit a commit with no changes.
        no_verify: Skip pre-commit and commit-msg hooks.
        sign: Sign the commit; None uses the configured default.
        force_unsigned_on_failure: Retry once without signing if signing fails.
        author: Override the commit author.
    """

    command: Literal["commit"] = "commit"
    message: str = ""
    amend: bool = False
    allow_empty: bool = False
    no_verify: bool = False
    sign: bool | None = None
    force_unsigned_on_failure: bool = False
    author: AuthorOptions | None = None


class LogOptions(_Options):
    command: Literal["log"] = "log"
    max_count: int | None = Field(default=None, ge=1)
    skip: int | None = Field(default=None, ge=0)
    since: str | None = None
    until: str | None = None
    author: str | None = None
    grep: str | None = None
    branch: str | None = None
    path: str | None = None
    stat: bool = False
    patch: bool = False


class ResetOptions(_Options):
    command: Literal["reset"] = "reset"
    mode: Literal["soft", "mixed", "hard", "merge", "keep"] = "mixed"
    commit: str | None = None
    paths: tuple[str, ...] = ()


class CherryPickOptions(_Options):
    command: Literal["cherry-pick"] = "cherry-pick"
    commits: tuple[str, ...] = ()
    no_commit: bool = False
    continue_operation: bool = False
    abort: bool = False


# =============================================================================
# Inspection
# =============================================================================


class DiffOptions(_Options):
    """Options for ``git diff``.

    Attributes:
        mode: ``unstaged`` (working tree vs index), ``staged`` (index vs
            HEAD) or ``refs`` (``from_ref`` vs ``to_ref``).
        from_ref: Base ref, required for ``refs``.
        to_ref: Target ref for ``refs``.
        path: Restrict the diff to one path.
        name_status: Return per-file status entries instead of a patch.
        include_untracked: For ``unstaged``, also list untracked files.
    """

    command: Literal["diff"] = "diff"
    mode: Literal["unstaged", "staged", "refs"] = "unstaged"
    from_ref: str | None = None
    to_ref: str = "HEAD"
    path: str | None = None
    name_status: bool = False
    include_untracked: bool = False


class ShowOptions(_Options):
    """Options for ``git show``.

    With ``path`` the content of that file at ``ref`` is returned;
    otherwise the commit at ``ref`` and its patch.
    """

    command: Literal["show"] = "show"
    ref: str = "HEAD"
    path: str | None = None
    stat: bool = False


class ReflogOptions(_Options):
    command: Literal["reflog"] = "reflog"
    ref: str = "HEAD"
    max_count: int | None = Field(default=None, ge=1)


# =============================================================================
# Branches and tags
# =============================================================================


class BranchOptions(_Options):
    """Options for branch list/create/delete/rename.

    ``merged``/``no_merged`` accept ``True`` (meaning ``HEAD``) or a ref.
    """

    command: Literal["branch"] = "branch"
    mode: Literal["list", "create", "delete", "rename"] = "list"
    name: str | None = None
    new_name: str | None = None
    start_point: str | None = None
    force: bool = False
    remote: bool = False
    merged: bool | str | None = None
    no_merged: bool | str | None = None


class CheckoutOptions(_Options):
    command: Literal["checkout"] = "checkout"
    target: str = ""
    create_branch: bool = False
    force: bool = False
    track: bool = False
    paths: tuple[str, ...] = ()


class TagOptions(_Options):
    command: Literal["tag"] = "tag"
    mode: Literal["list", "create", "delete"] = "list"
    name: str | None = None
    message: str | None = None
    commit: str | None = None
    annotated: bool = False
    sign: bool | None = None
    force: bool = False
    force_unsigned_on_failure: bool = False


class MergeOptions(_Options):
    command: Literal["merge"] = "merge"
    branch: str | None = None
    no_fast_forward: bool = False
    squash: bool = False
    strategy: str | None = None
    message: str | None = None
    abort: bool = False


class RebaseOptions(_Options):
    command: Literal["rebase"] = "rebase"
    mode: Literal["start", "continue", "abort", "skip"] = "start"
    upstream: str | None = None
    branch: str | None = None
    onto: str | None = None
    interactive: bool = False
    preserve_merges: bool = False


# =============================================================================
# Remotes and synchronisation
# =============================================================================


class RemoteOptions(_Options):
    command: Literal["remote"] = "remote"
    mode: Literal["list", "add", "remove", "rename", "get-url", "set-url"] = "list"
    name: str | None = None
    url: str | None = None
    new_name: str | None = None
    push: bool = False


class FetchOptions(_Options):
    command: Literal["fetch"] = "fetch"
    remote: str = DEFAULT_REMOTE
    prune: bool = False
    tags: bool = False
    depth: int | None = Field(default=None, ge=1)


class PullOptions(_Options):
    command: Literal["pull"] = "pull"
    remote: str = DEFAULT_REMOTE
    branch: str | None = None
    rebase: bool = False
    fast_forward_only: bool = False


class PushOptions(_Options):
    """Options for ``git push``; ``force`` wins over ``force_with_lease``."""

    command: Literal["push"] = "push"
    remote: str = DEFAULT_REMOTE
    branch: str | None = None
    force: bool = False
    force_with_lease: bool = False
    set_upstream: bool = False
    tags: bool = False
    dry_run: bool = False


# =============================================================================
# Working tree
# =============================================================================


class StashOptions(_Options):
    command: Literal["stash"] = "stash"
    mode: Literal["list", "push", "pop", "apply", "drop", "clear"] = "list"
    message: str | None = None
    stash_ref: str | None = None
    include_untracked: bool = False
    keep_index: bool = False


class CleanOptions(_Options):
    command: Literal["clean"] = "clean"
    force: bool = False
    dry_run: bool = False
    directories: bool = False
    ignored: bool = False


class StatusOptions(_Options):
    command: Literal["status"] = "status"
    include_untracked: bool = True
    ignore_submodules: bool = False


class AddOptions(_Options):
    command: Literal["add"] = "add"
    paths: tuple[str, ...] = ()
    all: bool = False
    update: bool = False
    force: bool = False


# =============================================================================
# Repository creation
# =============================================================================


class CloneOptions(_Options):
    command: Literal["clone"] = "clone"
    url: str = ""
    path: str = ""
    branch: str | None = None
    depth: int | None = Field(default=None, ge=1)
    bare: bool = False
    mirror: bool = False
    recurse_submodules: bool = False


class InitOptions(_Options):
    command: Literal["init"] = "init"
    path: str = "."
    bare: bool = False
    initial_branch: str = DEFAULT_INITIAL_BRANCH


OperationOptions = Annotated[
    AddOptions
    | BranchOptions
    | CheckoutOptions
    | CherryPickOptions
    | CleanOptions
    | CloneOptions
    | CommitOptions
    | DiffOptions
    | FetchOptions
    | InitOptions
    | LogOptions
    | MergeOptions
    | PullOptions
    | PushOptions
    | RebaseOptions
    | ReflogOptions
    | RemoteOptions
    | ResetOptions
    | ShowOptions
    | StashOptions
    | StatusOptions
    | TagOptions,
    Field(discriminator="command"),
]

_OPTIONS_ADAPTER: TypeAdapter[Any] = TypeAdapter(OperationOptions)


def parse_options(command: CommandKind | str, data: dict[str, Any] | None) -> Any:
    """Validate *data* as the option model for *command*.

    Raises:
        GitValidationError: If the command is unknown or a field is invalid.
    """
    try:
        kind = CommandKind(command)
    except ValueError as e:
        raise GitValidationError(
            f"Unknown command: {command}", field="command"
        ) from e

    payload = {**(data or {}), "command": kind.value}
    try:
        return _OPTIONS_ADAPTER.validate_python(payload)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"][1:]) or None
        raise GitValidationError(
            f"Invalid {kind.value} options: {first_error['msg']}",
            field=field,
            operation=kind.value,
        ) from e
