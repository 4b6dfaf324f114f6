"""Branch and checkout operations."""

from __future__ import annotations

from gitbridge.builder import ArgvBuilder, require
from gitbridge.constants import FIELD_DELIMITER
from gitbridge.logging import get_logger
from gitbridge.models.options import BranchOptions, CheckoutOptions, CommandKind
from gitbridge.models.results import (
    BranchCreateResult,
    BranchDeleteResult,
    BranchInfo,
    BranchListResult,
    BranchRenameResult,
    CheckoutResult,
    ParsedResult,
)
from gitbridge.operations.base import (
    OperationContext,
    OperationExecutor,
    non_empty_lines,
)
from gitbridge.parsing import parse_delimited_records, parse_tracking

__all__ = [
    "BRANCH_FIELDS",
    "BRANCH_FORMAT",
    "BranchExecutor",
    "CheckoutExecutor",
    "build_branch_argv",
    "build_checkout_argv",
    "parse_branch_list",
]

logger = get_logger(__name__)

BRANCH_FIELDS: tuple[str, ...] = ("ref", "hash", "upstream", "track", "head")

#: ``for-each-ref`` format emitting :data:`BRANCH_FIELDS`, ``\x1f``-separated.
BRANCH_FORMAT = FIELD_DELIMITER.join(
    (
        "%(refname)",
        "%(objectname)",
        "%(upstream:short)",
        "%(upstream:track)",
        "%(HEAD)",
    )
)

_REF_PREFIXES = ("refs/heads/", "refs/remotes/")

#: Informational lines ``git checkout`` prints that are not file changes.
_CHECKOUT_NOISE = ("Switched", "Already", "Your branch")


def _merge_filter(value: bool | str | None) -> str | None:
    if value is True:
        return "HEAD"
    if not value:
        return None
    return str(value)


def build_branch_argv(options: BranchOptions) -> tuple[str, ...]:
    """Argument vector for the selected branch mode."""
    command = CommandKind.BRANCH.value
    if options.mode == "list":
        return (
            ArgvBuilder("for-each-ref")
            .option("--format", BRANCH_FORMAT)
            .option("--merged", _merge_filter(options.merged))
            .option("--no-merged", _merge_filter(options.no_merged))
            .positional("refs/remotes" if options.remote else "refs/heads")
            .build()
        )
    if options.mode == "create":
        return (
            ArgvBuilder("branch")
            .flag("--force", options.force)
            .positional(require(options.name, "name", command), options.start_point)
            .build()
        )
    if options.mode == "delete":
        return (
            ArgvBuilder("branch")
            .flag("-D" if options.force else "-d")
            .positional(require(options.name, "name", command))
            .build()
        )
    return (
        ArgvBuilder("branch")
        .flag("-M" if options.force else "-m")
        .positional(
            require(options.name, "name", command),
            require(options.new_name, "new_name", command),
        )
        .build()
    )


def parse_branch_list(stdout: str) -> tuple[BranchInfo, ...]:
    """Parse ``for-each-ref`` output produced with :data:`BRANCH_FORMAT`.

    Symbolic ``<remote>/HEAD`` refs are skipped.
    """
    branches: list[BranchInfo] = []
    for record in parse_delimited_records(stdout, BRANCH_FIELDS):
        ref = record["ref"]
        name = next(
            (ref[len(p) :] for p in _REF_PREFIXES if ref.startswith(p)), ref
        )
        if ref.startswith("refs/remotes/") and name.endswith("/HEAD"):
            continue
        tracking = parse_tracking(record["track"], record["upstream"])
        branches.append(
            BranchInfo(
                name=name,
                commit_hash=record["hash"],
                current=record["head"].strip() == "*",
                upstream=tracking.upstream,
                ahead=tracking.ahead,
                behind=tracking.behind,
                gone=tracking.gone,
            )
        )
    return tuple(branches)


class BranchExecutor(OperationExecutor[BranchOptions, ParsedResult]):
    """``git branch`` list/create/delete/rename."""

    command = CommandKind.BRANCH

    def build_argv(self, options: BranchOptions) -> tuple[str, ...]:
        return build_branch_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: BranchOptions,
        argv: tuple[str, ...],
    ) -> ParsedResult:
        result = await self._run(ctx, argv)

        if options.mode == "list":
            return BranchListResult(branches=parse_branch_list(result.stdout))

        command = self.command.value
        name = require(options.name, "name", command)
        if options.mode == "create":
            logger.info("git_branch_created", branch=name, cwd=str(ctx.cwd))
            return BranchCreateResult(created=name)
        if options.mode == "delete":
            logger.info("git_branch_deleted", branch=name, cwd=str(ctx.cwd))
            return BranchDeleteResult(deleted=name)

        new_name = require(options.new_name, "new_name", command)
        logger.info("git_branch_renamed", renamed_from=name, renamed_to=new_name)
        return BranchRenameResult(renamed_from=name, renamed_to=new_name)


def build_checkout_argv(options: CheckoutOptions) -> tuple[str, ...]:
    """``checkout [-b] target [--track] [--force] [-- paths]``."""
    return (
        ArgvBuilder("checkout")
        .flag("-b", options.create_branch)
        .positional(require(options.target, "target", CommandKind.CHECKOUT.value))
        .flag("--track", options.track)
        .flag("--force", options.force)
        .paths(options.paths)
        .build()
    )


class CheckoutExecutor(OperationExecutor[CheckoutOptions, CheckoutResult]):
    command = CommandKind.CHECKOUT

    def build_argv(self, options: CheckoutOptions) -> tuple[str, ...]:
        return build_checkout_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: CheckoutOptions,
        argv: tuple[str, ...],
    ) -> CheckoutResult:
        result = await self._run(ctx, argv)
        modified = tuple(
            line
            for line in non_empty_lines(result.stdout)
            if not line.startswith(_CHECKOUT_NOISE)
        )
        logger.info(
            "git_checkout_completed",
            target=options.target,
            branch_created=options.create_branch,
        )
        return CheckoutResult(
            target=options.target,
            branch_created=options.create_branch,
            files_modified=modified,
        )
