"""Remote management and synchronisation (fetch, pull, push)."""

from __future__ import annotations

from gitbridge.builder import ArgvBuilder, require
from gitbridge.logging import get_logger
from gitbridge.models.options import (
    CommandKind,
    FetchOptions,
    PullOptions,
    PushOptions,
    RemoteOptions,
)
from gitbridge.models.results import (
    FetchResult,
    ParsedResult,
    PullResult,
    PushResult,
    RemoteAddResult,
    RemoteInfo,
    RemoteListResult,
    RemoteRemoveResult,
    RemoteRenameResult,
    RemoteSetUrlResult,
    RemoteUrlResult,
)
from gitbridge.operations.base import (
    CONFLICT_EXIT_CODES,
    OperationContext,
    OperationExecutor,
)
from gitbridge.parsing import (
    LineKind,
    parse_stat_files,
    parse_stat_summary,
    scan_output,
)

__all__ = [
    "FetchExecutor",
    "PullExecutor",
    "PushExecutor",
    "RemoteExecutor",
    "build_fetch_argv",
    "build_pull_argv",
    "build_push_argv",
    "build_remote_argv",
    "parse_remote_list",
]

logger = get_logger(__name__)

# =============================================================================
# Remote
# =============================================================================


def build_remote_argv(options: RemoteOptions) -> tuple[str, ...]:
    """Argument vector for the selected remote mode."""
    command = CommandKind.REMOTE.value
    mode = options.mode
    if mode == "list":
        return ("remote", "-v")
    name = require(options.name, "name", command)
    if mode == "add":
        return ArgvBuilder("remote", "add").positional(
            name, require(options.url, "url", command)
        ).build()
    if mode == "remove":
        return ArgvBuilder("remote", "remove").positional(name).build()
    if mode == "rename":
        return ArgvBuilder("remote", "rename").positional(
            name, require(options.new_name, "new_name", command)
        ).build()
    if mode == "get-url":
        return (
            ArgvBuilder("remote", "get-url")
            .flag("--push", options.push)
            .positional(name)
            .build()
        )
    return (
        ArgvBuilder("remote", "set-url")
        .flag("--push", options.push)
        .positional(name, require(options.url, "url", command))
        .build()
    )


def parse_remote_list(stdout: str) -> tuple[RemoteInfo, ...]:
    """Fold ``remote -v`` lines (``name<TAB>url (fetch|push)``) per remote."""
    urls: dict[str, dict[str, str]] = {}
    for line in stdout.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        name, url = parts[0], parts[1]
        entry = urls.setdefault(name, {"fetch": "", "push": ""})
        direction = parts[2].strip("()") if len(parts) > 2 else "fetch"
        if direction in entry:
            entry[direction] = url
    return tuple(
        RemoteInfo(name=name, fetch_url=entry["fetch"], push_url=entry["push"])
        for name, entry in urls.items()
    )


class RemoteExecutor(OperationExecutor[RemoteOptions, ParsedResult]):
    command = CommandKind.REMOTE

    def build_argv(self, options: RemoteOptions) -> tuple[str, ...]:
        return build_remote_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: RemoteOptions,
        argv: tuple[str, ...],
    ) -> ParsedResult:
        result = await self._run(ctx, argv)
        mode = options.mode
        if mode == "list":
            return RemoteListResult(remotes=parse_remote_list(result.stdout))

        command = self.command.value
        name = require(options.name, "name", command)
        if mode == "get-url":
            url = result.stdout.strip()
            return RemoteUrlResult(
                remote=RemoteInfo(
                    name=name,
                    fetch_url="" if options.push else url,
                    push_url=url if options.push else "",
                )
            )

        logger.info("git_remote_changed", mode=mode, remote=name)
        if mode == "add":
            url = require(options.url, "url", command)
            return RemoteAddResult(added=RemoteInfo(name=name, fetch_url=url, push_url=url))
        if mode == "remove":
            return RemoteRemoveResult(removed=name)
        if mode == "rename":
            return RemoteRenameResult(
                renamed_from=name,
                renamed_to=require(options.new_name, "new_name", command),
            )
        return RemoteSetUrlResult(
            name=name, url=require(options.url, "url", command), push=options.push
        )


# =============================================================================
# Fetch
# =============================================================================


def build_fetch_argv(options: FetchOptions) -> tuple[str, ...]:
    """``fetch [--prune] [--tags] [--depth=N] remote``."""
    return (
        ArgvBuilder("fetch")
        .flag("--prune", options.prune)
        .flag("--tags", options.tags)
        .option("--depth", options.depth)
        .positional(require(options.remote, "remote", CommandKind.FETCH.value))
        .build()
    )


class FetchExecutor(OperationExecutor[FetchOptions, FetchResult]):
    """``git fetch``; ref updates are read from the status lines on stderr."""

    command = CommandKind.FETCH
    network = True

    def build_argv(self, options: FetchOptions) -> tuple[str, ...]:
        return build_fetch_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: FetchOptions,
        argv: tuple[str, ...],
    ) -> FetchResult:
        result = await self._run(ctx, argv)
        scan = scan_output(result.stdout, result.stderr)
        fetched = tuple(ref.source for ref in scan.refs(LineKind.REF_NEW))
        updated = tuple(ref.source for ref in scan.refs(LineKind.REF_UPDATED))
        pruned = tuple(ref.destination for ref in scan.refs(LineKind.REF_PRUNED))
        logger.info(
            "git_fetch_completed",
            remote=options.remote,
            fetched=len(fetched),
            updated=len(updated),
            pruned=len(pruned),
        )
        return FetchResult(
            remote=options.remote,
            fetched_refs=fetched,
            updated_refs=updated,
            pruned_refs=pruned,
        )


# =============================================================================
# Pull
# =============================================================================


def _pull_strategy(options: PullOptions) -> str:
    if options.rebase:
        return "rebase"
    if options.fast_forward_only:
        return "ff-only"
    return "merge"


def build_pull_argv(options: PullOptions) -> tuple[str, ...]:
    """``pull [--rebase|--ff-only] remote [branch]``; ``--rebase`` wins."""
    return (
        ArgvBuilder("pull")
        .flag("--rebase", options.rebase)
        .flag("--ff-only", options.fast_forward_only and not options.rebase)
        .positional(
            require(options.remote, "remote", CommandKind.PULL.value), options.branch
        )
        .build()
    )


class PullExecutor(OperationExecutor[PullOptions, PullResult]):
    """``git pull``; conflicts from the merge or rebase step are reported."""

    command = CommandKind.PULL
    network = True

    def build_argv(self, options: PullOptions) -> tuple[str, ...]:
        return build_pull_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: PullOptions,
        argv: tuple[str, ...],
    ) -> PullResult:
        result, scan = await self._run_scanned(ctx, argv)
        strategy = _pull_strategy(options)
        branch = options.branch or ""
        if scan.has_conflicts:
            return PullResult(
                remote=options.remote,
                branch=branch,
                strategy=strategy,
                conflicts=True,
                conflicted_files=scan.conflicted_files,
                success=False,
            )

        summary = parse_stat_summary(result.stdout)
        files = tuple(parse_stat_files(result.stdout))
        logger.info(
            "git_pull_completed",
            remote=options.remote,
            branch=branch,
            files_changed=len(files),
        )
        return PullResult(
            remote=options.remote,
            branch=branch,
            strategy=strategy,
            files_changed=files,
            insertions=summary.insertions,
            deletions=summary.deletions,
        )


# =============================================================================
# Push
# =============================================================================


def build_push_argv(options: PushOptions) -> tuple[str, ...]:
    """``push [--force|--force-with-lease] [--set-upstream] [--tags] [--dry-run] remote branch``.

    ``--force`` wins over ``--force-with-lease``.
    """
    return (
        ArgvBuilder("push")
        .flag("--force", options.force)
        .flag("--force-with-lease", options.force_with_lease and not options.force)
        .flag("--set-upstream", options.set_upstream)
        .flag("--tags", options.tags)
        .flag("--dry-run", options.dry_run)
        .positional(
            require(options.remote, "remote", CommandKind.PUSH.value),
            options.branch or "HEAD",
        )
        .build()
    )


class PushExecutor(OperationExecutor[PushOptions, PushResult]):
    """``git push``; any rejected ref makes the result unsuccessful."""

    command = CommandKind.PUSH
    network = True

    def build_argv(self, options: PushOptions) -> tuple[str, ...]:
        return build_push_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: PushOptions,
        argv: tuple[str, ...],
    ) -> PushResult:
        result = await self._run(ctx, argv, accept_returncodes=CONFLICT_EXIT_CODES)
        scan = scan_output(result.stdout, result.stderr)
        rejected = tuple(ref.source for ref in scan.refs(LineKind.REF_REJECTED))
        if result.exit_code != 0 and not rejected:
            raise ctx.runner.map_failure(
                result, operation=self.command.value, path=ctx.cwd
            )

        pushed = tuple(
            ref.source
            for kind in (LineKind.REF_NEW, LineKind.REF_UPDATED)
            for ref in scan.refs(kind)
        )
        branch = options.branch or "HEAD"
        if rejected:
            logger.warning(
                "git_push_rejected", remote=options.remote, refs=list(rejected)
            )
        else:
            logger.info("git_push_completed", remote=options.remote, branch=branch)
        return PushResult(
            remote=options.remote,
            branch=branch,
            upstream_set=options.set_upstream and not rejected,
            pushed_refs=pushed,
            rejected_refs=rejected,
            dry_run=options.dry_run,
            success=not rejected,
        )
