"""Merge and rebase.

Both can stop on conflicts. git's exit code alone does not say so reliably,
so each run is scanned for ``CONFLICT`` lines and the result reports them
with ``success = False`` instead of raising.

Rebase is a multi-step flow whose state lives in the repository, not here:
every call issues one subcommand and infers the resulting
:class:`~gitbridge.models.results.OperationState` from git's response.
"""

from __future__ import annotations

import re

from gitbridge.builder import ArgvBuilder, require
from gitbridge.constants import DEFAULT_MERGE_STRATEGY
from gitbridge.exceptions import GitValidationError
from gitbridge.logging import get_logger
from gitbridge.models.options import CommandKind, MergeOptions, RebaseOptions
from gitbridge.models.results import MergeResult, OperationState, RebaseResult
from gitbridge.operations.base import OperationContext, OperationExecutor
from gitbridge.parsing import parse_stat_files, parse_stat_summary

__all__ = [
    "MergeExecutor",
    "RebaseExecutor",
    "build_merge_argv",
    "build_rebase_argv",
]

logger = get_logger(__name__)

# =============================================================================
# Merge
# =============================================================================


def build_merge_argv(options: MergeOptions) -> tuple[str, ...]:
    """``merge [--no-ff] [--squash] [--strategy=S] [-m msg] branch`` or ``merge --abort``."""
    if options.abort:
        return ("merge", "--abort")
    return (
        ArgvBuilder("merge")
        .flag("--no-ff", options.no_fast_forward)
        .flag("--squash", options.squash)
        .option("--strategy", options.strategy)
        .pair("-m", options.message)
        .positional(require(options.branch, "branch", CommandKind.MERGE.value))
        .build()
    )


class MergeExecutor(OperationExecutor[MergeOptions, MergeResult]):
    command = CommandKind.MERGE

    def build_argv(self, options: MergeOptions) -> tuple[str, ...]:
        return build_merge_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: MergeOptions,
        argv: tuple[str, ...],
    ) -> MergeResult:
        strategy = options.strategy or DEFAULT_MERGE_STRATEGY
        if options.abort:
            await self._run(ctx, argv)
            logger.info("git_merge_aborted", cwd=str(ctx.cwd))
            return MergeResult(strategy=strategy, aborted=True)

        result, scan = await self._run_scanned(ctx, argv)
        if scan.has_conflicts:
            return MergeResult(
                strategy=strategy,
                conflicts=True,
                conflicted_files=scan.conflicted_files,
                message=options.message or result.stdout.strip(),
                success=False,
            )

        summary = parse_stat_summary(result.stdout)
        fast_forward = "Fast-forward" in result.stdout
        logger.info(
            "git_merge_completed",
            branch=options.branch,
            fast_forward=fast_forward,
        )
        return MergeResult(
            strategy=strategy,
            fast_forward=fast_forward,
            merged_files=tuple(parse_stat_files(result.stdout)),
            insertions=summary.insertions,
            deletions=summary.deletions,
            message=options.message or result.stdout.strip(),
        )


# =============================================================================
# Rebase
# =============================================================================

_CONTINUE_ARGV: tuple[str, ...] = ("rebase", "--continue", "--no-edit")
_CONTINUE_COMPAT_ARGV: tuple[str, ...] = ("rebase", "--continue")

#: Accept the generated todo list unchanged so ``--interactive`` never waits
#: on an editor.
_SEQUENCE_EDITOR_ENV = {"GIT_SEQUENCE_EDITOR": "true"}

_APPLIED_RE = re.compile(r"(\d+)\s+commits?\s+applied", re.IGNORECASE)


def build_rebase_argv(options: RebaseOptions) -> tuple[str, ...]:
    """Argument vector for the selected rebase mode.

    ``abort``, ``continue`` and ``skip`` ignore every other option.
    """
    if options.mode == "abort":
        return ("rebase", "--abort")
    if options.mode == "skip":
        return ("rebase", "--skip")
    if options.mode == "continue":
        return _CONTINUE_ARGV
    return (
        ArgvBuilder("rebase")
        .flag("--interactive", options.interactive)
        .flag("--rebase-merges", options.preserve_merges)
        .pair("--onto", options.onto)
        .positional(
            require(options.upstream, "upstream", CommandKind.REBASE.value),
            options.branch,
        )
        .build()
    )


def _is_unknown_no_edit(error: GitValidationError) -> bool:
    stderr = error.raw_stderr.lower()
    return "unknown option" in stderr and "no-edit" in stderr


class RebaseExecutor(OperationExecutor[RebaseOptions, RebaseResult]):
    """``git rebase`` start/continue/abort/skip."""

    command = CommandKind.REBASE

    def build_argv(self, options: RebaseOptions) -> tuple[str, ...]:
        return build_rebase_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: RebaseOptions,
        argv: tuple[str, ...],
    ) -> RebaseResult:
        mode = options.mode
        if mode == "abort":
            await self._run(ctx, argv)
            logger.info("git_rebase_aborted", cwd=str(ctx.cwd))
            return RebaseResult(mode=mode, state=OperationState.ABORTED)

        env = _SEQUENCE_EDITOR_ENV if options.interactive and mode == "start" else None
        if mode == "continue":
            try:
                result, scan = await self._run_scanned(ctx, argv)
            except GitValidationError as e:
                if not _is_unknown_no_edit(e):
                    raise
                logger.warning("git_rebase_continue_compat_retry", cwd=str(ctx.cwd))
                result, scan = await self._run_scanned(ctx, _CONTINUE_COMPAT_ARGV)
        else:
            result, scan = await self._run_scanned(ctx, argv, env=env)

        if scan.has_conflicts:
            return RebaseResult(
                mode=mode,
                conflicts=True,
                conflicted_files=scan.conflicted_files,
                state=OperationState.CONFLICTED,
                success=False,
            )

        output = f"{result.stdout}\n{result.stderr}"
        if mode == "skip":
            finished = "Successfully rebased" in output
            return RebaseResult(
                mode=mode,
                state=OperationState.COMPLETED if finished else OperationState.IN_PROGRESS,
            )

        if mode == "continue":
            rebased = 1
        else:
            applied = _APPLIED_RE.search(output)
            rebased = int(applied.group(1)) if applied else 0
        logger.info("git_rebase_completed", mode=mode, rebased_commits=rebased)
        return RebaseResult(mode=mode, rebased_commits=rebased)
