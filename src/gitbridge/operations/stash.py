"""Stash operations."""

from __future__ import annotations

import re

from gitbridge.builder import ArgvBuilder
from gitbridge.constants import DEFAULT_STASH_REF
from gitbridge.logging import get_logger
from gitbridge.models.options import CommandKind, StashOptions
from gitbridge.models.results import (
    ParsedResult,
    StashApplyResult,
    StashClearResult,
    StashDropResult,
    StashEntry,
    StashListResult,
    StashPushResult,
)
from gitbridge.operations.base import OperationContext, OperationExecutor

__all__ = ["StashExecutor", "build_stash_argv", "parse_stash_list"]

logger = get_logger(__name__)

#: ``stash@{0}: WIP on main: abc1234 message``
_STASH_LINE_RE = re.compile(r"^(?P<ref>stash@\{(?P<index>\d+)\}):\s*(?P<description>.*)$")
_STASH_BRANCH_RE = re.compile(r"^(?:WIP on|On) (?P<branch>[^:]+):")

_NOTHING_TO_STASH = "No local changes to save"


def build_stash_argv(options: StashOptions) -> tuple[str, ...]:
    """Argument vector for the selected stash mode."""
    mode = options.mode
    if mode == "list":
        return ("stash", "list")
    if mode == "clear":
        return ("stash", "clear")
    if mode == "push":
        return (
            ArgvBuilder("stash", "push")
            .pair("-m", options.message)
            .flag("--include-untracked", options.include_untracked)
            .flag("--keep-index", options.keep_index)
            .build()
        )
    if mode == "drop":
        return (
            ArgvBuilder("stash", "drop")
            .positional(options.stash_ref or DEFAULT_STASH_REF)
            .build()
        )
    return ArgvBuilder("stash", mode).positional(options.stash_ref).build()


def parse_stash_list(stdout: str) -> tuple[StashEntry, ...]:
    entries: list[StashEntry] = []
    for line in stdout.splitlines():
        match = _STASH_LINE_RE.match(line.strip())
        if not match:
            continue
        description = match.group("description")
        branch = _STASH_BRANCH_RE.match(description)
        entries.append(
            StashEntry(
                ref=match.group("ref"),
                index=int(match.group("index")),
                description=description,
                branch=branch.group("branch") if branch else None,
            )
        )
    return tuple(entries)


class StashExecutor(OperationExecutor[StashOptions, ParsedResult]):
    """``git stash``; ``pop`` and ``apply`` report conflicts instead of raising."""

    command = CommandKind.STASH

    def build_argv(self, options: StashOptions) -> tuple[str, ...]:
        return build_stash_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: StashOptions,
        argv: tuple[str, ...],
    ) -> ParsedResult:
        mode = options.mode
        ref = options.stash_ref or DEFAULT_STASH_REF

        if mode in ("pop", "apply"):
            _, scan = await self._run_scanned(ctx, argv)
            if scan.has_conflicts:
                return StashApplyResult(
                    applied=ref,
                    popped=False,
                    conflicts=True,
                    conflicted_files=scan.conflicted_files,
                    success=False,
                )
            logger.info("git_stash_applied", ref=ref, popped=mode == "pop")
            return StashApplyResult(applied=ref, popped=mode == "pop")

        result = await self._run(ctx, argv)
        if mode == "list":
            return StashListResult(stashes=parse_stash_list(result.stdout))
        if mode == "push":
            if _NOTHING_TO_STASH in result.stdout:
                return StashPushResult(created=None, message=options.message)
            logger.info("git_stash_created", message=options.message)
            return StashPushResult(created=DEFAULT_STASH_REF, message=options.message)
        if mode == "drop":
            logger.info("git_stash_dropped", ref=ref)
            return StashDropResult(dropped=ref)

        logger.info("git_stash_cleared", cwd=str(ctx.cwd))
        return StashClearResult()
