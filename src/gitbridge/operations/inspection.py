"""Read-only inspection: diff, show and reflog."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from gitbridge.builder import ArgvBuilder, require
from gitbridge.constants import FIELD_DELIMITER, RECORD_DELIMITER
from gitbridge.exceptions import GitValidationError
from gitbridge.logging import get_logger
from gitbridge.models.options import CommandKind, DiffOptions, ReflogOptions, ShowOptions
from gitbridge.models.results import (
    DiffEntry,
    DiffResult,
    ReflogEntry,
    ReflogResult,
    ShowResult,
)
from gitbridge.operations.base import OperationContext, OperationExecutor
from gitbridge.operations.history import LOG_FORMAT, parse_log
from gitbridge.parsing import parse_delimited_records

__all__ = [
    "REFLOG_FIELDS",
    "REFLOG_FORMAT",
    "DiffExecutor",
    "ReflogExecutor",
    "ShowExecutor",
    "build_diff_argv",
    "build_reflog_argv",
    "build_show_argv",
    "parse_name_status",
    "parse_reflog",
]

logger = get_logger(__name__)


def _relative_path(path: str, command: str) -> str:
    """Reject absolute paths and ``..`` segments in a repository path."""
    pure = PurePosixPath(path)
    if pure.is_absolute() or ".." in pure.parts:
        raise GitValidationError(
            f"Path must be relative to the repository root: {path}",
            field="path",
            operation=command,
        )
    return path


# =============================================================================
# Diff
# =============================================================================

_STATUS_NAMES = {
    "A": "added",
    "M": "modified",
    "D": "deleted",
    "R": "renamed",
    "C": "copied",
    "T": "type_changed",
    "U": "unmerged",
}


def build_diff_argv(options: DiffOptions) -> tuple[str, ...]:
    """``diff --no-ext-diff [--cached] [--name-status -z] [from to] [-- path]``."""
    command = CommandKind.DIFF.value
    builder = (
        ArgvBuilder("diff", "--no-ext-diff")
        .flag("--cached", options.mode == "staged")
        .flag("--name-status", options.name_status)
        .flag("-z", options.name_status)
    )
    if options.mode == "refs":
        builder.positional(
            require(options.from_ref, "from_ref", command),
            require(options.to_ref, "to_ref", command),
        )
    if options.path:
        builder.paths([_relative_path(options.path, command)])
    return builder.build()


def _untracked_argv(options: DiffOptions) -> tuple[str, ...]:
    return (
        ArgvBuilder("ls-files", "--others", "--exclude-standard", "-z")
        .paths([options.path] if options.path else None)
        .build()
    )


def parse_name_status(stdout: str) -> tuple[DiffEntry, ...]:
    """Parse ``diff --name-status -z`` output.

    Renames and copies carry a similarity score and two paths
    (``R087\\0old\\0new\\0``); every other status has one path.
    """
    tokens = [token for token in stdout.split("\0") if token != ""]
    entries: list[DiffEntry] = []
    i = 0
    while i < len(tokens):
        code = tokens[i].strip()
        letter = code[:1]
        status = _STATUS_NAMES.get(letter, code)
        score = code[1:]
        if letter in ("R", "C") and i + 2 < len(tokens):
            entries.append(
                DiffEntry(
                    path=tokens[i + 2],
                    status=status,
                    old_path=tokens[i + 1],
                    similarity=int(score) if score.isdigit() else None,
                )
            )
            i += 3
            continue
        if i + 1 >= len(tokens):
            break
        entries.append(DiffEntry(path=tokens[i + 1], status=status))
        i += 2
    return tuple(entries)


class DiffExecutor(OperationExecutor[DiffOptions, DiffResult]):
    """``git diff`` of the working tree, the index, or two refs."""

    command = CommandKind.DIFF

    def build_argv(self, options: DiffOptions) -> tuple[str, ...]:
        return build_diff_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: DiffOptions,
        argv: tuple[str, ...],
    ) -> DiffResult:
        result = await self._run(ctx, argv)

        untracked: tuple[str, ...] = ()
        if options.include_untracked and options.mode == "unstaged":
            listed = await self._run(ctx, _untracked_argv(options))
            untracked = tuple(p for p in listed.stdout.split("\0") if p)

        if options.name_status:
            return DiffResult(
                mode=options.mode,
                files=parse_name_status(result.stdout),
                untracked_files=untracked,
            )
        return DiffResult(mode=options.mode, patch=result.stdout, untracked_files=untracked)


# =============================================================================
# Show
# =============================================================================


def build_show_argv(options: ShowOptions) -> tuple[str, ...]:
    """``show ref:path`` for file content, else the commit with its patch."""
    command = CommandKind.SHOW.value
    ref = require(options.ref, "ref", command)
    if options.path:
        return (
            ArgvBuilder("show")
            .positional(f"{ref}:{_relative_path(options.path, command)}")
            .build()
        )
    return (
        ArgvBuilder("show", "--no-ext-diff")
        .option("--format", LOG_FORMAT)
        .flag("--stat", options.stat)
        .flag("-p")
        .positional(ref)
        .build()
    )


class ShowExecutor(OperationExecutor[ShowOptions, ShowResult]):
    command = CommandKind.SHOW

    def build_argv(self, options: ShowOptions) -> tuple[str, ...]:
        return build_show_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: ShowOptions,
        argv: tuple[str, ...],
    ) -> ShowResult:
        result = await self._run(ctx, argv)
        if options.path:
            return ShowResult(ref=options.ref, path=options.path, content=result.stdout)

        commits = parse_log(result.stdout, stat=options.stat, patch=True)
        if not commits:
            logger.warning("git_show_unparsed", ref=options.ref)
        return ShowResult(ref=options.ref, commit=commits[0] if commits else None)


# =============================================================================
# Reflog
# =============================================================================

REFLOG_FIELDS = ("hash", "selector", "timestamp", "message")

#: Message last so a stray delimiter in it folds into the message.
REFLOG_FORMAT = (
    FIELD_DELIMITER.join(("%H", "%gd", "%ct", "%gs")) + RECORD_DELIMITER
)

#: ``HEAD@{3}``
_SELECTOR_INDEX_RE = re.compile(r"@\{(\d+)\}$")


def build_reflog_argv(options: ReflogOptions) -> tuple[str, ...]:
    return (
        ArgvBuilder("reflog", "show")
        .option("--format", REFLOG_FORMAT)
        .flag(f"-n{options.max_count}", bool(options.max_count))
        .positional(require(options.ref, "ref", CommandKind.REFLOG.value))
        .build()
    )


def parse_reflog(stdout: str) -> tuple[ReflogEntry, ...]:
    entries: list[ReflogEntry] = []
    for record in parse_delimited_records(
        stdout, REFLOG_FIELDS, record_separator=RECORD_DELIMITER
    ):
        selector = record["selector"].strip()
        index = _SELECTOR_INDEX_RE.search(selector)
        timestamp = record["timestamp"].strip()
        entries.append(
            ReflogEntry(
                hash=record["hash"].strip(),
                selector=selector,
                index=int(index.group(1)) if index else 0,
                message=record["message"].strip(),
                timestamp=int(timestamp) if timestamp.isdigit() else 0,
            )
        )
    return tuple(entries)


class ReflogExecutor(OperationExecutor[ReflogOptions, ReflogResult]):
    command = CommandKind.REFLOG

    def build_argv(self, options: ReflogOptions) -> tuple[str, ...]:
        return build_reflog_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: ReflogOptions,
        argv: tuple[str, ...],
    ) -> ReflogResult:
        result = await self._run(ctx, argv)
        return ReflogResult(ref=options.ref, entries=parse_reflog(result.stdout))
