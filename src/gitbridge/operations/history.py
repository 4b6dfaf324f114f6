"""Commit, log, reset and cherry-pick operations."""

from __future__ import annotations

import re

from gitbridge.builder import ArgvBuilder, require
from gitbridge.constants import (
    COMMIT_END_MARKER,
    COMMIT_START_MARKER,
    FIELD_DELIMITER,
    RECORD_DELIMITER,
)
from gitbridge.exceptions import GitValidationError
from gitbridge.logging import get_logger
from gitbridge.models.options import (
    CherryPickOptions,
    CommandKind,
    CommitOptions,
    LogOptions,
    ResetOptions,
)
from gitbridge.models.results import (
    CherryPickResult,
    CommitInfo,
    CommitResult,
    LogResult,
    OperationState,
    ResetResult,
)
from gitbridge.operations.base import (
    OperationContext,
    OperationExecutor,
    non_empty_lines,
    resolve_sign,
)
from gitbridge.parsing import parse_marker_blocks, split_auxiliary, split_fields

__all__ = [
    "COMMIT_DETAILS_FORMAT",
    "LOG_FIELDS",
    "LOG_FORMAT",
    "CherryPickExecutor",
    "CommitExecutor",
    "LogExecutor",
    "ResetExecutor",
    "build_cherry_pick_argv",
    "build_commit_argv",
    "build_log_argv",
    "build_reset_argv",
    "parse_commit_details",
    "parse_log",
]

logger = get_logger(__name__)

# =============================================================================
# Commit
# =============================================================================

#: ``show`` format for the author name and timestamp of a new commit.
COMMIT_DETAILS_FORMAT = f"%an{FIELD_DELIMITER}%at{RECORD_DELIMITER}"

_HEAD_ARGV: tuple[str, ...] = ("rev-parse", "HEAD")


def build_commit_argv(
    options: CommitOptions, *, sign: bool | None = None
) -> tuple[str, ...]:
    """``commit -m msg [--amend] [--allow-empty] [--no-verify] [signing] [--author]``.

    Args:
        options: Commit options.
        sign: ``True`` adds ``--gpg-sign``, ``False`` adds ``--no-gpg-sign``
            and None adds no signing flag.
    """
    return (
        ArgvBuilder("commit")
        .pair("-m", require(options.message, "message", CommandKind.COMMIT.value))
        .flag("--amend", options.amend)
        .flag("--allow-empty", options.allow_empty)
        .flag("--no-verify", options.no_verify)
        .flag("--gpg-sign", sign is True)
        .flag("--no-gpg-sign", sign is False)
        .option("--author", options.author.render() if options.author else None)
        .build()
    )


def parse_commit_details(stdout: str) -> tuple[str, int, tuple[str, ...]]:
    """Split ``show --format=COMMIT_DETAILS_FORMAT --name-only`` output.

    Returns:
        Author name, author timestamp and the files the commit touched.
    """
    header, _, rest = stdout.partition(RECORD_DELIMITER)
    fields = split_fields(header.strip(), ("author", "timestamp"))
    timestamp = fields["timestamp"].strip()
    return (
        fields["author"],
        int(timestamp) if timestamp.isdigit() else 0,
        tuple(non_empty_lines(rest)),
    )


class CommitExecutor(OperationExecutor[CommitOptions, CommitResult]):
    """``git commit`` with signing fallback.

    Three invocations on success: the commit itself, ``rev-parse HEAD`` for
    the new hash, and ``show`` for author, timestamp and changed files.
    """

    command = CommandKind.COMMIT

    def build_argv(self, options: CommitOptions) -> tuple[str, ...]:
        return build_commit_argv(options, sign=options.sign)

    async def execute(
        self,
        ctx: OperationContext,
        options: CommitOptions,
        argv: tuple[str, ...],
    ) -> CommitResult:
        sign = resolve_sign(options.sign, ctx.signing.sign_commits)
        _, signed = await self._run_signed(
            ctx,
            lambda s: build_commit_argv(options, sign=s),
            sign=sign,
            fallback=options.force_unsigned_on_failure,
        )

        head = await self._run(ctx, _HEAD_ARGV)
        commit_hash = head.stdout.strip()
        details = await self._run(
            ctx,
            (
                "show",
                f"--format={COMMIT_DETAILS_FORMAT}",
                "--name-only",
                commit_hash,
            ),
        )
        author, timestamp, files = parse_commit_details(details.stdout)

        logger.info(
            "git_commit_created",
            commit=commit_hash,
            signed=signed,
            files=len(files),
        )
        return CommitResult(
            commit_hash=commit_hash,
            message=options.message,
            author=author,
            timestamp=timestamp,
            files_changed=files,
            signed=signed,
        )


# =============================================================================
# Log
# =============================================================================

LOG_FIELDS: tuple[str, ...] = (
    "hash",
    "short_hash",
    "author",
    "email",
    "timestamp",
    "subject",
    "body",
    "parents",
)

#: Structured log fields wrapped in sentinel markers so ``--stat`` and
#: ``-p`` output can follow each record.
LOG_FORMAT = (
    COMMIT_START_MARKER
    + FIELD_DELIMITER.join(("%H", "%h", "%an", "%ae", "%at", "%s", "%b", "%P"))
    + COMMIT_END_MARKER
)


def build_log_argv(options: LogOptions) -> tuple[str, ...]:
    return (
        ArgvBuilder("log")
        .option("--format", LOG_FORMAT)
        .flag(f"-n{options.max_count}", bool(options.max_count))
        .option("--skip", options.skip or None)
        .option("--since", options.since)
        .option("--until", options.until)
        .option("--author", options.author)
        .option("--grep", options.grep)
        .flag("--stat", options.stat)
        .flag("-p", options.patch)
        .positional(options.branch)
        .paths([options.path] if options.path else None)
        .build()
    )


def parse_log(
    stdout: str, *, stat: bool = False, patch: bool = False
) -> tuple[CommitInfo, ...]:
    """Parse ``log --format=LOG_FORMAT`` output.

    With both *stat* and *patch*, each record's trailing text is split at
    its first ``diff --git`` line into the two sections.
    """
    sections = [name for name, wanted in (("stat", stat), ("patch", patch)) if wanted]
    commits: list[CommitInfo] = []
    for block in parse_marker_blocks(stdout, LOG_FIELDS):
        fields = block.fields
        extra = split_auxiliary(block.auxiliary, sections)
        timestamp = fields["timestamp"].strip()
        commits.append(
            CommitInfo(
                hash=fields["hash"].strip(),
                short_hash=fields["short_hash"],
                author=fields["author"],
                email=fields["email"],
                timestamp=int(timestamp) if timestamp.isdigit() else 0,
                subject=fields["subject"],
                body=fields["body"].strip() or None,
                parents=tuple(fields["parents"].split()),
                stat=extra.get("stat"),
                patch=extra.get("patch"),
            )
        )
    return tuple(commits)


class LogExecutor(OperationExecutor[LogOptions, LogResult]):
    command = CommandKind.LOG

    def build_argv(self, options: LogOptions) -> tuple[str, ...]:
        return build_log_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: LogOptions,
        argv: tuple[str, ...],
    ) -> LogResult:
        result = await self._run(ctx, argv)
        return LogResult(
            commits=parse_log(result.stdout, stat=options.stat, patch=options.patch)
        )


# =============================================================================
# Reset
# =============================================================================


def build_reset_argv(options: ResetOptions) -> tuple[str, ...]:
    """``reset --<mode> [commit] [-- paths]``; only mixed mode accepts paths."""
    if options.paths and options.mode != "mixed":
        raise GitValidationError(
            f"reset --{options.mode} cannot be limited to paths",
            field="paths",
            operation=CommandKind.RESET.value,
        )
    return (
        ArgvBuilder("reset")
        .flag(f"--{options.mode}")
        .positional(options.commit)
        .paths(options.paths)
        .build()
    )


def _reset_files(stdout: str) -> tuple[str, ...]:
    # "Unstaged changes after reset:\nM\tsrc/app.py"
    return tuple(
        line.split("\t", 1)[1].strip()
        for line in stdout.splitlines()
        if "\t" in line
    )


class ResetExecutor(OperationExecutor[ResetOptions, ResetResult]):
    command = CommandKind.RESET

    def build_argv(self, options: ResetOptions) -> tuple[str, ...]:
        return build_reset_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: ResetOptions,
        argv: tuple[str, ...],
    ) -> ResetResult:
        result = await self._run(ctx, argv)
        head = await self._run(ctx, _HEAD_ARGV)
        logger.info("git_reset_completed", mode=options.mode, commit=head.stdout.strip())
        return ResetResult(
            mode=options.mode,
            commit=head.stdout.strip(),
            files_reset=_reset_files(result.stdout),
        )


# =============================================================================
# Cherry-pick
# =============================================================================

_PICKED_RE = re.compile(r"^\[[^\]]*?\s([0-9a-f]{7,40})\]", re.MULTILINE)


def build_cherry_pick_argv(options: CherryPickOptions) -> tuple[str, ...]:
    """``cherry-pick --abort``, ``--continue`` or ``[--no-commit] commits...``."""
    if options.abort:
        return ("cherry-pick", "--abort")
    if options.continue_operation:
        return ("cherry-pick", "--continue")
    return (
        ArgvBuilder("cherry-pick")
        .flag("--no-commit", options.no_commit)
        .positional(
            *require(options.commits, "commits", CommandKind.CHERRY_PICK.value)
        )
        .build()
    )


class CherryPickExecutor(OperationExecutor[CherryPickOptions, CherryPickResult]):
    """Cherry-pick; conflicts are reported, not raised."""

    command = CommandKind.CHERRY_PICK

    def build_argv(self, options: CherryPickOptions) -> tuple[str, ...]:
        return build_cherry_pick_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: CherryPickOptions,
        argv: tuple[str, ...],
    ) -> CherryPickResult:
        if options.abort:
            await self._run(ctx, argv)
            logger.info("git_cherry_pick_aborted", cwd=str(ctx.cwd))
            return CherryPickResult(state=OperationState.ABORTED)

        result, scan = await self._run_scanned(ctx, argv)
        if scan.has_conflicts:
            return CherryPickResult(
                conflicts=True,
                conflicted_files=scan.conflicted_files,
                state=OperationState.CONFLICTED,
                success=False,
            )

        if options.continue_operation:
            picked = tuple(_PICKED_RE.findall(result.stdout))
        else:
            picked = options.commits
        logger.info("git_cherry_pick_completed", commits=list(picked))
        return CherryPickResult(picked_commits=picked)
