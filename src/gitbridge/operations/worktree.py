"""Working-tree operations: status, add and clean."""

from __future__ import annotations

from gitbridge.builder import ArgvBuilder
from gitbridge.exceptions import GitValidationError
from gitbridge.logging import get_logger
from gitbridge.models.options import AddOptions, CleanOptions, CommandKind, StatusOptions
from gitbridge.models.results import AddResult, CleanResult, StatusResult
from gitbridge.operations.base import OperationContext, OperationExecutor
from gitbridge.parsing import parse_porcelain_v2

__all__ = [
    "AddExecutor",
    "CleanExecutor",
    "StatusExecutor",
    "build_add_argv",
    "build_clean_argv",
    "build_status_argv",
    "parse_clean_output",
]

logger = get_logger(__name__)

# =============================================================================
# Status
# =============================================================================


def build_status_argv(options: StatusOptions) -> tuple[str, ...]:
    return (
        ArgvBuilder("status", "--porcelain=v2", "-b")
        .flag("--untracked-files=no", not options.include_untracked)
        .flag("--ignore-submodules", options.ignore_submodules)
        .build()
    )


class StatusExecutor(OperationExecutor[StatusOptions, StatusResult]):
    command = CommandKind.STATUS

    def build_argv(self, options: StatusOptions) -> tuple[str, ...]:
        return build_status_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: StatusOptions,
        argv: tuple[str, ...],
    ) -> StatusResult:
        result = await self._run(ctx, argv)
        status = parse_porcelain_v2(result.stdout)
        return StatusResult(
            current_branch=status.current_branch,
            is_clean=status.is_clean,
            staged=status.staged,
            unstaged=status.unstaged,
            untracked_files=status.untracked_files,
            conflicted_files=status.conflicted_files,
            upstream=status.upstream,
            ahead=status.ahead,
            behind=status.behind,
        )


# =============================================================================
# Add
# =============================================================================


def _add_targets(options: AddOptions) -> tuple[str, ...]:
    if options.all or options.update:
        return ()
    return options.paths or (".",)


def build_add_argv(options: AddOptions) -> tuple[str, ...]:
    """``add [--all | --update] [--force] [-- paths]``.

    ``--all`` wins over ``--update``, which wins over explicit paths; with
    none of them the whole tree (``.``) is staged.
    """
    return (
        ArgvBuilder("add")
        .flag("--all", options.all)
        .flag("--update", options.update and not options.all)
        .flag("--force", options.force)
        .paths(_add_targets(options))
        .build()
    )


class AddExecutor(OperationExecutor[AddOptions, AddResult]):
    command = CommandKind.ADD

    def build_argv(self, options: AddOptions) -> tuple[str, ...]:
        return build_add_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: AddOptions,
        argv: tuple[str, ...],
    ) -> AddResult:
        await self._run(ctx, argv)
        staged = _add_targets(options) or (".",)
        logger.info("git_files_staged", paths=list(staged), all=options.all)
        return AddResult(staged_files=staged, all=options.all)


# =============================================================================
# Clean
# =============================================================================

_REMOVAL_PREFIXES = ("Would remove ", "Removing ")


def build_clean_argv(options: CleanOptions) -> tuple[str, ...]:
    """``clean [-n|-f] [-d] [-x]``; ``-n`` wins and one of the two is required.

    Raises:
        GitValidationError: Neither ``force`` nor ``dry_run`` was requested.
    """
    if not (options.force or options.dry_run):
        raise GitValidationError(
            "clean requires either force or dry_run",
            field="force",
            operation=CommandKind.CLEAN.value,
        )
    return (
        ArgvBuilder("clean")
        .flag("-n", options.dry_run)
        .flag("-f", options.force and not options.dry_run)
        .flag("-d", options.directories)
        .flag("-x", options.ignored)
        .build()
    )


def parse_clean_output(stdout: str) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split ``Removing``/``Would remove`` lines into files and directories.

    Both prefixes are read the same way; directories keep their trailing
    ``/``.
    """
    files: list[str] = []
    directories: list[str] = []
    for line in stdout.splitlines():
        for prefix in _REMOVAL_PREFIXES:
            if line.startswith(prefix):
                path = line[len(prefix) :].strip()
                (directories if path.endswith("/") else files).append(path)
                break
    return tuple(files), tuple(directories)


class CleanExecutor(OperationExecutor[CleanOptions, CleanResult]):
    """``git clean``; ``dry_run`` in the result mirrors the request."""

    command = CommandKind.CLEAN

    def build_argv(self, options: CleanOptions) -> tuple[str, ...]:
        return build_clean_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: CleanOptions,
        argv: tuple[str, ...],
    ) -> CleanResult:
        result = await self._run(ctx, argv)
        files, directories = parse_clean_output(result.stdout)
        logger.info(
            "git_clean_completed",
            dry_run=options.dry_run,
            files=len(files),
            directories=len(directories),
        )
        return CleanResult(
            files_removed=files,
            directories_removed=directories,
            dry_run=options.dry_run,
        )
