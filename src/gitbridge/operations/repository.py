"""Repository creation: clone and init.

Both create a repository at a target path resolved against the request's
working directory, so their effects are tied to that path rather than to
the directory the request came from.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from gitbridge.builder import ArgvBuilder, require
from gitbridge.logging import get_logger
from gitbridge.models.options import CloneOptions, CommandKind, InitOptions
from gitbridge.models.results import CloneResult, InitResult
from gitbridge.operations.base import OperationContext, OperationExecutor

__all__ = [
    "CloneExecutor",
    "InitExecutor",
    "build_clone_argv",
    "build_init_argv",
    "resolve_target",
]

logger = get_logger(__name__)


def resolve_target(path: str, cwd: Path) -> Path:
    """Absolute target of a clone or init (relative paths are under *cwd*)."""
    target = Path(path).expanduser()
    if not target.is_absolute():
        target = cwd / target
    return target.resolve()


def build_clone_argv(options: CloneOptions, target: Path | None = None) -> tuple[str, ...]:
    """``clone [--branch b] [--depth=N] [--bare] [--mirror] [--recurse-submodules] url path``."""
    command = CommandKind.CLONE.value
    url = require(options.url, "url", command)
    path = require(options.path, "path", command)
    return (
        ArgvBuilder("clone")
        .pair("--branch", options.branch)
        .option("--depth", options.depth)
        .flag("--bare", options.bare)
        .flag("--mirror", options.mirror)
        .flag("--recurse-submodules", options.recurse_submodules)
        .positional(url, str(target) if target is not None else path)
        .build()
    )


class CloneExecutor(OperationExecutor[CloneOptions, CloneResult]):
    """``git clone``, run from the target's parent directory."""

    command = CommandKind.CLONE
    network = True

    def build_argv(self, options: CloneOptions) -> tuple[str, ...]:
        return build_clone_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: CloneOptions,
        argv: tuple[str, ...],
    ) -> CloneResult:
        target = resolve_target(options.path, ctx.cwd)
        await self._run(
            replace(ctx, cwd=target.parent), build_clone_argv(options, target)
        )
        logger.info("git_clone_completed", url=options.url, path=str(target))
        return CloneResult(
            remote_url=options.url,
            local_path=str(target),
            branch=options.branch,
            bare=options.bare or options.mirror,
        )


def build_init_argv(options: InitOptions, target: Path | None = None) -> tuple[str, ...]:
    """``init [--bare] --initial-branch=B path``."""
    return (
        ArgvBuilder("init")
        .flag("--bare", options.bare)
        .option(
            "--initial-branch",
            require(options.initial_branch, "initial_branch", CommandKind.INIT.value),
        )
        .positional(str(target) if target is not None else options.path)
        .build()
    )


class InitExecutor(OperationExecutor[InitOptions, InitResult]):
    command = CommandKind.INIT

    def build_argv(self, options: InitOptions) -> tuple[str, ...]:
        return build_init_argv(options)

    async def execute(
        self,
        ctx: OperationContext,
        options: InitOptions,
        argv: tuple[str, ...],
    ) -> InitResult:
        target = resolve_target(options.path, ctx.cwd)
        await self._run(ctx, build_init_argv(options, target))
        logger.info(
            "git_repository_initialized",
            path=str(target),
            initial_branch=options.initial_branch,
        )
        return InitResult(
            path=str(target),
            initial_branch=options.initial_branch,
            bare=options.bare,
        )
