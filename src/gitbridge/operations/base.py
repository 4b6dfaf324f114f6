"""Shared executor machinery.

An executor owns one command family. It is stateless; everything that
varies per call travels in :class:`OperationContext`. Executors build their
argument vectors with pure ``build_*_argv`` functions (so the service can
validate a request before anything runs) and interpret git's output with the
parsers in :mod:`gitbridge.parsing`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar, Generic, TypeVar

from gitbridge.config import SigningConfig
from gitbridge.exceptions import GitError, GitTimeoutError, OperationCancelledError
from gitbridge.logging import get_logger
from gitbridge.parsing import OutputScan, scan_output

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping

    from gitbridge.models.options import CommandKind
    from gitbridge.runners.cancel import CancelToken
    from gitbridge.runners.command import GitRunner
    from gitbridge.runners.models import ExecutionResult

__all__ = [
    "CONFLICT_EXIT_CODES",
    "OperationContext",
    "OperationExecutor",
    "non_empty_lines",
    "resolve_sign",
]

logger = get_logger(__name__)

#: Exit codes a conflict-capable command may return while reporting conflicts.
CONFLICT_EXIT_CODES: tuple[int, ...] = (0, 1)

OptionsT = TypeVar("OptionsT")
ResultT = TypeVar("ResultT")


@dataclass(frozen=True, slots=True)
class OperationContext:
    """Per-call execution context handed to an executor.

    Attributes:
        runner: Process execution adapter.
        cwd: Directory git runs in.
        timeout: Timeout for every invocation of this call (None: runner default).
        cancel_token: Caller's cancel token, if any.
        signing: Signing defaults used when an option leaves ``sign`` unset.
    """

    runner: GitRunner
    cwd: Path
    timeout: float | None = None
    cancel_token: CancelToken | None = None
    signing: SigningConfig = field(default_factory=SigningConfig)


class OperationExecutor(ABC, Generic[OptionsT, ResultT]):
    """Base class for command-family executors.

    Subclasses set :attr:`command`, implement :meth:`build_argv` as a pure
    function of the options, and implement :meth:`execute`.
    """

    #: Command family this executor handles.
    command: ClassVar[CommandKind]

    #: Talks to a remote; the service applies the network timeout.
    network: ClassVar[bool] = False

    @abstractmethod
    def build_argv(self, options: OptionsT) -> tuple[str, ...]:
        """Primary argument vector for *options*.

        Raises:
            GitValidationError: A field required by the selected mode is missing.
        """

    @abstractmethod
    async def execute(
        self,
        ctx: OperationContext,
        options: OptionsT,
        argv: tuple[str, ...],
    ) -> ResultT:
        """Run the operation; *argv* is what :meth:`build_argv` returned."""

    # =====================================================================
    # Helpers
    # =====================================================================

    async def _run(
        self,
        ctx: OperationContext,
        args: tuple[str, ...],
        *,
        accept_returncodes: Collection[int] = (0,),
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        return await ctx.runner.run(
            args,
            cwd=ctx.cwd,
            timeout=ctx.timeout,
            env=env,
            cancel_token=ctx.cancel_token,
            accept_returncodes=accept_returncodes,
            operation=self.command.value,
        )

    async def _run_scanned(
        self,
        ctx: OperationContext,
        args: tuple[str, ...],
        *,
        accept_returncodes: Collection[int] = CONFLICT_EXIT_CODES,
        env: Mapping[str, str] | None = None,
    ) -> tuple[ExecutionResult, OutputScan]:
        """Run a command whose output must be scanned regardless of exit code.

        Conflicts win over the exit code: a non-zero exit that printed
        conflict lines is returned for the caller to report as a failed
        result. Any other non-zero exit is classified and raised.
        """
        result = await self._run(
            ctx, args, accept_returncodes=accept_returncodes, env=env
        )
        scan = scan_output(result.stdout, result.stderr)
        if result.exit_code != 0 and not scan.has_conflicts:
            raise ctx.runner.map_failure(
                result, operation=self.command.value, path=ctx.cwd
            )
        if scan.has_conflicts:
            logger.info(
                "git_conflicts_detected",
                operation=self.command.value,
                files=list(scan.conflicted_files),
                exit_code=result.exit_code,
            )
        return result, scan

    async def _run_signed(
        self,
        ctx: OperationContext,
        build: Callable[[bool | None], tuple[str, ...]],
        *,
        sign: bool | None,
        fallback: bool,
    ) -> tuple[ExecutionResult, bool]:
        """Run a signable command, retrying once unsigned if allowed.

        Args:
            build: Builds the argument vector; ``True`` adds signing flags,
                ``None`` omits every signing flag.
            sign: Resolved signing choice for the first attempt.
            fallback: Retry unsigned when the signed attempt fails.

        Returns:
            The result and whether it was signed.
        """
        try:
            return await self._run(ctx, build(sign)), bool(sign)
        except (OperationCancelledError, GitTimeoutError):
            raise
        except GitError as e:
            if not (sign and fallback):
                raise
            logger.warning(
                "git_signing_fallback",
                operation=self.command.value,
                kind=e.kind.value,
                error=e.message,
            )
        return await self._run(ctx, build(None)), False


def resolve_sign(requested: bool | None, default: bool) -> bool | None:
    """Explicit choice wins; an unset option with signing off adds no flag."""
    if requested is not None:
        return requested
    return True if default else None


def non_empty_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]
