"""Git process execution adapter.

:class:`GitRunner` is the only component that starts processes. It:

- forces non-interactive behaviour through the environment
- enforces the per-call timeout, the cancel token and the output cap
- turns non-zero exits into classified :class:`~gitbridge.exceptions.GitError`
  instances through :class:`~gitbridge.errors.ErrorMapper`
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from gitbridge.builder import render_command, validate_args
from gitbridge.constants import (
    DEFAULT_TIMEOUT,
    GIT_BINARY,
    LOCALE_ENV,
    MAX_OUTPUT_BYTES,
    NON_INTERACTIVE_ENV,
)
from gitbridge.errors import ErrorMapper
from gitbridge.exceptions import (
    GitNotFoundError,
    GitTimeoutError,
    OperationCancelledError,
    OutputLimitExceededError,
    WorkingDirectoryError,
)
from gitbridge.logging import get_logger
from gitbridge.runners.models import ExecutionResult
from gitbridge.runners.strategies import (
    SpawnStrategy,
    SpawnStrategyName,
    get_spawn_strategy,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping, Sequence

    from gitbridge.config import ExecutionConfig
    from gitbridge.exceptions import GitError
    from gitbridge.runners.cancel import CancelToken

__all__ = ["GitRunner", "build_git_env"]

logger = get_logger(__name__)

#: Batch-mode ssh so host-key and passphrase prompts fail instead of blocking.
_SSH_COMMAND = "ssh -o BatchMode=yes"


def build_git_env(
    *extra: Mapping[str, str] | None,
    base: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the environment for a git process.

    Layers, lowest to highest priority: *base* (``os.environ`` by default),
    the UTF-8 locale, each mapping in *extra*, and finally the prompt
    suppression variables, which no caller can override.

    Returns:
        A new dictionary; ``os.environ`` is never modified.
    """
    env = dict(os.environ if base is None else base)
    env.update(LOCALE_ENV)
    for layer in extra:
        if layer:
            env.update(layer)
    env.setdefault("GIT_SSH_COMMAND", _SSH_COMMAND)
    env.update(NON_INTERACTIVE_ENV)
    return env


class GitRunner:
    """Execute git safely with timeout, cancellation and output limits.

    Attributes:
        git_binary: Executable used for every invocation.
        timeout: Default timeout in seconds (None for no timeout).
        max_output_bytes: Cap on combined stdout + stderr per invocation.
        strategy: The process spawning strategy in use.

    Example:
        ```python
        runner = GitRunner(timeout=30.0)
        result = await runner.run(["status", "--porcelain=v2"], cwd=repo)
        ```
    """

    def __init__(
        self,
        *,
        git_binary: str = GIT_BINARY,
        timeout: float | None = DEFAULT_TIMEOUT,
        max_output_bytes: int = MAX_OUTPUT_BYTES,
        env: dict[str, str] | None = None,
        strategy: SpawnStrategy | SpawnStrategyName = "auto",
        error_mapper: ErrorMapper | None = None,
    ) -> None:
        self._git_binary = git_binary
        self._timeout = timeout
        self._max_output_bytes = max_output_bytes
        self._extra_env = env or {}
        self._strategy = (
            get_spawn_strategy(strategy) if isinstance(strategy, str) else strategy
        )
        self._mapper = error_mapper or ErrorMapper()

    @classmethod
    def from_config(cls, config: ExecutionConfig) -> GitRunner:
        """Create a runner from the ``execution`` config section."""
        return cls(
            git_binary=config.git_binary,
            timeout=config.timeout_seconds,
            max_output_bytes=config.max_output_bytes,
            env=dict(config.extra_env),
            strategy=config.spawn_strategy,
        )

    @property
    def git_binary(self) -> str:
        return self._git_binary

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def max_output_bytes(self) -> int:
        return self._max_output_bytes

    @property
    def strategy(self) -> SpawnStrategy:
        return self._strategy

    def build_env(self, extra_env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Environment for one invocation (see :func:`build_git_env`)."""
        return build_git_env(self._extra_env, extra_env)

    async def run(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        timeout: float | None = None,
        env: Mapping[str, str] | None = None,
        cancel_token: CancelToken | None = None,
        accept_returncodes: Collection[int] = (0,),
        operation: str | None = None,
    ) -> ExecutionResult:
        """Run ``git <args>`` and return its raw result.

        Args:
            args: Arguments after the git executable, as discrete elements.
            cwd: Working directory for the process.
            timeout: Override the default timeout. 0 or negative disables it.
            env: Extra environment variables for this invocation.
            cancel_token: Checked before spawning and watched while running.
            accept_returncodes: Exit codes that are returned instead of raised.
            operation: Command family name used in logs and errors.

        Returns:
            :class:`ExecutionResult` for an accepted exit code.

        Raises:
            OperationCancelledError: The token fired before or during the run.
            GitTimeoutError: The timeout expired.
            OutputLimitExceededError: Output exceeded ``max_output_bytes``.
            WorkingDirectoryError: *cwd* does not exist.
            GitNotFoundError: The git executable could not be started.
            GitError: Any other non-accepted exit code, classified.
        """
        operation = operation or (args[0] if args else None)
        if cancel_token is not None and cancel_token.cancelled:
            raise OperationCancelledError(
                f"git {operation} cancelled before start",
                operation=operation,
                path=cwd,
            )

        validate_args(args)
        if not cwd.is_dir():
            raise WorkingDirectoryError(
                f"Working directory does not exist: {cwd}",
                field="working_directory",
                operation=operation,
                path=cwd,
            )

        effective_timeout = timeout if timeout is not None else self._timeout
        if effective_timeout is not None and effective_timeout <= 0:
            effective_timeout = None

        command = [self._git_binary, *args]
        logger.debug(
            "git_command_started",
            command=render_command(self._git_binary, args),
            cwd=str(cwd),
            strategy=self._strategy.name,
        )

        try:
            outcome = await self._strategy.spawn(
                command,
                cwd=cwd,
                env=self.build_env(env),
                timeout=effective_timeout,
                cancel_token=cancel_token,
                max_output_bytes=self._max_output_bytes,
            )
        except FileNotFoundError as e:
            raise GitNotFoundError(
                f"Git executable not found: {self._git_binary}",
                operation=operation,
                path=cwd,
            ) from e
        except PermissionError as e:
            raise GitNotFoundError(
                f"Git executable is not runnable: {self._git_binary}",
                operation=operation,
                path=cwd,
            ) from e

        result = outcome.to_result()

        if outcome.cancelled:
            logger.warning("git_command_cancelled", operation=operation, cwd=str(cwd))
            raise OperationCancelledError(
                f"git {operation} cancelled",
                raw_stderr=result.stderr,
                operation=operation,
                path=cwd,
            )
        if outcome.timed_out:
            logger.warning(
                "git_command_timed_out",
                operation=operation,
                timeout_seconds=effective_timeout,
            )
            raise GitTimeoutError(
                f"git {operation} timed out after {effective_timeout}s",
                timeout_seconds=effective_timeout,
                raw_stderr=result.stderr,
                operation=operation,
                path=cwd,
            )
        if outcome.overflowed:
            logger.warning(
                "git_output_limit_exceeded",
                operation=operation,
                limit_bytes=self._max_output_bytes,
            )
            raise OutputLimitExceededError(
                f"git {operation} produced more than "
                f"{self._max_output_bytes} bytes of output",
                limit_bytes=self._max_output_bytes,
                operation=operation,
                path=cwd,
            )

        logger.debug(
            "git_command_completed",
            operation=operation,
            exit_code=result.exit_code,
            duration_ms=result.duration_ms,
        )

        if result.exit_code not in accept_returncodes:
            raise self._mapper.map_failure(result, operation=operation, path=cwd)
        return result

    def map_failure(
        self,
        result: ExecutionResult,
        *,
        operation: str | None = None,
        path: Path | str | None = None,
    ) -> GitError:
        """Classify a result the caller accepted but then judged a failure."""
        return self._mapper.map_failure(result, operation=operation, path=path)
