"""Composition root.

:class:`GitService` owns the configuration, the process runner and the
repository state cache, and dispatches :class:`OperationRequest`s to the
executors in :mod:`gitbridge.operations`.

The flow of one request:

1. validate options and build the argument vector (no process yet)
2. serve cacheable reads from the cache when possible
3. run the executor
4. for writes, evict the affected cache entries before returning
5. for cacheable reads, store the parsed result
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from gitbridge.cache import CacheKey, RepositoryStateCache
from gitbridge.config import GitBridgeConfig, load_config
from gitbridge.errors import lock_contention_retry
from gitbridge.exceptions import GitValidationError
from gitbridge.logging import get_logger, request_context
from gitbridge.models.requests import OperationRequest, RequestContext
from gitbridge.operations import OperationContext, access_for, executor_for
from gitbridge.operations.repository import resolve_target
from gitbridge.runners.command import GitRunner
from gitbridge.runners.models import CommandInvocation

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gitbridge.models.options import CommandKind
    from gitbridge.models.results import ParsedResult
    from gitbridge.operations import Access, OperationExecutor
    from gitbridge.runners.cancel import CancelToken

__all__ = ["GitService", "WorkingDirectoryResolver"]

logger = get_logger(__name__)


@runtime_checkable
class WorkingDirectoryResolver(Protocol):
    """Supplies a tenant's current working directory (session storage)."""

    def get_working_directory(self, tenant_id: str) -> Path | None: ...


class GitService:
    """Entry point for running git operations.

    Args:
        config: Configuration; loaded from the environment and YAML files
            when omitted.
        runner: Process runner; built from ``config.execution`` when omitted.
        cache: State cache; built from ``config.cache`` when omitted.
        resolver: Source of working directories for :meth:`run` calls that
            do not pass one.

    Example:
        ```python
        service = GitService()
        result = await service.run(
            "branch", {"mode": "list"}, tenant_id="acme", working_directory=repo
        )
        for branch in result.branches:
            print(branch.name, branch.current)
        ```
    """

    def __init__(
        self,
        config: GitBridgeConfig | None = None,
        *,
        runner: GitRunner | None = None,
        cache: RepositoryStateCache | None = None,
        resolver: WorkingDirectoryResolver | None = None,
    ) -> None:
        self._config = config if config is not None else load_config()
        self._runner = (
            runner if runner is not None else GitRunner.from_config(self._config.execution)
        )
        self._cache = (
            cache if cache is not None else RepositoryStateCache.from_config(self._config.cache)
        )
        self._resolver = resolver

    @property
    def config(self) -> GitBridgeConfig:
        return self._config

    @property
    def runner(self) -> GitRunner:
        return self._runner

    @property
    def cache(self) -> RepositoryStateCache:
        return self._cache

    async def run(
        self,
        command: CommandKind | str,
        options: Mapping[str, Any] | Any | None = None,
        *,
        tenant_id: str,
        working_directory: Path | str | None = None,
        context: RequestContext | None = None,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> ParsedResult:
        """Build an :class:`OperationRequest` and execute it.

        Raises:
            GitValidationError: Invalid options, or no working directory
                was given and the resolver has none for *tenant_id*.
            GitError: The operation failed.
        """
        cwd = working_directory
        if cwd is None and self._resolver is not None:
            cwd = self._resolver.get_working_directory(tenant_id)
        if cwd is None:
            raise GitValidationError(
                f"No working directory set for tenant '{tenant_id}'",
                field="working_directory",
                operation=str(getattr(command, "value", command)),
            )

        request = OperationRequest.create(
            command,
            options,
            working_directory=cwd,
            tenant_id=tenant_id,
            context=context,
            timeout=timeout,
            cancel_token=cancel_token,
        )
        return await self.execute(request)

    async def execute(
        self,
        request: OperationRequest,
        *,
        retry_lock_contention: bool = False,
    ) -> ParsedResult:
        """Execute one request.

        Args:
            request: The request to run.
            retry_lock_contention: Retry with backoff when another git
                process holds the repository lock. Off by default.

        Returns:
            The parsed result for the request's command.

        Raises:
            GitError: Classified failure (validation errors before any spawn).
        """
        with request_context(
            tenant_id=request.tenant_id,
            command=request.command.value,
            **request.context.log_fields(),
        ):
            if not retry_lock_contention:
                return await self._execute(request)

            async for attempt in lock_contention_retry():
                with attempt:
                    result = await self._execute(request)
            return result

    async def _execute(self, request: OperationRequest) -> ParsedResult:
        options = request.options
        executor = executor_for(request.command)
        access = access_for(options)
        cwd = request.working_directory.expanduser().resolve()

        argv = executor.build_argv(options)
        invocation = CommandInvocation(args=argv, cwd=cwd)
        logger.debug(
            "git_operation_started",
            subcommand=invocation.subcommand,
            access=access.kind.value,
            cwd=str(cwd),
        )

        key: CacheKey | None = None
        if access.cacheable:
            key = CacheKey.build(request.tenant_id, cwd, request.command.value, options)
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        ctx = OperationContext(
            runner=self._runner,
            cwd=cwd,
            timeout=self._timeout_for(request, executor),
            cancel_token=request.cancel_token,
            signing=self._config.signing,
        )
        result = await executor.execute(ctx, options, argv)

        if access.write_tags:
            self._invalidate(request, access, cwd)
        if key is not None and access.read_tag is not None:
            self._cache.put(key, result, access.read_tag)
        return result

    def _timeout_for(
        self, request: OperationRequest, executor: OperationExecutor[Any, Any]
    ) -> float | None:
        if request.timeout is not None:
            return request.timeout
        if executor.network:
            return self._config.execution.network_timeout_seconds
        return None

    def _invalidate(
        self, request: OperationRequest, access: Access, cwd: Path
    ) -> None:
        path = cwd
        if access.creates_repository:
            path = resolve_target(request.options.path, cwd)
        self._cache.invalidate(request.tenant_id, path, access.write_tags)
