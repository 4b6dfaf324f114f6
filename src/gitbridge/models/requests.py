"""Request envelope passed to :meth:`gitbridge.service.GitService.execute`."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gitbridge.exceptions import GitValidationError
from gitbridge.models.options import CommandKind, parse_options

if TYPE_CHECKING:
    from collections.abc import Mapping

    from gitbridge.runners.cancel import CancelToken

__all__ = ["RequestContext", "OperationRequest"]


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Tracing context threaded through a call for diagnostics.

    Attributes:
        request_id: Correlation id bound into every log event of the request.
        extra: Additional key/value pairs bound alongside it.
    """

    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    extra: Mapping[str, str] = field(default_factory=dict)

    def log_fields(self) -> dict[str, str]:
        return {**self.extra, "request_id": self.request_id}


@dataclass(frozen=True, slots=True)
class OperationRequest:
    """One immutable call into the engine.

    Attributes:
        command: Command family to run.
        options: Option model whose ``command`` tag matches *command*.
        working_directory: Repository path (for clone/init, the base the
            target path is resolved against).
        tenant_id: Owner of the call; partitions the cache.
        context: Tracing context.
        timeout: Per-call timeout override in seconds.
        cancel_token: Token the caller can fire to stop the call.
    """

    command: CommandKind
    options: Any
    working_directory: Path
    tenant_id: str
    context: RequestContext = field(default_factory=RequestContext)
    timeout: float | None = None
    cancel_token: CancelToken | None = None

    def __post_init__(self) -> None:
        tag = getattr(self.options, "command", None)
        if tag != self.command.value:
            raise GitValidationError(
                f"Options for '{tag}' do not match command '{self.command.value}'",
                field="options",
                operation=self.command.value,
            )
        if not self.tenant_id:
            raise GitValidationError(
                "tenant_id is required",
                field="tenant_id",
                operation=self.command.value,
            )

    @classmethod
    def create(
        cls,
        command: CommandKind | str,
        options: Mapping[str, Any] | Any | None,
        *,
        working_directory: Path | str,
        tenant_id: str,
        context: RequestContext | None = None,
        timeout: float | None = None,
        cancel_token: CancelToken | None = None,
    ) -> OperationRequest:
        """Build a request, validating a plain mapping of options if given.

        Raises:
            GitValidationError: Unknown command or invalid options.
        """
        if options is None or isinstance(options, dict):
            model = parse_options(command, dict(options or {}))
            kind = CommandKind(model.command)
        else:
            model = options
            try:
                kind = CommandKind(command)
            except ValueError as e:
                raise GitValidationError(
                    f"Unknown command: {command}", field="command"
                ) from e
        return cls(
            command=kind,
            options=model,
            working_directory=Path(working_directory),
            tenant_id=tenant_id,
            context=context or RequestContext(),
            timeout=timeout,
            cancel_token=cancel_token,
        )
