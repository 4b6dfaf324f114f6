"""Classification of failed git invocations.

:class:`ErrorMapper` turns an :class:`~gitbridge.runners.models.ExecutionResult`
with a non-zero exit code into the matching :class:`~gitbridge.exceptions.GitError`
subclass. The mapping is a first-match walk over :data:`ERROR_PATTERNS`;
anything unmatched becomes :class:`~gitbridge.exceptions.UnknownGitError`
with the raw stderr attached.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gitbridge.exceptions import (
    AuthenticationFailedError,
    ErrorKind,
    GitError,
    GitValidationError,
    LockContentionError,
    MergeConflictError,
    NetworkUnreachableError,
    NotARepositoryError,
    RefNotFoundError,
    SigningFailedError,
    UnknownGitError,
)
from gitbridge.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gitbridge.runners.models import ExecutionResult

__all__ = [
    "ERROR_PATTERNS",
    "ErrorMapper",
    "lock_contention_retry",
]

logger = get_logger(__name__)

# =============================================================================
# Pattern table
# =============================================================================

#: Ordered (kind, patterns) pairs; the first kind with a matching pattern wins.
#: Authentication precedes network because HTTP auth failures also print
#: "unable to access".
ERROR_PATTERNS: tuple[tuple[ErrorKind, tuple[str, ...]], ...] = (
    (
        ErrorKind.NOT_A_REPOSITORY,
        ("not a git repository", "must be run in a work tree"),
    ),
    (
        ErrorKind.LOCK_CONTENTION,
        (
            ".lock': file exists",
            "another git process seems to be running",
        ),
    ),
    (
        ErrorKind.SIGNING_FAILED,
        (
            "gpg failed to sign",
            "failed to sign the data",
            "gpg: signing failed",
            "secret key not available",
            "no secret key",
            "unable to sign",
        ),
    ),
    (
        ErrorKind.AUTHENTICATION_FAILED,
        (
            "authentication failed",
            "permission denied (publickey",
            "could not read username",
            "could not read password",
            "terminal prompts disabled",
            "invalid username or password",
            "the requested url returned error: 401",
            "the requested url returned error: 403",
            "host key verification failed",
        ),
    ),
    (
        ErrorKind.NETWORK_UNREACHABLE,
        (
            "could not resolve host",
            "connection refused",
            "connection timed out",
            "network is unreachable",
            "network unreachable",
            "temporary failure",
            "unable to access",
            "could not read from remote repository",
            "the remote end hung up unexpectedly",
            "ssl certificate problem",
            "ssl_connect",
            "ssl_error",
            "gnutls_handshake",
            "tls connection",
        ),
    ),
    (
        ErrorKind.MERGE_CONFLICT,
        (
            "conflict (",
            "merge conflict",
            "you have unmerged paths",
            "fix conflicts and then",
            "needs merge",
            "unmerged files",
            "resolve all conflicts",
        ),
    ),
    (
        ErrorKind.REF_NOT_FOUND,
        (
            "unknown revision",
            "not a valid object name",
            "not a valid ref",
            "bad revision",
            "invalid reference",
            "couldn't find remote ref",
            "did not match any file(s) known to git",
            "no such remote",
            "no such ref",
            "not found in upstream",
            "ambiguous argument",
            "not something we can merge",
            "bad object",
            "no stash entries found",
            "is not a valid reference",
        ),
    ),
    (
        ErrorKind.VALIDATION_ERROR,
        (
            "unknown option",
            "usage: git",
            "invalid option",
            "is not a git command",
            "exists; cannot create '",
        ),
    ),
)

_ERROR_CLASSES: dict[ErrorKind, type[GitError]] = {
    ErrorKind.NOT_A_REPOSITORY: NotARepositoryError,
    ErrorKind.LOCK_CONTENTION: LockContentionError,
    ErrorKind.SIGNING_FAILED: SigningFailedError,
    ErrorKind.AUTHENTICATION_FAILED: AuthenticationFailedError,
    ErrorKind.NETWORK_UNREACHABLE: NetworkUnreachableError,
    ErrorKind.MERGE_CONFLICT: MergeConflictError,
    ErrorKind.REF_NOT_FOUND: RefNotFoundError,
    ErrorKind.VALIDATION_ERROR: GitValidationError,
    ErrorKind.UNKNOWN: UnknownGitError,
}

_FIRST_ERROR_LINE = re.compile(r"^(?:fatal|error):\s*(.+)$", re.MULTILINE)


class ErrorMapper:
    """Map failed invocations onto the closed error taxonomy.

    Example:
        ```python
        mapper = ErrorMapper()
        error = mapper.map_failure(result, operation="push", path=repo)
        raise error
        ```
    """

    def __init__(
        self,
        patterns: Sequence[tuple[ErrorKind, tuple[str, ...]]] = ERROR_PATTERNS,
    ) -> None:
        self._patterns = tuple(patterns)

    def classify(self, text: str, exit_code: int | None = None) -> ErrorKind:
        """Return the first matching :class:`ErrorKind` for *text*.

        Args:
            text: stderr (or stdout when stderr was empty) of the invocation.
            exit_code: Process exit code; unused by the current table but
                kept so callers need not special-case it.

        Returns:
            The matched kind, or ``ErrorKind.UNKNOWN``.
        """
        lowered = text.lower()
        for kind, patterns in self._patterns:
            if any(pattern in lowered for pattern in patterns):
                return kind
        return ErrorKind.UNKNOWN

    def map_failure(
        self,
        result: ExecutionResult,
        *,
        operation: str | None = None,
        path: Path | str | None = None,
    ) -> GitError:
        """Build the exception for a failed invocation (does not raise it)."""
        # Some commands ("nothing to commit") report on stdout only
        diagnostic = result.stderr.strip() or result.stdout.strip()
        kind = self.classify(diagnostic, result.exit_code)
        error_cls = _ERROR_CLASSES[kind]
        message = _summarize(diagnostic, operation, result.exit_code)

        logger.debug(
            "git_failure_classified",
            kind=kind.value,
            operation=operation,
            exit_code=result.exit_code,
        )
        return error_cls(
            message,
            kind=kind,
            raw_stderr=result.stderr,
            exit_code=result.exit_code,
            operation=operation,
            path=path,
        )


def _summarize(diagnostic: str, operation: str | None, exit_code: int) -> str:
    """Prefer git's own ``fatal:``/``error:`` line as the message."""
    prefix = f"git {operation} failed" if operation else "git command failed"
    match = _FIRST_ERROR_LINE.search(diagnostic)
    if match:
        return f"{prefix}: {match.group(1).strip()}"
    if diagnostic:
        return f"{prefix}: {diagnostic.splitlines()[0].strip()}"
    return f"{prefix} with exit code {exit_code}"


# =============================================================================
# Caller-side retry for lock contention
# =============================================================================


def lock_contention_retry(
    attempts: int = 3,
    initial_delay: float = 0.2,
    max_delay: float = 5.0,
) -> AsyncRetrying:
    """Build a retry policy that retries :class:`LockContentionError` only.

    Every other error propagates on the first attempt.

    Args:
        attempts: Total attempts including the first one.
        initial_delay: First backoff delay in seconds (doubles per attempt).
        max_delay: Upper bound for a single delay.

    Returns:
        A tenacity ``AsyncRetrying`` to iterate with ``async for``.

    Example:
        ```python
        async for attempt in lock_contention_retry():
            with attempt:
                result = await service.execute(request)
        ```
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(LockContentionError),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=initial_delay, min=initial_delay, max=max_delay),
        reraise=True,
    )
