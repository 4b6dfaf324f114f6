"""Git failure taxonomy.

Every failure surfaced by an operation is a :class:`GitError` carrying an
:class:`ErrorKind` from a closed set, the raw stderr for diagnostics, the
exit code (when a process ran) and the operation/path it concerned. Each
kind has a dedicated subclass so callers may use either ``except`` clauses
or ``error.kind`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from gitbridge.exceptions.base import GitBridgeError

__all__ = [
    "ErrorKind",
    "GitError",
    "NotARepositoryError",
    "RefNotFoundError",
    "MergeConflictError",
    "LockContentionError",
    "AuthenticationFailedError",
    "NetworkUnreachableError",
    "SigningFailedError",
    "GitValidationError",
    "WorkingDirectoryError",
    "GitTimeoutError",
    "OperationCancelledError",
    "UnknownGitError",
    "GitNotFoundError",
    "OutputLimitExceededError",
]


class ErrorKind(str, Enum):
    """Closed set of failure classifications."""

    NOT_A_REPOSITORY = "not_a_repository"
    REF_NOT_FOUND = "ref_not_found"
    MERGE_CONFLICT = "merge_conflict"
    LOCK_CONTENTION = "lock_contention"
    AUTHENTICATION_FAILED = "authentication_failed"
    NETWORK_UNREACHABLE = "network_unreachable"
    SIGNING_FAILED = "signing_failed"
    VALIDATION_ERROR = "validation_error"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class GitError(GitBridgeError):
    """Exception for git operation failures.

    Attributes:
        message: Human-readable error message.
        kind: Classification of the failure.
        raw_stderr: Unmodified stderr of the failing invocation ("" if none ran).
        exit_code: Process exit code, or None when no process completed.
        operation: Command family that failed (e.g. ``"push"``).
        path: Repository path the operation ran against.
    """

    #: Kind reported when the constructor is not given one explicitly.
    default_kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        raw_stderr: str = "",
        exit_code: int | None = None,
        operation: str | None = None,
        path: Path | str | None = None,
    ) -> None:
        """Initialize the GitError.

        Args:
            message: Human-readable error message.
            kind: Failure classification; defaults to the subclass kind.
            raw_stderr: Raw stderr text kept for diagnostics.
            exit_code: Exit code of the failed process.
            operation: Command family that failed.
            path: Repository path the operation ran against.
        """
        self.kind = kind if kind is not None else self.default_kind
        self.raw_stderr = raw_stderr
        self.exit_code = exit_code
        self.operation = operation
        self.path = str(path) if path is not None else None
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """True only for transient lock collisions."""
        return self.kind is ErrorKind.LOCK_CONTENTION

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "raw_stderr": self.raw_stderr,
            "exit_code": self.exit_code,
            "operation": self.operation,
            "path": self.path,
        }


class NotARepositoryError(GitError):
    """The working directory is not inside a git repository."""

    default_kind = ErrorKind.NOT_A_REPOSITORY


class RefNotFoundError(GitError):
    """A branch, tag, commit or remote named by the caller does not exist."""

    default_kind = ErrorKind.REF_NOT_FOUND


class MergeConflictError(GitError):
    """The command stopped because of unresolved conflicts.

    Raised only when git refuses to run at all (e.g. unmerged paths already
    present). Conflicts produced by the operation itself are reported in the
    result with ``success = False`` instead.

    Attributes:
        conflicted_files: Paths reported as conflicted.
    """

    default_kind = ErrorKind.MERGE_CONFLICT

    def __init__(
        self,
        message: str,
        *,
        conflicted_files: tuple[str, ...] = (),
        **kwargs: object,
    ) -> None:
        self.conflicted_files = conflicted_files
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class LockContentionError(GitError):
    """Another git process holds the repository lock file.

    The only kind worth retrying with backoff; see
    :func:`gitbridge.errors.lock_contention_retry`.
    """

    default_kind = ErrorKind.LOCK_CONTENTION


class AuthenticationFailedError(GitError):
    """Credentials were rejected or would have required a prompt."""

    default_kind = ErrorKind.AUTHENTICATION_FAILED


class NetworkUnreachableError(GitError):
    """The remote could not be reached."""

    default_kind = ErrorKind.NETWORK_UNREACHABLE


class SigningFailedError(GitError):
    """GPG/SSH signing of a commit or tag failed."""

    default_kind = ErrorKind.SIGNING_FAILED


class GitValidationError(GitError):
    """Options were rejected before any process was spawned.

    Attributes:
        field: Name of the offending option, when known.
    """

    default_kind = ErrorKind.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        **kwargs: object,
    ) -> None:
        self.field = field
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class WorkingDirectoryError(GitValidationError):
    """The working directory does not exist."""


class GitTimeoutError(GitError):
    """The subprocess exceeded its timeout and was killed.

    Attributes:
        timeout_seconds: The limit that was exceeded.
    """

    default_kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str,
        *,
        timeout_seconds: float | None = None,
        **kwargs: object,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class OperationCancelledError(GitError):
    """The caller's cancel token fired before or during execution."""

    default_kind = ErrorKind.CANCELLED


class UnknownGitError(GitError):
    """A failure that matched no known stderr pattern."""


class GitNotFoundError(UnknownGitError):
    """The git executable is not installed or not on PATH."""

    def __init__(self, message: str = "Git CLI not found", **kwargs: object) -> None:
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class OutputLimitExceededError(UnknownGitError):
    """Captured output exceeded the configured byte cap.

    Attributes:
        limit_bytes: The cap that was exceeded.
    """

    def __init__(
        self,
        message: str,
        *,
        limit_bytes: int,
        **kwargs: object,
    ) -> None:
        self.limit_bytes = limit_bytes
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
