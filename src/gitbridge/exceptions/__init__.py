"""gitbridge exception hierarchy.

All exceptions can be imported from this package:
    from gitbridge.exceptions import GitError, LockContentionError
"""

from __future__ import annotations

from gitbridge.exceptions.base import GitBridgeError
from gitbridge.exceptions.config import ConfigError
from gitbridge.exceptions.git import (
    AuthenticationFailedError,
    ErrorKind,
    GitError,
    GitNotFoundError,
    GitTimeoutError,
    GitValidationError,
    LockContentionError,
    MergeConflictError,
    NetworkUnreachableError,
    NotARepositoryError,
    OperationCancelledError,
    OutputLimitExceededError,
    RefNotFoundError,
    SigningFailedError,
    UnknownGitError,
    WorkingDirectoryError,
)

__all__ = [
    # Base
    "GitBridgeError",
    # Configuration
    "ConfigError",
    # Git taxonomy
    "ErrorKind",
    "GitError",
    "AuthenticationFailedError",
    "GitNotFoundError",
    "GitTimeoutError",
    "GitValidationError",
    "LockContentionError",
    "MergeConflictError",
    "NetworkUnreachableError",
    "NotARepositoryError",
    "OperationCancelledError",
    "OutputLimitExceededError",
    "RefNotFoundError",
    "SigningFailedError",
    "UnknownGitError",
    "WorkingDirectoryError",
]
