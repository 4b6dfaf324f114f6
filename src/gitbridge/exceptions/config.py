from __future__ import annotations

from typing import Any

from gitbridge.exceptions.base import GitBridgeError


class ConfigError(GitBridgeError):
    """Configuration could not be loaded, parsed or validated.

    Covers YAML syntax errors in ``gitbridge.yaml`` and pydantic validation
    failures for values coming from files or ``GITBRIDGE_*`` variables.

    Attributes:
        message: Human-readable error message.
        field: Dotted path of the offending setting (e.g. ``"cache.ttl_seconds"``).
        value: The rejected value, kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        """Initialize the ConfigError.

        Args:
            message: Human-readable error message.
            field: Optional setting that caused the error.
            value: Optional value that failed validation.
        """
        self.field = field
        self.value = value
        super().__init__(message)
