"""Argument-vector construction.

:class:`ArgvBuilder` assembles the arguments for one git invocation from
structured options. It only ever appends discrete elements; nothing is
joined into a shell string. The per-command ``build_*_argv`` functions in
:mod:`gitbridge.operations` are written on top of it.

Rules enforced by :meth:`ArgvBuilder.build`:

- empty-string elements are never emitted
- a presence-only flag appears at most once
- no element contains a NUL byte
- a caller-supplied positional never starts with ``-``
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from gitbridge.exceptions import GitValidationError

if TYPE_CHECKING:
    from collections.abc import Iterable

__all__ = [
    "ArgvBuilder",
    "require",
    "validate_args",
    "escape_shell_arg",
    "render_command",
]

_T = TypeVar("_T")


class ArgvBuilder:
    """Fluent builder for a git argument vector.

    Example:
        ```python
        argv = (
            ArgvBuilder("push")
            .flag("--force", options.force)
            .flag("--force-with-lease", options.force_with_lease and not options.force)
            .positional(options.remote, options.branch)
            .build()
        )
        ```
    """

    def __init__(self, *subcommand: str) -> None:
        self._args: list[str] = []
        self._flags: set[str] = set()
        self._paths: list[str] = []
        self._command = subcommand[0] if subcommand else None
        for part in subcommand:
            self._append(part)

    def flag(self, name: str, enabled: bool | None = True) -> ArgvBuilder:
        """Add a presence-only flag once, if *enabled*."""
        if enabled and name not in self._flags:
            self._flags.add(name)
            self._append(name)
        return self

    def option(self, name: str, value: object | None) -> ArgvBuilder:
        """Add ``--name=value`` when *value* is not None or empty."""
        if value is None or value == "":
            return self
        return self._append(f"{name}={value}")

    def pair(self, name: str, value: object | None) -> ArgvBuilder:
        """Add ``name value`` as two elements (e.g. ``-m message``)."""
        if value is None or value == "":
            return self
        self._append(name)
        return self._append(str(value))

    def positional(self, *values: object | None) -> ArgvBuilder:
        """Append positional arguments, skipping None and empty values.

        Raises:
            GitValidationError: If a value starts with ``-`` and would be
                parsed by git as an option.
        """
        for value in values:
            if value is None or value == "":
                continue
            text = str(value)
            if text.startswith("-"):
                raise GitValidationError(
                    f"Argument {text!r} must not start with '-'",
                    field="args",
                    operation=self._command,
                )
            self._append(text)
        return self

    def paths(self, paths: Iterable[str] | None) -> ArgvBuilder:
        """Queue path filters; emitted after ``--`` at the very end."""
        if paths:
            self._paths.extend(p for p in paths if p)
        return self

    def build(self) -> tuple[str, ...]:
        """Return the finished, validated argument vector."""
        args = list(self._args)
        if self._paths:
            args.append("--")
            args.extend(self._paths)
        validate_args(args)
        return tuple(args)

    def _append(self, value: str) -> ArgvBuilder:
        if value:
            self._args.append(value)
        return self


def require(value: _T | None, field: str, command: str) -> _T:
    """Return *value* or raise when it is missing or blank.

    Raises:
        GitValidationError: If *value* is None, empty, or whitespace only.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise GitValidationError(
            f"'{field}' is required for {command}",
            field=field,
            operation=command,
        )
    if isinstance(value, (list, tuple)) and not value:
        raise GitValidationError(
            f"'{field}' must not be empty for {command}",
            field=field,
            operation=command,
        )
    return value


def validate_args(args: Iterable[str]) -> None:
    """Reject arguments that cannot be passed safely to a process.

    Raises:
        GitValidationError: If an argument contains a NUL byte.
    """
    for arg in args:
        if "\x00" in arg:
            raise GitValidationError(
                "Argument contains a null byte",
                field="args",
            )


def escape_shell_arg(arg: str) -> str:
    """Single-quote *arg* for display. Never used to execute anything."""
    return "'" + arg.replace("'", "'\\''") + "'"


def render_command(git_binary: str, args: Iterable[str]) -> str:
    """Render an invocation as a copy-pasteable string for logs."""
    return " ".join([git_binary, *(escape_shell_arg(a) for a in args)])
