"""Data models for git process execution.

- :class:`CommandInvocation`: what to run (immutable argument vector)
- :class:`ProcessOutcome`: what a spawn strategy observed
- :class:`ExecutionResult`: the raw, unparsed result handed to parsers

All models are frozen dataclasses with slots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

__all__ = [
    "CommandInvocation",
    "ExecutionResult",
    "ProcessOutcome",
]


@dataclass(frozen=True, slots=True)
class CommandInvocation:
    """A single git invocation.

    The argument vector is stored as a tuple and passed to the process as
    discrete elements; it is never joined into a shell string.

    Attributes:
        args: Arguments after the git executable (e.g. ``("status", "-b")``).
        cwd: Directory the process runs in.
        env: Extra environment variables for this invocation only.
    """

    args: tuple[str, ...]
    cwd: Path
    env: dict[str, str] = field(default_factory=dict)

    @property
    def subcommand(self) -> str:
        """First argument, used for logging and error messages."""
        return self.args[0] if self.args else ""


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Raw output of a completed git process.

    Attributes:
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        exit_code: Process exit code.
        duration_ms: Wall-clock duration in milliseconds.
    """

    stdout: str
    stderr: str
    exit_code: int
    duration_ms: int

    @property
    def success(self) -> bool:
        """True if git exited with status 0."""
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr."""
        if self.stderr:
            return f"{self.stdout}\n{self.stderr}" if self.stdout else self.stderr
        return self.stdout


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """What a spawn strategy observed, before any policy is applied.

    Exactly one of ``timed_out``, ``cancelled`` and ``overflowed`` may be set;
    when none is, ``returncode`` is the real exit status.

    Attributes:
        returncode: Exit status (-1 when the process was killed by us).
        stdout: Captured stdout bytes.
        stderr: Captured stderr bytes.
        duration_ms: Wall-clock duration in milliseconds.
        timed_out: The timeout expired and the process was killed.
        cancelled: The cancel token fired and the process was killed.
        overflowed: Output exceeded the byte cap and the process was killed.
    """

    returncode: int
    stdout: bytes
    stderr: bytes
    duration_ms: int
    timed_out: bool = False
    cancelled: bool = False
    overflowed: bool = False

    def to_result(self) -> ExecutionResult:
        return ExecutionResult(
            stdout=self.stdout.decode("utf-8", errors="replace"),
            stderr=self.stderr.decode("utf-8", errors="replace"),
            exit_code=self.returncode,
            duration_ms=self.duration_ms,
        )
