"""Tests for runner data models."""

from __future__ import annotations

from pathlib import Path

import pytest

from gitbridge.runners.models import CommandInvocation, ExecutionResult, ProcessOutcome


class TestCommandInvocation:
    def test_subcommand(self) -> None:
        invocation = CommandInvocation(args=("status", "-b"), cwd=Path("/repo"))
        assert invocation.subcommand == "status"
        assert invocation.env == {}

    def test_empty_args(self) -> None:
        assert CommandInvocation(args=(), cwd=Path("/repo")).subcommand == ""

    def test_frozen(self) -> None:
        invocation = CommandInvocation(args=("log",), cwd=Path("/repo"))
        with pytest.raises(AttributeError):
            invocation.args = ("status",)  # type: ignore[misc]


class TestExecutionResult:
    def test_success(self) -> None:
        assert ExecutionResult("", "", 0, 1).success is True
        assert ExecutionResult("", "", 1, 1).success is False

    @pytest.mark.parametrize(
        ("stdout", "stderr", "expected"),
        [
            ("out", "", "out"),
            ("", "err", "err"),
            ("out", "err", "out\nerr"),
        ],
    )
    def test_output(self, stdout: str, stderr: str, expected: str) -> None:
        assert ExecutionResult(stdout, stderr, 0, 1).output == expected


class TestProcessOutcome:
    def test_to_result_decodes_utf8(self) -> None:
        outcome = ProcessOutcome(
            returncode=0,
            stdout="héllo".encode(),
            stderr=b"",
            duration_ms=3,
        )

        result = outcome.to_result()

        assert result.stdout == "héllo"
        assert result.exit_code == 0
        assert result.duration_ms == 3

    def test_invalid_bytes_replaced(self) -> None:
        outcome = ProcessOutcome(returncode=1, stdout=b"", stderr=b"\xff", duration_ms=0)
        assert outcome.to_result().stderr == "�"

    def test_stop_flags_default_false(self) -> None:
        outcome = ProcessOutcome(returncode=0, stdout=b"", stderr=b"", duration_ms=0)
        assert not (outcome.timed_out or outcome.cancelled or outcome.overflowed)
