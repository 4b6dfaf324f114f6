"""Tests for GitRunner.

The spawn strategy is replaced by :class:`RecordingStrategy`, which returns
a canned :class:`ProcessOutcome` and records what it was asked to run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from gitbridge.config import ExecutionConfig
from gitbridge.exceptions import (
    GitNotFoundError,
    GitTimeoutError,
    GitValidationError,
    OperationCancelledError,
    OutputLimitExceededError,
    RefNotFoundError,
    UnknownGitError,
    WorkingDirectoryError,
)
from gitbridge.runners.cancel import CancelToken
from gitbridge.runners.command import GitRunner, build_git_env
from gitbridge.runners.models import ProcessOutcome
from gitbridge.runners.strategies import ThreadedSpawnStrategy
from tests.fixtures.runners import make_result


class RecordingStrategy:
    """Spawn strategy double."""

    name = "recording"

    def __init__(
        self,
        outcome: ProcessOutcome | None = None,
        error: Exception | None = None,
    ) -> None:
        self.outcome = outcome or ProcessOutcome(
            returncode=0, stdout=b"ok\n", stderr=b"", duration_ms=2
        )
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def spawn(self, command, **kwargs: Any) -> ProcessOutcome:
        self.calls.append({"command": list(command), **kwargs})
        if self.error is not None:
            raise self.error
        return self.outcome


def outcome(**overrides: Any) -> ProcessOutcome:
    values: dict[str, Any] = {
        "returncode": 0,
        "stdout": b"",
        "stderr": b"",
        "duration_ms": 1,
    }
    values.update(overrides)
    return ProcessOutcome(**values)


class TestBuildGitEnv:
    """Tests for build_git_env()."""

    def test_prompts_disabled(self) -> None:
        env = build_git_env(base={})
        assert env["GIT_TERMINAL_PROMPT"] == "0"
        assert env["GCM_INTERACTIVE"] == "never"

    def test_editor_never_waits(self) -> None:
        env = build_git_env({"GIT_EDITOR": "vim"}, base={"GIT_EDITOR": "nano"})
        assert env["GIT_EDITOR"] == "true"

    def test_callers_cannot_enable_prompts(self) -> None:
        env = build_git_env({"GIT_TERMINAL_PROMPT": "1"}, base={"GCM_INTERACTIVE": "auto"})
        assert env["GIT_TERMINAL_PROMPT"] == "0"
        assert env["GCM_INTERACTIVE"] == "never"

    def test_layers_apply_in_order(self) -> None:
        env = build_git_env({"A": "1", "B": "1"}, {"B": "2"}, None, base={"A": "0"})
        assert env["A"] == "1"
        assert env["B"] == "2"

    def test_locale_forced(self) -> None:
        env = build_git_env(base={"LC_ALL": "de_DE.UTF-8"})
        assert env["LC_ALL"] == "en_US.UTF-8"

    def test_batch_ssh_unless_configured(self) -> None:
        assert "BatchMode=yes" in build_git_env(base={})["GIT_SSH_COMMAND"]
        custom = build_git_env(base={"GIT_SSH_COMMAND": "ssh -i key"})
        assert custom["GIT_SSH_COMMAND"] == "ssh -i key"

    def test_base_not_mutated(self) -> None:
        base = {"PATH": "/bin"}
        build_git_env({"X": "1"}, base=base)
        assert base == {"PATH": "/bin"}


class TestGitRunnerRun:
    """Tests for GitRunner.run()."""

    @pytest.mark.asyncio
    async def test_success(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(strategy=strategy, timeout=30.0)

        result = await runner.run(["status", "-b"], cwd=tmp_path)

        assert result.exit_code == 0
        assert result.stdout == "ok\n"
        call = strategy.calls[0]
        assert call["command"] == ["git", "status", "-b"]
        assert call["cwd"] == tmp_path
        assert call["timeout"] == 30.0
        assert call["env"]["GIT_TERMINAL_PROMPT"] == "0"

    @pytest.mark.asyncio
    async def test_custom_binary_and_extra_env(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(
            git_binary="/opt/git/bin/git", env={"GIT_AUTHOR_NAME": "Bot"}, strategy=strategy
        )

        await runner.run(["log"], cwd=tmp_path, env={"GIT_PAGER": "cat"})

        call = strategy.calls[0]
        assert call["command"][0] == "/opt/git/bin/git"
        assert call["env"]["GIT_AUTHOR_NAME"] == "Bot"
        assert call["env"]["GIT_PAGER"] == "cat"

    @pytest.mark.asyncio
    async def test_per_call_timeout_override(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(strategy=strategy, timeout=30.0)

        await runner.run(["fetch", "origin"], cwd=tmp_path, timeout=600.0)

        assert strategy.calls[0]["timeout"] == 600.0

    @pytest.mark.asyncio
    async def test_non_positive_timeout_disables(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(strategy=strategy, timeout=30.0)

        await runner.run(["status"], cwd=tmp_path, timeout=0)

        assert strategy.calls[0]["timeout"] is None

    @pytest.mark.asyncio
    async def test_output_cap_passed_to_strategy(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(strategy=strategy, max_output_bytes=4096)

        await runner.run(["log"], cwd=tmp_path)

        assert strategy.calls[0]["max_output_bytes"] == 4096

    @pytest.mark.asyncio
    async def test_non_zero_exit_is_classified(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy(
            outcome(
                returncode=128,
                stderr=b"fatal: ambiguous argument 'nope': unknown revision",
            )
        )
        runner = GitRunner(strategy=strategy)

        with pytest.raises(RefNotFoundError) as exc_info:
            await runner.run(["log", "nope"], cwd=tmp_path, operation="log")

        error = exc_info.value
        assert error.exit_code == 128
        assert error.operation == "log"
        assert error.path == str(tmp_path)
        assert "unknown revision" in error.raw_stderr

    @pytest.mark.asyncio
    async def test_accepted_returncode_is_returned(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy(outcome(returncode=1, stdout=b"CONFLICT (content): x"))
        runner = GitRunner(strategy=strategy)

        result = await runner.run(["merge", "x"], cwd=tmp_path, accept_returncodes=(0, 1))

        assert result.exit_code == 1

    @pytest.mark.asyncio
    async def test_operation_defaults_to_subcommand(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy(outcome(returncode=2, stderr=b"weird"))
        runner = GitRunner(strategy=strategy)

        with pytest.raises(UnknownGitError) as exc_info:
            await runner.run(["stash", "list"], cwd=tmp_path)

        assert exc_info.value.operation == "stash"

    @pytest.mark.asyncio
    async def test_timeout_raises(self, tmp_path: Path) -> None:
        runner = GitRunner(strategy=RecordingStrategy(outcome(returncode=-1, timed_out=True)))

        with pytest.raises(GitTimeoutError) as exc_info:
            await runner.run(["fetch"], cwd=tmp_path, timeout=5.0)

        assert exc_info.value.timeout_seconds == 5.0

    @pytest.mark.asyncio
    async def test_cancelled_during_run_raises(self, tmp_path: Path) -> None:
        runner = GitRunner(strategy=RecordingStrategy(outcome(returncode=-1, cancelled=True)))

        with pytest.raises(OperationCancelledError):
            await runner.run(["fetch"], cwd=tmp_path, cancel_token=CancelToken())

    @pytest.mark.asyncio
    async def test_cancelled_before_start_never_spawns(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(strategy=strategy)
        token = CancelToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            await runner.run(["status"], cwd=tmp_path, cancel_token=token)

        assert strategy.calls == []

    @pytest.mark.asyncio
    async def test_overflow_raises(self, tmp_path: Path) -> None:
        runner = GitRunner(
            strategy=RecordingStrategy(outcome(returncode=-1, overflowed=True)),
            max_output_bytes=2048,
        )

        with pytest.raises(OutputLimitExceededError) as exc_info:
            await runner.run(["log", "-p"], cwd=tmp_path)

        assert exc_info.value.limit_bytes == 2048

    @pytest.mark.asyncio
    async def test_missing_cwd_never_spawns(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(strategy=strategy)

        with pytest.raises(WorkingDirectoryError):
            await runner.run(["status"], cwd=tmp_path / "missing")

        assert strategy.calls == []

    @pytest.mark.asyncio
    async def test_null_byte_never_spawns(self, tmp_path: Path) -> None:
        strategy = RecordingStrategy()
        runner = GitRunner(strategy=strategy)

        with pytest.raises(GitValidationError):
            await runner.run(["commit", "-m", "a\x00b"], cwd=tmp_path)

        assert strategy.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [FileNotFoundError("git"), PermissionError("git")])
    async def test_unrunnable_binary(self, tmp_path: Path, error: Exception) -> None:
        runner = GitRunner(strategy=RecordingStrategy(error=error))

        with pytest.raises(GitNotFoundError):
            await runner.run(["status"], cwd=tmp_path)


class TestGitRunnerConfig:
    """Tests for construction from configuration."""

    def test_from_config(self) -> None:
        config = ExecutionConfig(
            git_binary="/usr/bin/git",
            timeout_seconds=12,
            max_output_bytes=4096,
            spawn_strategy="thread",
            extra_env={"GIT_AUTHOR_NAME": "Bot"},
        )

        runner = GitRunner.from_config(config)

        assert runner.git_binary == "/usr/bin/git"
        assert runner.timeout == 12
        assert runner.max_output_bytes == 4096
        assert isinstance(runner.strategy, ThreadedSpawnStrategy)
        assert runner.build_env()["GIT_AUTHOR_NAME"] == "Bot"

    def test_map_failure_delegates(self, tmp_path: Path) -> None:
        runner = GitRunner(strategy=RecordingStrategy())
        error = runner.map_failure(
            make_result(exit_code=1, stderr="error: no such remote 'up'"),
            operation="remote",
            path=tmp_path,
        )
        assert isinstance(error, RefNotFoundError)
