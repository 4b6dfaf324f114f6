"""Tests for GitService dispatch, caching and invalidation."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from gitbridge.cache import RepositoryStateCache
from gitbridge.config import GitBridgeConfig, load_config
from gitbridge.exceptions import GitValidationError, LockContentionError
from gitbridge.models import (
    BranchListResult,
    OperationRequest,
    StatusResult,
)
from gitbridge.service import GitService, WorkingDirectoryResolver
from tests.fixtures.runners import make_result

BRANCH_LIST = "refs/heads/main\x1f" + "a" * 40 + "\x1f\x1f\x1f*\n"


@pytest.fixture
def service_config(
    clean_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> GitBridgeConfig:
    """Config loaded with no project or user YAML files in reach."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.chdir(tmp_path)
    return load_config(execution={"network_timeout_seconds": 300})


@pytest.fixture
def cache() -> RepositoryStateCache:
    return RepositoryStateCache(ttl_seconds=60, max_entries=100)


@pytest.fixture
def service(
    service_config: GitBridgeConfig, mock_runner: AsyncMock, cache: RepositoryStateCache
) -> GitService:
    mock_runner.run.return_value = make_result(stdout=BRANCH_LIST)
    return GitService(service_config, runner=mock_runner, cache=cache)


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    path = tmp_path / "repo"
    path.mkdir()
    return path


class TestDispatch:
    @pytest.mark.asyncio
    async def test_runs_executor(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        result = await service.run("branch", {}, tenant_id="acme", working_directory=repo)

        assert isinstance(result, BranchListResult)
        assert result.current is not None
        kwargs = mock_runner.run.call_args[1]
        assert kwargs["cwd"] == repo.resolve()
        assert kwargs["timeout"] is None

    @pytest.mark.asyncio
    async def test_execute_request(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        mock_runner.run.return_value = make_result(stdout="# branch.head main\n")
        request = OperationRequest.create(
            "status", None, working_directory=repo, tenant_id="acme"
        )

        result = await service.execute(request)

        assert isinstance(result, StatusResult)
        assert result.current_branch == "main"

    @pytest.mark.asyncio
    async def test_validation_failure_spawns_nothing(
        self,
        service: GitService,
        mock_runner: AsyncMock,
        cache: RepositoryStateCache,
        repo: Path,
    ) -> None:
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        mock_runner.run.reset_mock()

        with pytest.raises(GitValidationError) as exc_info:
            await service.run("commit", {}, tenant_id="acme", working_directory=repo)

        assert exc_info.value.field == "message"
        mock_runner.run.assert_not_awaited()
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_missing_working_directory(self, service: GitService) -> None:
        with pytest.raises(GitValidationError) as exc_info:
            await service.run("status", tenant_id="acme")
        assert exc_info.value.field == "working_directory"

    @pytest.mark.asyncio
    async def test_resolver_supplies_working_directory(
        self,
        service_config: GitBridgeConfig,
        mock_runner: AsyncMock,
        repo: Path,
    ) -> None:
        class SessionDirectories:
            def get_working_directory(self, tenant_id: str) -> Path | None:
                return repo if tenant_id == "acme" else None

        resolver = SessionDirectories()
        assert isinstance(resolver, WorkingDirectoryResolver)
        service = GitService(service_config, runner=mock_runner, resolver=resolver)

        await service.run("tag", {}, tenant_id="acme")

        assert mock_runner.run.call_args[1]["cwd"] == repo.resolve()
        with pytest.raises(GitValidationError):
            await service.run("tag", {}, tenant_id="other")


class TestConstruction:
    def test_injected_dependencies_kept_even_when_empty(
        self,
        service_config: GitBridgeConfig,
        mock_runner: AsyncMock,
    ) -> None:
        empty = RepositoryStateCache(ttl_seconds=60, max_entries=10)
        disabled = RepositoryStateCache(enabled=False)
        assert len(empty) == 0

        first = GitService(service_config, runner=mock_runner, cache=empty)
        second = GitService(service_config, runner=mock_runner, cache=disabled)

        assert first.cache is empty
        assert first.runner is mock_runner
        assert first.config is service_config
        assert second.cache is disabled
        assert second.cache.enabled is False


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_network_timeout_applied(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        await service.run("fetch", {}, tenant_id="acme", working_directory=repo)
        assert mock_runner.run.call_args[1]["timeout"] == 300

    @pytest.mark.asyncio
    async def test_request_timeout_wins(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        await service.run(
            "push", {}, tenant_id="acme", working_directory=repo, timeout=12.5
        )
        assert mock_runner.run.call_args[1]["timeout"] == 12.5


class TestCaching:
    @pytest.mark.asyncio
    async def test_repeated_read_served_from_cache(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        first = await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        second = await service.run("branch", {}, tenant_id="acme", working_directory=repo)

        assert first == second
        assert mock_runner.run.await_count == 1

    @pytest.mark.asyncio
    async def test_different_options_are_different_entries(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        await service.run(
            "branch", {"remote": True}, tenant_id="acme", working_directory=repo
        )
        assert mock_runner.run.await_count == 2

    @pytest.mark.asyncio
    async def test_tenants_isolated(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        await service.run("branch", {}, tenant_id="globex", working_directory=repo)
        assert mock_runner.run.await_count == 2

    @pytest.mark.asyncio
    async def test_status_never_cached(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        await service.run("status", {}, tenant_id="acme", working_directory=repo)
        await service.run("status", {}, tenant_id="acme", working_directory=repo)
        assert mock_runner.run.await_count == 2

    @pytest.mark.asyncio
    async def test_unstaged_diff_never_cached(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        await service.run("diff", {}, tenant_id="acme", working_directory=repo)
        await service.run("diff", {}, tenant_id="acme", working_directory=repo)
        assert mock_runner.run.await_count == 2

    @pytest.mark.asyncio
    async def test_staged_diff_invalidated_by_add(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        staged = {"mode": "staged"}
        await service.run("diff", staged, tenant_id="acme", working_directory=repo)
        await service.run("diff", staged, tenant_id="acme", working_directory=repo)
        assert mock_runner.run.await_count == 1

        await service.run("add", {"paths": ["a.py"]}, tenant_id="acme", working_directory=repo)
        await service.run("diff", staged, tenant_id="acme", working_directory=repo)

        assert mock_runner.run.await_count == 3

    @pytest.mark.asyncio
    async def test_fetch_invalidates_commit_reads(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        show = {"ref": "origin/main", "path": "README.md"}
        await service.run("show", show, tenant_id="acme", working_directory=repo)
        await service.run("reflog", {}, tenant_id="acme", working_directory=repo)
        await service.run("fetch", {}, tenant_id="acme", working_directory=repo)
        mock_runner.run.reset_mock()

        await service.run("show", show, tenant_id="acme", working_directory=repo)
        await service.run("reflog", {}, tenant_id="acme", working_directory=repo)

        assert mock_runner.run.await_count == 2

    @pytest.mark.asyncio
    async def test_branch_create_invalidates_branch_list(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        await service.run(
            "branch",
            {"mode": "create", "name": "topic"},
            tenant_id="acme",
            working_directory=repo,
        )
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)

        assert mock_runner.run.await_count == 3

    @pytest.mark.asyncio
    async def test_write_leaves_other_tenants_and_tags(
        self,
        service: GitService,
        mock_runner: AsyncMock,
        cache: RepositoryStateCache,
        repo: Path,
    ) -> None:
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        await service.run("branch", {}, tenant_id="globex", working_directory=repo)
        await service.run("tag", {}, tenant_id="acme", working_directory=repo)

        await service.run(
            "tag", {"mode": "create", "name": "v1"}, tenant_id="acme", working_directory=repo
        )

        assert len(cache) == 2
        mock_runner.run.reset_mock()
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        await service.run("branch", {}, tenant_id="globex", working_directory=repo)
        mock_runner.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_write_does_not_invalidate(
        self,
        service: GitService,
        mock_runner: AsyncMock,
        cache: RepositoryStateCache,
        repo: Path,
    ) -> None:
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        mock_runner.run.side_effect = LockContentionError("index.lock exists")

        with pytest.raises(LockContentionError):
            await service.run(
                "branch",
                {"mode": "delete", "name": "old"},
                tenant_id="acme",
                working_directory=repo,
            )

        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_init_invalidates_target_path(
        self,
        service: GitService,
        mock_runner: AsyncMock,
        cache: RepositoryStateCache,
        tmp_path: Path,
        repo: Path,
    ) -> None:
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)

        await service.run(
            "init", {"path": "repo"}, tenant_id="acme", working_directory=tmp_path
        )

        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_disabled_cache(
        self,
        service_config: GitBridgeConfig,
        mock_runner: AsyncMock,
        repo: Path,
    ) -> None:
        mock_runner.run.return_value = make_result(stdout=BRANCH_LIST)
        service = GitService(
            service_config,
            runner=mock_runner,
            cache=RepositoryStateCache(enabled=False),
        )

        await service.run("branch", {}, tenant_id="acme", working_directory=repo)
        await service.run("branch", {}, tenant_id="acme", working_directory=repo)

        assert mock_runner.run.await_count == 2


class TestLockContentionRetry:
    @pytest.mark.asyncio
    async def test_retried_when_requested(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        mock_runner.run.side_effect = [
            LockContentionError("Unable to create '.git/index.lock': File exists."),
            make_result(),
        ]
        request = OperationRequest.create(
            "add", {"paths": ["a.py"]}, working_directory=repo, tenant_id="acme"
        )

        result = await service.execute(request, retry_lock_contention=True)

        assert result.success is True
        assert mock_runner.run.await_count == 2

    @pytest.mark.asyncio
    async def test_not_retried_by_default(
        self, service: GitService, mock_runner: AsyncMock, repo: Path
    ) -> None:
        mock_runner.run.side_effect = LockContentionError("index.lock")
        request = OperationRequest.create(
            "add", {}, working_directory=repo, tenant_id="acme"
        )

        with pytest.raises(LockContentionError):
            await service.execute(request)

        assert mock_runner.run.await_count == 1
