"""End-to-end tests against a real git executable.

Each test gets a fresh repository under ``tmp_path`` and drives it only
through :class:`GitService`, so argument building, process execution and
parsing are exercised together.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from gitbridge.config import GitBridgeConfig, load_config
from gitbridge.exceptions import GitValidationError, RefNotFoundError
from gitbridge.models import OperationState
from gitbridge.service import GitService

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed"),
]

TENANT = "integration"

#: Identity and isolation from the developer's own git configuration.
GIT_TEST_ENV = {
    "GIT_AUTHOR_NAME": "Ada Lovelace",
    "GIT_AUTHOR_EMAIL": "ada@example.com",
    "GIT_COMMITTER_NAME": "Ada Lovelace",
    "GIT_COMMITTER_EMAIL": "ada@example.com",
    "GIT_CONFIG_GLOBAL": "/dev/null",
    "GIT_CONFIG_NOSYSTEM": "1",
}


@pytest.fixture
def config(clean_env: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> GitBridgeConfig:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    monkeypatch.chdir(tmp_path)
    return load_config(
        execution={"extra_env": GIT_TEST_ENV, "timeout_seconds": 30},
        signing={"sign_commits": False, "sign_tags": False},
    )


@pytest.fixture
def service(config: GitBridgeConfig) -> GitService:
    return GitService(config)


async def _init_repo(service: GitService, tmp_path: Path) -> Path:
    """Initialize a repository with one commit on ``main``."""
    await service.run("init", {"path": "repo"}, tenant_id=TENANT, working_directory=tmp_path)
    path = (tmp_path / "repo").resolve()
    (path / "README.md").write_text("hello\n")
    await service.run("add", {}, tenant_id=TENANT, working_directory=path)
    await service.run(
        "commit", {"message": "Initial commit"}, tenant_id=TENANT, working_directory=path
    )
    return path


async def _commit_file(service: GitService, repo: Path, name: str, text: str, message: str) -> None:
    (repo / name).write_text(text)
    await service.run("add", {"paths": [name]}, tenant_id=TENANT, working_directory=repo)
    await service.run("commit", {"message": message}, tenant_id=TENANT, working_directory=repo)


class TestRepositoryLifecycle:
    @pytest.mark.asyncio
    async def test_init(self, service: GitService, tmp_path: Path) -> None:
        result = await service.run(
            "init", {"path": "fresh", "initial_branch": "trunk"}, tenant_id=TENANT, working_directory=tmp_path
        )

        assert result.path == str((tmp_path / "fresh").resolve())
        assert result.initial_branch == "trunk"
        assert (tmp_path / "fresh" / ".git").is_dir()

    @pytest.mark.asyncio
    async def test_commit_and_log(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        (repo / "app.py").write_text("print('hi')\n")
        await service.run("add", {"paths": ["app.py"]}, tenant_id=TENANT, working_directory=repo)

        commit = await service.run(
            "commit",
            {"message": "Add app\n\nWith a body."},
            tenant_id=TENANT,
            working_directory=repo,
        )
        log = await service.run("log", {"max_count": 5}, tenant_id=TENANT, working_directory=repo)

        assert len(commit.commit_hash) == 40
        assert commit.author == "Ada Lovelace"
        assert commit.files_changed == ("app.py",)
        assert commit.signed is False
        assert [c.subject for c in log.commits] == ["Add app", "Initial commit"]
        assert log.commits[0].hash == commit.commit_hash
        assert log.commits[0].body == "With a body."
        assert log.commits[0].parents == (log.commits[1].hash,)

    @pytest.mark.asyncio
    async def test_log_with_stat_and_patch(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await _commit_file(service, repo, "a.txt", "a\n", "Add a")

        log = await service.run(
            "log",
            {"max_count": 2, "stat": True, "patch": True},
            tenant_id=TENANT,
            working_directory=repo,
        )

        assert len(log.commits) == 2
        for commit in log.commits:
            assert commit.stat is not None
            assert "changed" in commit.stat
            assert commit.patch is not None
            assert commit.patch.startswith("diff --git")

    @pytest.mark.asyncio
    async def test_status(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        clean = await service.run("status", {}, tenant_id=TENANT, working_directory=repo)
        (repo / "README.md").write_text("changed\n")
        (repo / "notes.txt").write_text("n\n")
        dirty = await service.run("status", {}, tenant_id=TENANT, working_directory=repo)

        assert clean.is_clean is True
        assert clean.current_branch == "main"
        assert dirty.is_clean is False
        assert dirty.unstaged.modified == ("README.md",)
        assert dirty.untracked_files == ("notes.txt",)


class TestBranches:
    @pytest.mark.asyncio
    async def test_create_invalidates_cached_list(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        before = await service.run("branch", {}, tenant_id=TENANT, working_directory=repo)
        await service.run(
            "branch", {"mode": "create", "name": "topic"}, tenant_id=TENANT, working_directory=repo
        )
        after = await service.run("branch", {}, tenant_id=TENANT, working_directory=repo)

        assert [b.name for b in before.branches] == ["main"]
        assert [b.name for b in after.branches] == ["main", "topic"]
        assert after.current is not None
        assert after.current.name == "main"

    @pytest.mark.asyncio
    async def test_checkout_and_delete(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await service.run(
            "checkout",
            {"target": "topic", "create_branch": True},
            tenant_id=TENANT,
            working_directory=repo,
        )
        status = await service.run("status", {}, tenant_id=TENANT, working_directory=repo)
        await service.run("checkout", {"target": "main"}, tenant_id=TENANT, working_directory=repo)
        deleted = await service.run(
            "branch", {"mode": "delete", "name": "topic"}, tenant_id=TENANT, working_directory=repo
        )

        assert status.current_branch == "topic"
        assert deleted.deleted == "topic"

    @pytest.mark.asyncio
    async def test_missing_branch(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        with pytest.raises(RefNotFoundError) as exc_info:
            await service.run(
                "checkout", {"target": "no-such-branch"}, tenant_id=TENANT, working_directory=repo
            )
        assert exc_info.value.operation == "checkout"
        assert exc_info.value.raw_stderr


class TestMergeConflicts:
    @pytest.mark.asyncio
    async def test_conflict_reported_then_aborted(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await service.run(
            "checkout", {"target": "topic", "create_branch": True}, tenant_id=TENANT, working_directory=repo
        )
        await _commit_file(service, repo, "README.md", "topic\n", "Topic change")
        await service.run("checkout", {"target": "main"}, tenant_id=TENANT, working_directory=repo)
        await _commit_file(service, repo, "README.md", "main\n", "Main change")

        merge = await service.run(
            "merge", {"branch": "topic"}, tenant_id=TENANT, working_directory=repo
        )
        status = await service.run("status", {}, tenant_id=TENANT, working_directory=repo)
        aborted = await service.run(
            "merge", {"abort": True}, tenant_id=TENANT, working_directory=repo
        )
        after = await service.run("status", {}, tenant_id=TENANT, working_directory=repo)

        assert merge.success is False
        assert merge.conflicts is True
        assert merge.conflicted_files == ("README.md",)
        assert status.conflicted_files == ("README.md",)
        assert aborted.aborted is True
        assert after.is_clean is True

    @pytest.mark.asyncio
    async def test_fast_forward(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await service.run(
            "checkout", {"target": "topic", "create_branch": True}, tenant_id=TENANT, working_directory=repo
        )
        await _commit_file(service, repo, "b.txt", "b\n", "Add b")
        await service.run("checkout", {"target": "main"}, tenant_id=TENANT, working_directory=repo)

        merge = await service.run(
            "merge", {"branch": "topic"}, tenant_id=TENANT, working_directory=repo
        )

        assert merge.success is True
        assert merge.fast_forward is True
        assert merge.merged_files == ("b.txt",)

    @pytest.mark.asyncio
    async def test_rebase_abort(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await service.run(
            "checkout", {"target": "topic", "create_branch": True}, tenant_id=TENANT, working_directory=repo
        )
        await _commit_file(service, repo, "README.md", "topic\n", "Topic change")
        await service.run("checkout", {"target": "main"}, tenant_id=TENANT, working_directory=repo)
        await _commit_file(service, repo, "README.md", "main\n", "Main change")
        await service.run("checkout", {"target": "topic"}, tenant_id=TENANT, working_directory=repo)

        rebase = await service.run(
            "rebase", {"upstream": "main"}, tenant_id=TENANT, working_directory=repo
        )
        aborted = await service.run(
            "rebase", {"mode": "abort"}, tenant_id=TENANT, working_directory=repo
        )

        assert rebase.success is False
        assert rebase.state is OperationState.CONFLICTED
        assert aborted.state is OperationState.ABORTED

    @pytest.mark.asyncio
    async def test_rebase_continue_after_resolving(
        self, service: GitService, tmp_path: Path
    ) -> None:
        repo = await _init_repo(service, tmp_path)
        await service.run(
            "checkout", {"target": "topic", "create_branch": True}, tenant_id=TENANT, working_directory=repo
        )
        await _commit_file(service, repo, "README.md", "topic\n", "Topic change")
        await service.run("checkout", {"target": "main"}, tenant_id=TENANT, working_directory=repo)
        await _commit_file(service, repo, "README.md", "main\n", "Main change")
        await service.run("checkout", {"target": "topic"}, tenant_id=TENANT, working_directory=repo)
        started = await service.run(
            "rebase", {"upstream": "main"}, tenant_id=TENANT, working_directory=repo
        )
        (repo / "README.md").write_text("resolved\n")
        await service.run("add", {"paths": ["README.md"]}, tenant_id=TENANT, working_directory=repo)

        continued = await service.run(
            "rebase", {"mode": "continue"}, tenant_id=TENANT, working_directory=repo, timeout=20
        )
        log = await service.run("log", {"max_count": 3}, tenant_id=TENANT, working_directory=repo)
        status = await service.run("status", {}, tenant_id=TENANT, working_directory=repo)

        assert started.state is OperationState.CONFLICTED
        assert continued.success is True
        assert continued.state is OperationState.COMPLETED
        assert [c.subject for c in log.commits] == ["Topic change", "Main change", "Initial commit"]
        assert status.is_clean is True
        assert (repo / "README.md").read_text() == "resolved\n"


class TestStashAndTags:
    @pytest.mark.asyncio
    async def test_stash_roundtrip(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        (repo / "README.md").write_text("work in progress\n")

        pushed = await service.run(
            "stash", {"mode": "push", "message": "wip"}, tenant_id=TENANT, working_directory=repo
        )
        listed = await service.run("stash", {}, tenant_id=TENANT, working_directory=repo)
        popped = await service.run("stash", {"mode": "pop"}, tenant_id=TENANT, working_directory=repo)
        empty = await service.run("stash", {}, tenant_id=TENANT, working_directory=repo)

        assert pushed.created == "stash@{0}"
        assert [s.branch for s in listed.stashes] == ["main"]
        assert popped.popped is True
        assert empty.stashes == ()
        assert (repo / "README.md").read_text() == "work in progress\n"

    @pytest.mark.asyncio
    async def test_nothing_to_stash(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        pushed = await service.run(
            "stash", {"mode": "push"}, tenant_id=TENANT, working_directory=repo
        )
        assert pushed.created is None

    @pytest.mark.asyncio
    async def test_tags(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await service.run(
            "tag", {"mode": "create", "name": "v1.0", "message": "First"}, tenant_id=TENANT, working_directory=repo
        )
        await service.run(
            "tag", {"mode": "create", "name": "v1.1"}, tenant_id=TENANT, working_directory=repo
        )
        listed = await service.run("tag", {}, tenant_id=TENANT, working_directory=repo)

        assert listed.tags == ("v1.0", "v1.1")


class TestInspection:
    @pytest.mark.asyncio
    async def test_diff_modes(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await _commit_file(service, repo, "a.txt", "one\n", "Add a")
        (repo / "a.txt").write_text("two\n")
        (repo / "new.txt").write_text("new\n")

        unstaged = await service.run(
            "diff", {"include_untracked": True}, tenant_id=TENANT, working_directory=repo
        )
        await service.run("add", {"paths": ["a.txt"]}, tenant_id=TENANT, working_directory=repo)
        staged = await service.run(
            "diff", {"mode": "staged", "name_status": True}, tenant_id=TENANT, working_directory=repo
        )
        between = await service.run(
            "diff",
            {"mode": "refs", "from_ref": "HEAD~1", "to_ref": "HEAD", "name_status": True},
            tenant_id=TENANT,
            working_directory=repo,
        )

        assert "+two" in unstaged.patch
        assert unstaged.untracked_files == ("new.txt",)
        assert [(f.path, f.status) for f in staged.files] == [("a.txt", "modified")]
        assert [(f.path, f.status) for f in between.files] == [("a.txt", "added")]

    @pytest.mark.asyncio
    async def test_show_commit_and_file(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await _commit_file(service, repo, "a.txt", "first\n", "Add a")
        await _commit_file(service, repo, "a.txt", "second\n", "Change a")

        commit = await service.run("show", {}, tenant_id=TENANT, working_directory=repo)
        old = await service.run(
            "show", {"ref": "HEAD~1", "path": "a.txt"}, tenant_id=TENANT, working_directory=repo
        )

        assert commit.commit is not None
        assert commit.commit.subject == "Change a"
        assert commit.commit.patch is not None
        assert "+second" in commit.commit.patch
        assert old.content == "first\n"

    @pytest.mark.asyncio
    async def test_reflog(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        await _commit_file(service, repo, "a.txt", "a\n", "Add a")

        reflog = await service.run(
            "reflog", {"max_count": 2}, tenant_id=TENANT, working_directory=repo
        )

        assert reflog.total_count == 2
        assert reflog.entries[0].selector == "HEAD@{0}"
        assert reflog.entries[0].message.startswith("commit: Add a")
        assert reflog.entries[1].index == 1

    @pytest.mark.asyncio
    async def test_option_like_ref_rejected(self, service: GitService, tmp_path: Path) -> None:
        repo = await _init_repo(service, tmp_path)
        target = tmp_path / "x"

        with pytest.raises(GitValidationError):
            await service.run(
                "log", {"branch": f"--output={target}"}, tenant_id=TENANT, working_directory=repo
            )

        assert not target.exists()
