"""Test configuration and fixtures."""

from pathlib import Path
from typing import Callable, Generator, Optional

import pytest
from git import Actor, Repo

from brancher.errors import VcsOperationError

AUTHOR = Actor("Test User", "test@example.com")


def commit_file(repo: Repo, name: str, content: str, message: Optional[str] = None) -> str:
    """Write a file, commit it and return the commit sha."""
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message or f"Update {name}", author=AUTHOR, committer=AUTHOR).hexsha


@pytest.fixture
def commit() -> Callable[..., str]:
    """Commit helper."""
    return commit_file


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    The local repository has `dev`, `release-1` and `release-2`, all pushed to
    the remote, and `dev` is checked out.

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    Repo.init(remote_path, bare=True)
    local_repo = Repo.init(local_path)

    local_repo.config_writer().set_value("user", "name", AUTHOR.name).release()
    local_repo.config_writer().set_value("user", "email", AUTHOR.email).release()
    local_repo.config_writer().set_value("commit", "gpgsign", "false").release()

    commit_file(local_repo, "README.md", "# Test Repository\n", "Initial commit")

    origin = local_repo.create_remote("origin", url=str(remote_path))

    dev = local_repo.create_head("dev")
    dev.checkout()
    origin.push("dev")
    dev.set_tracking_branch(origin.refs.dev)

    for name in ("release-1", "release-2"):
        release = local_repo.create_head(name, "dev")
        release.checkout()
        commit_file(local_repo, "VERSION", f"{name}\n", f"Prepare {name}")
        origin.push(name)
        release.set_tracking_branch(origin.refs[name])

    dev.checkout()

    yield local_path, remote_path


class FakeRepo:
    """Stands in for GitRepo and records every mutating call."""

    def __init__(
        self,
        branch: str = "dev",
        status: str = "",
        branches: str = "  dev\n  release-1\n  release-2",
        conflict_status: str = "",
    ) -> None:
        self.branch = branch
        self.status_text = status
        self.branches = branches
        self.conflict_status = conflict_status
        self.failures: set[tuple] = set()
        self.calls: list[tuple] = []
        self.created: list[str] = []

    def fail_on(self, *call: str) -> None:
        self.failures.add(call)

    def status(self, short: bool = True) -> str:
        return self.status_text

    def change_count(self) -> int:
        return sum(1 for line in self.status_text.splitlines() if line and not line.startswith("??"))

    def get_current_branch_name(self) -> str:
        return self.branch

    def list_branches(self) -> str:
        return self.branches

    def pull(self, remote: str, branch: str, rebase: bool = True) -> None:
        self._record("pull", remote, branch)

    def checkout(self, branch: str, create: bool = False) -> None:
        self._record("checkout", branch)
        if create:
            self.created.append(branch)
        self.branch = branch

    def merge(self, branch: str, no_ff: bool = True) -> None:
        try:
            self._record("merge", branch, self.branch)
        except VcsOperationError:
            self.status_text = self.conflict_status
            raise

    def push(self, remote: str, branch: str) -> None:
        self._record("push", remote, branch)

    def _record(self, *call: str) -> None:
        self.calls.append(call)
        if call in self.failures:
            raise VcsOperationError(f"Failed to {call[0]} {call[1]}")


@pytest.fixture
def make_repo() -> Callable[..., FakeRepo]:
    """Factory for fake repositories, clean and on `dev` by default."""
    return FakeRepo
