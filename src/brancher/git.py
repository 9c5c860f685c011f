"""Git repository operations."""

import logging
from pathlib import Path

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from brancher.errors import VcsOperationError

logger = logging.getLogger(__name__)


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Initialize repository."""
        try:
            self.repo: Repo = Repo(path)
            if self.repo.bare:
                raise VcsOperationError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise VcsOperationError(f"Failed to open repository: {err}") from err

    def status(self, short: bool = True) -> str:
        """Get working tree status.

        Args:
            short: Return porcelain output ("XY path" per entry) instead of the long form
        """
        try:
            if short:
                return self.repo.git.status("--porcelain")
            return self.repo.git.status()
        except GitCommandError as err:
            raise VcsOperationError(f"Failed to get status: {err}") from err

    def change_count(self) -> int:
        """Count tracked files with pending changes. Untracked files are ignored."""
        return sum(1 for line in self.status(short=True).splitlines() if line and not line.startswith("??"))

    def get_current_branch_name(self) -> str:
        """Get current branch name."""
        try:
            try:
                return self.repo.active_branch.name
            except TypeError:
                # We're in a detached HEAD state
                return ""
        except (GitCommandError, ValueError) as err:
            raise VcsOperationError(f"Failed to get current branch: {err}") from err

    def list_branches(self) -> str:
        """List local branches as printed by `git branch`, current branch marked with `*`."""
        try:
            return self.repo.git.branch()
        except GitCommandError as err:
            raise VcsOperationError(f"Failed to list branches: {err}") from err

    def pull(self, remote: str, branch: str, rebase: bool = True) -> None:
        """Pull a branch from a remote into the current branch."""
        args = ["--rebase"] if rebase else []
        try:
            logger.info("pulling %s/%s", remote, branch)
            self.repo.git.pull(*args, remote, branch)
        except GitCommandError as err:
            raise VcsOperationError(f"Failed to pull {remote}/{branch}: {err}") from err

    def checkout(self, branch: str, create: bool = False) -> None:
        """Check out a branch, optionally creating it from the current HEAD."""
        args = ["-b", branch] if create else [branch]
        try:
            logger.info("checking out %s%s", branch, " (new)" if create else "")
            self.repo.git.checkout(*args)
        except GitCommandError as err:
            raise VcsOperationError(f"Failed to check out {branch}: {err}") from err

    def merge(self, branch: str, no_ff: bool = True) -> None:
        """Merge a branch into the current branch without opening an editor."""
        args = ["--no-ff"] if no_ff else []
        try:
            logger.info("merging %s into %s", branch, self.get_current_branch_name())
            self.repo.git.merge(*args, "--no-edit", branch)
        except GitCommandError as err:
            raise VcsOperationError(f"Failed to merge {branch}: {err}") from err

    def push(self, remote: str, branch: str) -> None:
        """Push a local branch to a remote."""
        try:
            logger.info("pushing %s to %s", branch, remote)
            self.repo.git.push(remote, branch)
        except GitCommandError as err:
            raise VcsOperationError(f"Failed to push {branch} to {remote}: {err}") from err
