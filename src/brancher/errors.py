"""Workflow errors."""

from typing import Optional


class BrancherError(Exception):
    """Base workflow error."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        """Initialize error.

        Args:
            message: Error message
            hint: Optional remediation shown below the message
        """
        super().__init__(message)
        self.message = message
        self.hint = hint
        # Set by the workflow once the error ends a command
        self.command: Optional[str] = None


class PreconditionError(BrancherError):
    """The repository is not in a state the command can start from."""


class DirtyTreeError(PreconditionError):
    """Working directory has uncommitted changes."""

    def __init__(self) -> None:
        super().__init__(
            "working directory is dirty. run `git add` and `git commit` to save your changes",
        )


class WrongBranchError(PreconditionError):
    """Current branch does not match what the command expects."""

    def __init__(self, actual: str, expected: str, hint: Optional[str] = None) -> None:
        self.actual = actual
        self.expected = expected
        current = f'"{actual}"' if actual else "a detached HEAD"
        super().__init__(f"please start from {expected}. currently on {current}", hint)


class InvalidNameError(PreconditionError):
    """A task or fix name could not be turned into a branch name."""


class ResolverError(BrancherError):
    """The release branch to work against could not be determined."""


class NoReleaseBranchFoundError(ResolverError):
    """No local branch carries the release prefix."""

    def __init__(self, prefix: str) -> None:
        super().__init__(
            f'no "{prefix}" branch found',
            hint=f"run `git branch -a` to check the local {prefix} branches",
        )


class MalformedBranchNameError(ResolverError):
    """A release branch name has no numeric version token."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'release branch "{name}" has no numeric version')


class MergeAbortedError(BrancherError):
    """A merge stopped and needs manual resolution."""

    def __init__(self, source: str, target: str, paths: list[str], reason: Optional[str] = None) -> None:
        self.source = source
        self.target = target
        self.paths = paths
        if paths:
            message = f'merging "{source}" into "{target}" left {len(paths)} conflicted file(s)'
            hint = "resolve the conflicts, or run `git merge --abort` to cancel the merge"
        else:
            # No conflicts, so git refused the merge before starting it
            message = f'merging "{source}" into "{target}" failed'
            if reason:
                message = f"{message}: {reason}"
            hint = "run `git status` to check the repository state"
        super().__init__(message, hint)


class VcsOperationError(BrancherError):
    """Git operation error."""


class PullFailedWarning(BrancherError):
    """Pull before branching failed. Never raised, only recorded."""

    def __init__(self, remote: str, branch: str, reason: str) -> None:
        self.remote = remote
        self.branch = branch
        super().__init__(f"pull of {remote}/{branch} not possible, continuing on local state: {reason}")
