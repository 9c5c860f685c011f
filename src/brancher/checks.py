"""Precondition checks and merge conflict reporting."""

from typing import Callable, NoReturn, Optional

from brancher.branches import BranchName, parse_branch
from brancher.config import BrancherSettings
from brancher.errors import DirtyTreeError, MergeAbortedError, WrongBranchError
from brancher.git import GitRepo

# Porcelain XY codes for unmerged paths
UNMERGED_CODES = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})


def check_clean(repo: GitRepo) -> None:
    """Fail if the working tree has uncommitted tracked changes."""
    if repo.change_count():
        raise DirtyTreeError()


def check_branch(
    repo: GitRepo,
    expected: Callable[[BranchName], bool],
    description: str,
    settings: Optional[BrancherSettings] = None,
    hint: Optional[str] = None,
) -> BranchName:
    """Return the current branch if it satisfies ``expected``.

    Args:
        repo: Repository to query
        expected: Predicate over the parsed current branch
        description: Human readable form of the expectation, used in the error
        settings: Branch naming convention
        hint: Remediation shown when the check fails

    Raises:
        WrongBranchError: If the current branch does not satisfy ``expected``
    """
    branch = parse_branch(repo.get_current_branch_name(), settings)
    if not expected(branch):
        raise WrongBranchError(branch.name, description, hint)
    return branch


def unmerged_paths(status: str) -> list[str]:
    """Extract unmerged paths from porcelain status output, keeping their order."""
    return [line[3:] for line in status.splitlines() if line[:2] in UNMERGED_CODES]


def report_conflicts(repo: GitRepo, source: str, target: str, cause: Optional[Exception] = None) -> NoReturn:
    """Collect the conflicted files of a failed merge and abort the step."""
    paths = unmerged_paths(repo.status(short=True))
    reason = str(cause) if cause else None
    raise MergeAbortedError(source, target, paths, reason) from cause
