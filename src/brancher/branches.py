"""Branch naming convention.

Branch names are parsed once, where they come out of git, into a BranchName
whose role is derived from its prefix:

- ``dev``: shared integration branch
- ``release-<N>``: release line with integer version ``N``
- ``task/<slug>`` and ``fix/<slug>``: one unit of work
- anything else
"""

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from brancher.config import DEFAULT_SETTINGS, BrancherSettings
from brancher.errors import MalformedBranchNameError

# Markers `git branch` puts in front of the current branch and of branches
# checked out in another worktree
_LISTING_MARKERS = ("* ", "+ ")
_VERSION_TOKEN = re.compile(r"[0-9]+")


class BranchRole(Enum):
    """Branch role."""

    DEV = "dev"
    RELEASE = "release"
    TASK = "task"
    FIX = "fix"
    OTHER = "other"


@dataclass(frozen=True)
class BranchName:
    """A parsed branch name."""

    name: str
    role: BranchRole
    version: Optional[int] = None
    slug: Optional[str] = None

    def __str__(self) -> str:
        return self.name

    @property
    def is_dev(self) -> bool:
        """True for the shared integration branch."""
        return self.role == BranchRole.DEV

    @property
    def is_release(self) -> bool:
        """True for a release line, whether or not its version parsed."""
        return self.role == BranchRole.RELEASE

    @property
    def is_task(self) -> bool:
        """True for a task branch."""
        return self.role == BranchRole.TASK

    @property
    def is_fix(self) -> bool:
        """True for a fix branch."""
        return self.role == BranchRole.FIX


def parse_branch(name: str, settings: Optional[BrancherSettings] = None) -> BranchName:
    """Parse a branch name into its role.

    Release branches whose version token is missing or not a number still get
    the RELEASE role, with ``version`` left as None.
    """
    settings = settings or DEFAULT_SETTINGS
    name = name.strip()

    if name == settings.dev_branch:
        return BranchName(name, BranchRole.DEV)
    if name.startswith(settings.task_prefix):
        return BranchName(name, BranchRole.TASK, slug=name[len(settings.task_prefix) :])
    if name.startswith(settings.fix_prefix):
        return BranchName(name, BranchRole.FIX, slug=name[len(settings.fix_prefix) :])
    if name.startswith(settings.release_prefix):
        tokens = name.split(settings.release_delimiter)
        version = None
        if len(tokens) > 1 and _VERSION_TOKEN.fullmatch(tokens[1]):
            version = int(tokens[1])
        return BranchName(name, BranchRole.RELEASE, version=version)
    return BranchName(name, BranchRole.OTHER)


def parse_listing(listing: Union[str, Iterable[str]], settings: Optional[BrancherSettings] = None) -> list[BranchName]:
    """Parse `git branch` output, one branch per line."""
    lines = listing.splitlines() if isinstance(listing, str) else listing
    branches = []
    for line in lines:
        name = line.strip()
        for marker in _LISTING_MARKERS:
            if name.startswith(marker):
                name = name[len(marker) :].strip()
                break
        if name:
            branches.append(parse_branch(name, settings))
    return branches


def latest_release(
    listing: Union[str, Iterable[str]], settings: Optional[BrancherSettings] = None
) -> Optional[BranchName]:
    """Return the release branch with the highest version, or None if there is none.

    Among release branches sharing a version, the one listed last wins.

    Raises:
        MalformedBranchNameError: If a release branch has no numeric version
    """
    releases = [branch for branch in parse_listing(listing, settings) if branch.is_release]
    for branch in releases:
        if branch.version is None:
            raise MalformedBranchNameError(branch.name)
    if not releases:
        return None
    # sorted() is stable, equal versions keep listing order
    return sorted(releases, key=lambda branch: branch.version)[-1]


def slugify(text: str) -> str:
    """Turn free text into a branch-safe slug, e.g. "Fix Login Bug" -> "fix-login-bug"."""
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    lowered = ascii_text.strip().lower()
    cleaned = re.sub(r"[^a-z0-9]+", "-", lowered)
    return cleaned.strip("-")
