"""Branching workflow commands.

Each command runs its steps in order and stops at the first failure:

- ``task``: from a clean ``dev``, pull and branch off ``task/<slug>``
- ``task-done``: merge the current task branch into ``dev``
- ``fix``: from a clean release branch, pull and branch off ``fix/<slug>``
- ``fix-done``: merge the current fix branch into the latest release branch and ``dev``
- ``fix-push``: push the latest release branch and ``dev``
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from brancher.branches import BranchName, latest_release, slugify
from brancher.checks import check_branch, check_clean, report_conflicts
from brancher.config import DEFAULT_SETTINGS, BrancherSettings
from brancher.errors import (
    BrancherError,
    InvalidNameError,
    NoReleaseBranchFoundError,
    PullFailedWarning,
    VcsOperationError,
)
from brancher.git import GitRepo

logger = logging.getLogger(__name__)

START_TASK = "task"
FINISH_TASK = "task-done"
START_FIX = "fix"
FINISH_FIX = "fix-done"
PUSH_FIX = "fix-push"


@dataclass
class StepResult:
    """Outcome of one workflow command."""

    command: str
    branch: Optional[str] = None
    error: Optional[BrancherError] = None
    warnings: list[BrancherError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None


Observer = Callable[[StepResult], None]


class CompletionEvents:
    """Observers notified when a finishing command ends, successfully or not."""

    def __init__(self) -> None:
        self._observers: dict[str, list[Observer]] = {}

    def subscribe(self, event: str, observer: Observer) -> None:
        self._observers.setdefault(event, []).append(observer)

    def publish(self, event: str, result: StepResult) -> None:
        """Call observers in registration order. Observer errors propagate."""
        for observer in list(self._observers.get(event, [])):
            observer(result)


class Workflow:
    """Branching workflow on one repository."""

    def __init__(
        self,
        repo: GitRepo,
        settings: Optional[BrancherSettings] = None,
        prompt: Optional[Callable[[str], str]] = None,
        events: Optional[CompletionEvents] = None,
    ) -> None:
        """Initialize workflow.

        Args:
            repo: Repository to operate on
            settings: Branch naming convention and remote
            prompt: Asks the user for free text, used when no name is given
            events: Completion observers for ``task-done`` and ``fix-done``
        """
        self.repo = repo
        self.settings = settings or DEFAULT_SETTINGS
        self.prompt = prompt
        self.events = events or CompletionEvents()

    def subscribe(self, event: str, observer: Observer) -> None:
        self.events.subscribe(event, observer)

    def start_task(self, name: Optional[str] = None) -> StepResult:
        """Create a task branch from an up to date ``dev``."""
        return self._run(START_TASK, lambda result: self._start_task(result, name))

    def finish_task(self) -> StepResult:
        """Merge the current task branch into ``dev``."""
        return self._run(FINISH_TASK, self._finish_task, event=FINISH_TASK)

    def start_fix(self, name: Optional[str] = None) -> StepResult:
        """Create a fix branch from an up to date release branch."""
        return self._run(START_FIX, lambda result: self._start_fix(result, name))

    def finish_fix(self) -> StepResult:
        """Merge the current fix branch into the latest release branch and ``dev``."""
        return self._run(FINISH_FIX, self._finish_fix, event=FINISH_FIX)

    def push_fix_artifacts(self) -> StepResult:
        """Push the latest release branch and ``dev`` to the remote."""
        return self._run(PUSH_FIX, self._push_fix_artifacts)

    def latest_release(self) -> BranchName:
        """Resolve the latest release branch from the live branch listing."""
        release = latest_release(self.repo.list_branches(), self.settings)
        if release is None:
            raise NoReleaseBranchFoundError(self.settings.release_prefix)
        logger.info("assuming latest release branch is %s", release)
        return release

    def _run(self, command: str, pipeline: Callable[[StepResult], str], event: Optional[str] = None) -> StepResult:
        result = StepResult(command=command)
        try:
            result.branch = pipeline(result)
        except BrancherError as err:
            err.command = command
            result.error = err
            logger.debug("%s failed: %s", command, err)
        except Exception as err:
            # Observers still see the failure, the exception itself propagates
            result.error = BrancherError(f"unexpected error: {err}")
            result.error.command = command
            raise
        finally:
            if event:
                self.events.publish(event, result)
        return result

    def _start_task(self, result: StepResult, name: Optional[str]) -> str:
        dev = self.settings.dev_branch
        check_clean(self.repo)
        check_branch(self.repo, lambda branch: branch.is_dev, f'"{dev}" branch', self.settings)
        self._pull(dev, result)
        task_branch = self._branch_name("task", self.settings.task_prefix, name)
        self.repo.checkout(task_branch, create=True)
        return task_branch

    def _finish_task(self, result: StepResult) -> str:
        task = check_branch(
            self.repo,
            lambda branch: branch.is_task,
            f'a "{self.settings.task_prefix}" branch',
            self.settings,
        )
        check_clean(self.repo)
        self._merge(task.name, self.settings.dev_branch)
        return self.settings.dev_branch

    def _start_fix(self, result: StepResult, name: Optional[str]) -> str:
        prefix = self.settings.release_prefix
        check_clean(self.repo)
        release = check_branch(
            self.repo,
            lambda branch: branch.is_release,
            f'a "{prefix}" branch',
            self.settings,
            hint=f"run `git checkout {prefix}{self.settings.release_delimiter}X` to switch to an existing release branch",
        )
        self._pull(release.name, result)
        fix_branch = self._branch_name("fix", self.settings.fix_prefix, name)
        self.repo.checkout(fix_branch, create=True)
        return fix_branch

    def _finish_fix(self, result: StepResult) -> str:
        check_clean(self.repo)
        fix = check_branch(
            self.repo,
            lambda branch: branch.is_fix,
            f'a "{self.settings.fix_prefix}" branch',
            self.settings,
        )
        release = self.latest_release()
        self._merge(fix.name, release.name)
        self._merge(fix.name, self.settings.dev_branch)
        self.repo.checkout(release.name)
        return release.name

    def _push_fix_artifacts(self, result: StepResult) -> str:
        release = self.latest_release()
        self.repo.push(self.settings.remote, release.name)
        self.repo.push(self.settings.remote, self.settings.dev_branch)
        return release.name

    def _pull(self, branch: str, result: StepResult) -> None:
        try:
            self.repo.pull(self.settings.remote, branch, rebase=True)
        except VcsOperationError as err:
            warning = PullFailedWarning(self.settings.remote, branch, err.message)
            logger.warning("%s", warning)
            result.warnings.append(warning)

    def _branch_name(self, kind: str, prefix: str, name: Optional[str]) -> str:
        if not name:
            if self.prompt is None:
                raise InvalidNameError(f"no {kind} name given", hint="pass one with -m")
            name = self.prompt(f"{kind} name")
        slug = slugify(name or "")
        if not slug:
            raise InvalidNameError(f'{kind} name "{name}" has no usable characters')
        return f"{prefix}{slug}"

    def _merge(self, source: str, target: str) -> None:
        self.repo.checkout(target)
        try:
            self.repo.merge(source, no_ff=True)
        except VcsOperationError as err:
            report_conflicts(self.repo, source, target, err)
