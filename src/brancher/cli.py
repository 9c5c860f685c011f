"""Command line interface for brancher."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from brancher.config import BrancherSettings, get_settings, normalize_log_level
from brancher.errors import MergeAbortedError, VcsOperationError
from brancher.git import GitRepo
from brancher.workflow import FINISH_FIX, FINISH_TASK, StepResult, Workflow

app = typer.Typer(help="Git branching workflow: task and fix branches on top of dev and release branches")
console = Console()
logger = logging.getLogger(__name__)

PathOption = Annotated[Path, typer.Option(help="Path to git repository")]
MessageOption = Annotated[Optional[str], typer.Option("-m", "--message", help="Name of the branch, prompted for if missing")]


def configure_logging(level: str) -> None:
    """Configure root logging for brancher."""
    logging.basicConfig(
        level=normalize_log_level(level),
        format="%(message)s",
        handlers=[RichHandler(show_time=False, show_path=False)],
    )


def load_settings() -> BrancherSettings:
    """Get settings, exiting with an error line when they are invalid."""
    try:
        return get_settings()
    except ValidationError as err:
        details = "; ".join(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in err.errors())
        print(f"Error: invalid configuration: {escape(details)}")
        raise typer.Exit(code=1) from err


def validate_log_level(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    try:
        return normalize_log_level(value)
    except ValueError as err:
        raise typer.BadParameter(str(err)) from err


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except VcsOperationError as err:
        print(f"Error: {escape(err.message)}")
        raise typer.Exit(code=1) from err


def log_completion(result: StepResult) -> None:
    if result.ok:
        logger.info("%s completed on %s", result.command, result.branch)
    else:
        logger.info("%s ended with an error", result.command)


def get_workflow(path: Path) -> Workflow:
    """Build the workflow for the repository at ``path``."""
    workflow = Workflow(get_repo(path), load_settings(), prompt=typer.prompt)
    workflow.subscribe(FINISH_TASK, log_completion)
    workflow.subscribe(FINISH_FIX, log_completion)
    return workflow


def report(result: StepResult, success: str) -> None:
    """Print the outcome of a command, exiting with code 1 on failure."""
    for warning in result.warnings:
        print(f"[yellow]Warning:[/yellow] {escape(warning.message)}")

    if result.ok:
        console.print(f"[bold green]{escape(success)}[/bold green]")
        return

    err = result.error
    print(f"[red]Error:[/red] {result.command}: {escape(err.message)}")
    if isinstance(err, MergeAbortedError):
        for path in err.paths:
            print(f"  [yellow]{escape(path)}[/yellow]")
    if err.hint:
        print(f"[dim]{escape(err.hint)}[/dim]")
    raise typer.Exit(code=1)


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="Logging level, overrides BRANCHER_LOG_LEVEL", callback=validate_log_level),
    ] = None,
) -> None:
    """Git branching workflow: task and fix branches on top of dev and release branches."""
    configure_logging(log_level or load_settings().log_level)


@app.command()
def task(message: MessageOption = None, path: PathOption = Path(".")) -> None:
    """Start a task branch from dev."""
    result = get_workflow(path).start_task(message)
    report(result, f"okidoki, please start the task on {result.branch}! run `brancher task-done` when ready.")


@app.command("task-done")
def task_done(path: PathOption = Path(".")) -> None:
    """Merge the current task branch into dev."""
    result = get_workflow(path).finish_task()
    report(result, "nice. thanks for the task!")


@app.command()
def fix(message: MessageOption = None, path: PathOption = Path(".")) -> None:
    """Start a fix branch from a release branch."""
    result = get_workflow(path).start_fix(message)
    report(result, f"okidoki, please start the fix on {result.branch}! run `brancher fix-done` when ready.")


@app.command("fix-done")
def fix_done(path: PathOption = Path(".")) -> None:
    """Merge the current fix branch into the latest release branch and dev."""
    result = get_workflow(path).finish_fix()
    report(result, f"nice. thanks for the fix, now on {result.branch}. run `brancher fix-push` to publish it.")


@app.command("fix-push")
def fix_push(path: PathOption = Path(".")) -> None:
    """Push the latest release branch and dev to the remote."""
    settings = load_settings()
    result = get_workflow(path).push_fix_artifacts()
    report(result, f"pushed {result.branch} and {settings.dev_branch} to {settings.remote}")


if __name__ == "__main__":
    app()
