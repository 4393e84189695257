"""
Progress Tracker Module

Wraps the rich library to show synthesis progress when the CLI processes
several profiles in one run.

Example Usage:
    from src.utils.progress_tracker import ProgressTracker

    tracker = ProgressTracker()
    tracker.start("Synthesizing recommendations", total_items=4)
    tracker.advance(profile_id="student-2")
    tracker.complete()
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressTracker:
    """Single progress bar over a set of synthesis requests."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()
        self.progress: Optional[Progress] = None
        self.task_id: Optional[TaskID] = None
        self.description = ""
        self.total_items = 0
        self.completed_items = 0
        self.failed_items = 0

    def start(self, description: str, total_items: int) -> None:
        """
        Show a progress bar for ``total_items`` requests.

        Displays: "Synthesizing recommendations [0/4]"
        """
        self.description = description
        self.total_items = total_items
        self.completed_items = 0
        self.failed_items = 0

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TextColumn("({task.completed}/{task.total})"),
            TimeElapsedColumn(),
            console=self.console,
        )
        self.progress.start()
        self.task_id = self.progress.add_task(description=description, total=total_items)

    def advance(self, profile_id: str = "", failed: bool = False) -> None:
        """Record one finished request."""
        if self.progress is None or self.task_id is None:
            return

        self.completed_items += 1
        if failed:
            self.failed_items += 1
        description = self.description
        if profile_id:
            description += f" - last: {profile_id}"
        self.progress.update(self.task_id, advance=1, description=description)

    def complete(self) -> None:
        """Stop the bar and print a one-line summary."""
        if self.progress is None or self.task_id is None:
            return

        self.progress.stop()
        summary = f"[bold green]{self.description} complete:[/bold green] {self.completed_items} processed"
        if self.failed_items:
            summary += f", [red]{self.failed_items} failed[/red]"
        self.console.print(summary)

        self.progress = None
        self.task_id = None

    def is_active(self) -> bool:
        return self.progress is not None
