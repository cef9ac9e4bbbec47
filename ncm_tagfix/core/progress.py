"""
Progress bar handling for ncm-tagfix using the Rich library.

Usage:
    from ncm_tagfix.core.progress import RepairProgressBar

    with RepairProgressBar(total=len(files)) as progress:
        for future in as_completed(futures):
            status = future.result()
            progress.update(repaired=status is FileStatus.REPAIRED)
"""

from rich import get_console
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TextColumn
from rich.table import Column
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(165,66,129)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(165,66,129)",
    "progress.percentage": "white",
})

DESCRIPTION_WIDTH = 15


class RepairProgressBar:
    """
    Progress bar for a batch repair run.

    Displays:
    - Description (e.g., "Repairing")
    - Status: ✓ repaired, = unchanged, ⊘ skipped/no data, ✗ failed
    - Progress bar
    - Percentage

    Example:
        Repairing       ✓ 120  = 30  ⊘ 5  ✗ 2   ━━━━━━━━━━━━━━━━━  64%

    Supports use as a context manager or manual start()/stop().
    """

    def __init__(
        self,
        total: int,
        description: str = "Repairing",
        status_width: int = 35,
        console: Console | None = None
    ) -> None:
        """
        Initialize the progress bar.

        Args:
            total: Total number of files to process.
            description: Description to show on the left.
            status_width: Width of the status column.
            console: Console to draw on. Defaults to Rich's global console.
        """
        self.total = total
        self.description = description
        self.completed = 0
        self.repaired = 0
        self.unchanged = 0
        self.skipped = 0
        self.failed = 0

        self.console = console if console is not None else get_console()

        self.progress = Progress(
            TextColumn(
                "[white]{task.description}",
                table_column=Column(width=DESCRIPTION_WIDTH, no_wrap=True, overflow="ellipsis"),
            ),
            TextColumn(
                "{task.fields[status]}",
                style="white",
                table_column=Column(width=status_width, no_wrap=True, overflow="ellipsis"),
            ),
            BarColumn(bar_width=40, finished_style="green"),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )

        self.task_id: TaskID | None = None
        self._started = False

    def __enter__(self) -> "RepairProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        """Start the progress bar (can be called manually)."""
        if not self._started:
            self.console.push_theme(PROGRESS_THEME)
            self.progress.start()
            self.task_id = self.progress.add_task(
                description=self.description,
                total=self.total,
                status=self.status_text(),
            )
            self._started = True

    def stop(self) -> None:
        """Stop the progress bar and restore the console theme."""
        if self._started:
            self.progress.stop()
            self.console.pop_theme()
            self._started = False

    def status_text(self) -> str:
        """Markup for the status column from the current counters."""
        parts = [
            f"[green]✓ {self.repaired}[/green]",
            f"[white]= {self.unchanged}[/white]",
        ]
        if self.skipped > 0:
            parts.append(f"[yellow]⊘ {self.skipped}[/yellow]")
        parts.append(f"[red]✗ {self.failed}[/red]")
        return "  ".join(parts)

    def update(self, repaired: bool = False, unchanged: bool = False, failed: bool = False) -> None:
        """
        Record one finished file.

        Args:
            repaired: Tags were written (or would be, in a dry run).
            unchanged: Recovery data was found but nothing was missing.
            failed: The file could not be processed.

        A call with no flag set counts the file as skipped.
        """
        self.completed += 1
        if repaired:
            self.repaired += 1
        elif unchanged:
            self.unchanged += 1
        elif failed:
            self.failed += 1
        else:
            self.skipped += 1

        if self.task_id is not None:
            self.progress.update(
                self.task_id,
                completed=self.completed,
                status=self.status_text(),
            )


__all__ = [
    "PROGRESS_THEME",
    "RepairProgressBar",
]
