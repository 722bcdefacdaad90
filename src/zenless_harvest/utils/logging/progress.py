# ABOUTME: Rich console progress display fed by the orchestrator's per-window callback
# ABOUTME: Prints one line per finished window with running totals and an ETA

from typing import TYPE_CHECKING

from rich.console import Console

if TYPE_CHECKING:
    from zenless_harvest.core.models import ProgressUpdate


def format_duration(milliseconds: int) -> str:
    seconds = max(milliseconds, 0) // 1000
    minutes, seconds = divmod(seconds, 60)
    if minutes:
        return f"{minutes}m{seconds:02d}s"
    return f"{seconds}s"


class WindowProgressPrinter:
    """Progress callback printing a status line after every window."""

    def __init__(self, console: Console, label: str = "entries"):
        self.console = console
        self.label = label
        self.updates: list["ProgressUpdate"] = []

    def __call__(self, update: "ProgressUpdate") -> None:
        self.updates.append(update)
        failed = f"[red]{update.failed} failed[/red]" if update.failed else "[dim]0 failed[/dim]"
        eta = format_duration(update.eta_ms) if update.window_index < update.window_count else "done"
        self.console.print(
            f"🪄 Window {update.window_index}/{update.window_count} "
            f"[bold cyan]{update.processed}/{update.total}[/bold cyan] {self.label} "
            f"({update.percent:.0f}%) [green]{update.succeeded} ok[/green], {failed} "
            f"[dim]elapsed {format_duration(update.elapsed_ms)}, ETA {eta}[/dim]"
        )
