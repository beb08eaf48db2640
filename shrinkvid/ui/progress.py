from typing import Optional
from rich.console import Console
from rich.progress import (
    Progress, BarColumn, TextColumn, TaskProgressColumn, TimeRemainingColumn, SpinnerColumn, TaskID
)

class ProgressView:
    """Single rich progress bar covering one encode, 0..100."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None

    @property
    def active(self) -> bool:
        return self._progress is not None

    def start(self, description: str):
        if self._progress is not None:
            self.stop()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
            transient=False
        )
        self._progress.start()
        self._task = self._progress.add_task(description, total=100)

    def update(self, percent: float):
        if self._progress is not None and self._task is not None:
            self._progress.update(self._task, completed=percent)

    def stop(self):
        if self._progress is not None:
            self._progress.stop()
        self._progress = None
        self._task = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()

def format_size(size: int) -> str:
    """Format size in bytes to human readable"""
    if size == 0:
        return "0B"
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024.0:
            return f"{size:.1f}{unit}"
        size /= 1024.0
    return f"{size:.1f}TB"

def format_time(seconds: float) -> str:
    """Format seconds to human readable time"""
    if seconds < 60:
        return f"{int(seconds):02d}s"
    elif seconds < 3600:
        return f"{int(seconds / 60):02d}m {int(seconds % 60):02d}s"
    else:
        return f"{int(seconds / 3600)}h {int((seconds % 3600) / 60):02d}m"
