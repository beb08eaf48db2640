from rich.console import Console
from rich.markup import escape
from shrinkvid.infrastructure.event_bus import EventBus
from shrinkvid.ui.state import UIState
from shrinkvid.ui.progress import ProgressView, format_size, format_time
from shrinkvid.domain.events import (
    JobStarted, DurationProbed, EncodeStarted, JobProgressUpdated,
    JobCompleted, JobFailed, ActionMessage
)

ROCKET = "\U0001F680"
ARROW = "➭"
CHECK = "✓"
CROSS = "✗"

class UIManager:
    """Subscribes to EventBus, updates UIState and renders console output."""

    def __init__(self, bus: EventBus, state: UIState, console: Console, progress: ProgressView):
        self.bus = bus
        self.state = state
        self.console = console
        self.progress = progress
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(JobStarted, self.on_job_started)
        self.bus.subscribe(DurationProbed, self.on_duration_probed)
        self.bus.subscribe(EncodeStarted, self.on_encode_started)
        self.bus.subscribe(JobProgressUpdated, self.on_job_progress)
        self.bus.subscribe(JobCompleted, self.on_job_completed)
        self.bus.subscribe(JobFailed, self.on_job_failed)
        self.bus.subscribe(ActionMessage, self.on_action_message)

    def on_job_started(self, event: JobStarted):
        self.state.start_job(event.job)

    def on_duration_probed(self, event: DurationProbed):
        self.state.duration_seconds = event.duration_seconds
        self.console.print(
            f"\n{ROCKET} Compressing video: {escape(str(event.job.input_path))} "
            f"[grey70]({format_time(event.duration_seconds)}, crf={event.job.crf})[/]\n"
        )

    def on_encode_started(self, event: EncodeStarted):
        self.progress.start(event.job.input_path.name)

    def on_job_progress(self, event: JobProgressUpdated):
        self.progress.update(self.state.set_progress(event.progress_percent))

    def on_job_completed(self, event: JobCompleted):
        self.progress.stop()
        self.state.complete_job(event.summary)
        summary = event.summary
        self.console.print(
            f"\n[green]{CHECK}[/] Video compressed successfully: {escape(str(summary.output_path))}\n"
            f"{ARROW} Size: {summary.input_size_mb:.2f} MB => {summary.output_size_mb:.2f} MB "
            f"[grey70]({format_size(summary.input_size_bytes)} => {format_size(summary.output_size_bytes)})[/]\n"
            f"{ARROW} Compression: {summary.ratio_percent:.2f}%\n"
        )

    def on_job_failed(self, event: JobFailed):
        self.progress.stop()
        self.state.fail_job(event.error_message)
        self.console.print(f"[red]{CROSS} {escape(event.error_message)}[/]")

    def on_action_message(self, event: ActionMessage):
        self.state.add_message(event.message)
        if event.level == "error":
            self.console.print(f"[red]{CROSS} {escape(event.message)}[/]")
        else:
            self.console.print(f"[green]{CHECK}[/] {escape(event.message)}")
