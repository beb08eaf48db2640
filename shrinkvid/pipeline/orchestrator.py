import logging
from pathlib import Path
from typing import Optional
from shrinkvid.config.models import AppConfig
from shrinkvid.domain.errors import EncodeError, EncodeErrorKind, ProbeError
from shrinkvid.domain.events import DurationProbed, JobCompleted, JobFailed, JobStarted
from shrinkvid.domain.models import EncodeJob, EncodeSummary, JobStatus, QualityLevel
from shrinkvid.infrastructure.event_bus import EventBus
from shrinkvid.infrastructure.ffmpeg import FFmpegAdapter
from shrinkvid.infrastructure.ffprobe import FFprobeAdapter

def derive_output_path(input_path: Path, suffix: str = "_compressed", container: str = ".mp4") -> Path:
    """video.mov -> video_compressed.mp4 (only the final extension is stripped)."""
    return input_path.with_name(f"{input_path.stem}{suffix}{container}")

def same_file(a: Path, b: Path) -> bool:
    if a.resolve() == b.resolve():
        return True
    try:
        return a.samefile(b)
    except OSError:
        return False

class Orchestrator:
    """Runs probe then encode for a single file and reports through the event bus."""

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        ffprobe_adapter: FFprobeAdapter,
        ffmpeg_adapter: FFmpegAdapter
    ):
        self.config = config
        self.event_bus = event_bus
        self.ffprobe_adapter = ffprobe_adapter
        self.ffmpeg_adapter = ffmpeg_adapter
        self.logger = logging.getLogger(__name__)

    def cancel(self):
        self.ffmpeg_adapter.cancel()

    def _fail(self, job: EncodeJob, error: Exception):
        if job.status not in (JobStatus.FAILED, JobStatus.CANCELLED):
            job.status = JobStatus.FAILED
        job.error_message = job.error_message or str(error)
        self.logger.error(f"Job failed for {job.input_path.name}: {error}")
        self.event_bus.publish(JobFailed(job=job, error_message=str(error)))

    def _cancelled(self, job: EncodeJob, message: str) -> EncodeError:
        job.status = JobStatus.CANCELLED
        error = EncodeError(message, kind=EncodeErrorKind.CANCELLED)
        self._fail(job, error)
        return error

    def run(self, input_path: Path, quality: QualityLevel = QualityLevel.OK,
            output_path: Optional[Path] = None) -> EncodeSummary:
        if output_path is None:
            output_path = derive_output_path(
                input_path,
                self.config.encoder.output_suffix,
                self.config.encoder.container
            )

        # cancel() only applies to the run in progress
        self.ffmpeg_adapter.reset_cancel()

        job = EncodeJob(input_path=input_path, output_path=output_path, quality=quality)
        self.event_bus.publish(JobStarted(job=job))

        # Writing over the input would destroy the only copy
        if same_file(input_path, output_path):
            error = EncodeError(
                f"Output path {output_path} is the input file",
                kind=EncodeErrorKind.SAME_AS_INPUT
            )
            self._fail(job, error)
            raise error

        # 1. Probe; nothing is encoded unless this yields a usable duration
        job.status = JobStatus.PROBING
        try:
            job.duration_seconds = self.ffprobe_adapter.probe_duration(input_path)
        except ProbeError as e:
            job.error_message = e.reason
            self._fail(job, e)
            raise
        except KeyboardInterrupt:
            self._cancelled(job, "Cancelled while probing")
            raise
        except Exception as e:
            self._fail(job, e)
            raise
        self.event_bus.publish(DurationProbed(job=job, duration_seconds=job.duration_seconds))

        if self.ffmpeg_adapter.cancel_requested:
            raise self._cancelled(job, "Encoding cancelled")

        # 2. Encode
        try:
            summary = self.ffmpeg_adapter.compress(job)
        except KeyboardInterrupt:
            self._cancelled(job, "Encoding cancelled")
            raise
        except Exception as e:
            self._fail(job, e)
            raise

        self.event_bus.publish(JobCompleted(job=job, summary=summary))
        return summary
