import logging
import re
import subprocess
import threading
import time
from collections import deque
from typing import List, Optional
from shrinkvid.config.models import EncoderConfig
from shrinkvid.domain.errors import EncodeError, EncodeErrorKind
from shrinkvid.domain.events import EncodeStarted, JobProgressUpdated
from shrinkvid.domain.models import EncodeJob, EncodeSummary, JobStatus
from shrinkvid.infrastructure.event_bus import EventBus

# Regex to parse 'time=00:00:00.00' from ffmpeg output
TIME_REGEX = re.compile(r"time=(\d+):(\d+):(\d+\.\d+)")

# How many trailing stderr lines to keep for error messages
STDERR_TAIL = 10

def parse_progress(line: str, total_duration: float) -> Optional[float]:
    """Returns the raw completion percentage encoded in a stderr line, or None."""
    match = TIME_REGEX.search(line)
    if not match:
        return None
    h, m, s = map(float, match.groups())
    current_seconds = h * 3600 + m * 60 + s
    return current_seconds / total_duration * 100

class FFmpegAdapter:
    """Wrapper around ffmpeg for H.264 re-encoding with streamed progress."""

    def __init__(self, event_bus: EventBus, config: Optional[EncoderConfig] = None):
        self.event_bus = event_bus
        self.config = config or EncoderConfig()
        self.logger = logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._process: Optional[subprocess.Popen] = None
        self._cancelled = False

    def _build_command(self, job: EncodeJob) -> List[str]:
        """Constructs the ffmpeg command line arguments."""
        return [
            self.config.ffmpeg_bin,
            "-i", str(job.input_path),
            "-vcodec", self.config.codec,
            "-crf", str(job.crf),
            "-preset", self.config.preset,
            "-y", # Overwrite output files
            str(job.output_path),
        ]

    def cancel(self):
        """Terminates the running encode, if any. Safe to call from another thread."""
        with self._lock:
            self._cancelled = True
            process = self._process
        if process is not None and process.poll() is None:
            self.logger.warning("FFMPEG_CANCEL: terminating encoder")
            self._terminate(process)

    @property
    def cancel_requested(self) -> bool:
        with self._lock:
            return self._cancelled

    def reset_cancel(self):
        with self._lock:
            self._cancelled = False

    def _terminate(self, process: subprocess.Popen):
        if process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    def _publish_progress(self, job: EncodeJob, percent: float):
        before = job.progress_percent
        if job.advance_progress(percent) > before:
            self.event_bus.publish(JobProgressUpdated(job=job, progress_percent=job.progress_percent))

    def compress(self, job: EncodeJob) -> EncodeSummary:
        """Executes the compression process and returns the size summary."""
        if job.duration_seconds is None:
            raise ValueError("Job duration must be probed before encoding")

        filename = job.input_path.name
        start_time = time.monotonic()
        cmd = self._build_command(job)
        self.logger.info(f"FFMPEG_START: {filename} (crf={job.crf}, preset={self.config.preset})")
        self.logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")

        try:
            # stdin is detached so ffmpeg does not swallow the operator's keystrokes
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                universal_newlines=True,
                errors="replace",
                bufsize=1
            )
        except OSError as e:
            job.status = JobStatus.FAILED
            job.error_message = f"could not run {self.config.ffmpeg_bin}: {e}"
            raise EncodeError(job.error_message, kind=EncodeErrorKind.SPAWN_FAILED) from e

        with self._lock:
            self._process = process
            cancelled_early = self._cancelled
        # A cancel() that raced the spawn found no process to terminate
        if cancelled_early:
            self._terminate(process)

        job.status = JobStatus.ENCODING
        self.event_bus.publish(EncodeStarted(job=job, crf=job.crf))
        tail = deque(maxlen=STDERR_TAIL)

        try:
            # universal_newlines turns ffmpeg's '\r' status updates into separate lines
            for line in process.stderr:
                line = line.rstrip()
                if line:
                    tail.append(line)
                percent = parse_progress(line, job.duration_seconds)
                if percent is not None:
                    self._publish_progress(job, percent)
            process.wait()
        except KeyboardInterrupt:
            with self._lock:
                self._cancelled = True
            self._terminate(process)
        except BaseException:
            self._terminate(process)
            job.status = JobStatus.FAILED
            raise
        finally:
            with self._lock:
                self._process = None
                cancelled = self._cancelled
                self._cancelled = False

        elapsed = time.monotonic() - start_time

        if cancelled:
            job.status = JobStatus.CANCELLED
            job.error_message = "Encoding cancelled"
            self.logger.info(f"FFMPEG_END: {filename} status=cancelled elapsed={elapsed:.2f}s")
            raise EncodeError(job.error_message, kind=EncodeErrorKind.CANCELLED,
                              return_code=process.returncode)

        # Finalize the bar whatever ffmpeg reported last
        job.advance_progress(100.0)
        self.event_bus.publish(JobProgressUpdated(job=job, progress_percent=100.0))

        if process.returncode != 0:
            if self.config.fail_on_error:
                job.status = JobStatus.FAILED
                job.error_message = f"ffmpeg exited with code {process.returncode}"
                self.logger.info(f"FFMPEG_END: {filename} status=failed code={process.returncode} elapsed={elapsed:.2f}s")
                details = "\n".join(tail)
                raise EncodeError(
                    f"{job.error_message}\n{details}" if details else job.error_message,
                    kind=EncodeErrorKind.PROCESS_FAILED,
                    return_code=process.returncode
                )
            self.logger.warning(f"ffmpeg exited with code {process.returncode}, ignoring (fail_on_error=false)")

        try:
            summary = self._summarize(job)
        except EncodeError:
            job.status = JobStatus.FAILED
            self.logger.info(f"FFMPEG_END: {filename} status=failed ({job.error_message}) elapsed={elapsed:.2f}s")
            raise

        job.status = JobStatus.COMPLETED
        self.logger.info(
            f"FFMPEG_END: {filename} status=completed elapsed={elapsed:.2f}s "
            f"size={summary.input_size_mb}MB->{summary.output_size_mb}MB ratio={summary.ratio_percent}%"
        )
        return summary

    def _summarize(self, job: EncodeJob) -> EncodeSummary:
        try:
            input_size = job.input_path.stat().st_size
            output_size = job.output_path.stat().st_size
        except OSError as e:
            job.error_message = f"Cannot read output file {job.output_path}: {e}"
            raise EncodeError(job.error_message, kind=EncodeErrorKind.OUTPUT_MISSING) from e

        if output_size == 0:
            job.error_message = f"Output file {job.output_path} is empty"
            raise EncodeError(job.error_message, kind=EncodeErrorKind.OUTPUT_MISSING)

        return EncodeSummary(
            input_path=job.input_path,
            output_path=job.output_path,
            input_size_bytes=input_size,
            output_size_bytes=output_size,
        )
