import threading
from collections import deque
from typing import Optional
from shrinkvid.domain.models import EncodeJob, EncodeSummary

class UIState:
    """Thread-safe state shared between the pipeline and the progress renderer."""

    def __init__(self):
        self._lock = threading.RLock()

        self.current_job: Optional[EncodeJob] = None
        self.duration_seconds: Optional[float] = None
        self._progress_percent = 0.0
        self.summary: Optional[EncodeSummary] = None
        self.error_message: Optional[str] = None
        self.messages = deque(maxlen=20)

    @property
    def progress_percent(self) -> float:
        with self._lock:
            return self._progress_percent

    def set_progress(self, percent: float) -> float:
        with self._lock:
            self._progress_percent = max(self._progress_percent, min(100.0, max(0.0, percent)))
            return self._progress_percent

    def start_job(self, job: EncodeJob):
        with self._lock:
            self.current_job = job
            self.duration_seconds = None
            self._progress_percent = 0.0
            self.summary = None
            self.error_message = None

    def complete_job(self, summary: EncodeSummary):
        with self._lock:
            self.summary = summary
            self._progress_percent = 100.0

    def fail_job(self, error_message: str):
        with self._lock:
            self.error_message = error_message

    def add_message(self, message: str):
        with self._lock:
            self.messages.append(message)
