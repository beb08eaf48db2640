import logging
import math
import subprocess
from pathlib import Path
from typing import List
from shrinkvid.domain.errors import ProbeError
from shrinkvid.domain.models import ProcessOutcome

class FFprobeAdapter:
    """Wrapper around ffprobe to read the total duration of a media file."""

    def __init__(self, ffprobe_bin: str = "ffprobe"):
        self.ffprobe_bin = ffprobe_bin
        self.logger = logging.getLogger(__name__)

    def _build_command(self, file_path: Path) -> List[str]:
        # Print the bare duration in seconds and nothing else.
        return [
            self.ffprobe_bin,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(file_path)
        ]

    def probe(self, file_path: Path) -> ProcessOutcome:
        """Executes ffprobe and parses its stdout into a duration."""
        cmd = self._build_command(file_path)
        self.logger.debug(f"FFPROBE_CMD: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise ProbeError(file_path, f"could not run {self.ffprobe_bin}: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise ProbeError(file_path, f"ffprobe exited with code {result.returncode}: {stderr}")

        output = (result.stdout or "").strip()
        try:
            duration = float(output)
        except ValueError:
            raise ProbeError(file_path, f"unparsable duration {output!r}")

        if not math.isfinite(duration):
            raise ProbeError(file_path, f"unparsable duration {output!r}")
        if duration <= 0:
            raise ProbeError(file_path, f"duration is {duration}")

        self.logger.info(f"FFPROBE: {file_path.name} duration={duration:.2f}s")
        return ProcessOutcome(return_code=result.returncode, duration_seconds=duration)

    def probe_duration(self, file_path: Path) -> float:
        return self.probe(file_path).duration_seconds
