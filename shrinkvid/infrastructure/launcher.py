import logging
import subprocess
from pathlib import Path
from typing import List
from shrinkvid.domain.errors import LauncherError

class ViewerLauncher:
    """Opens a finished video in an external viewer application."""

    def __init__(self, command: List[str]):
        self.command = list(command)
        self.logger = logging.getLogger(__name__)

    def open(self, path: Path) -> subprocess.Popen:
        cmd = self.command + [str(path)]
        self.logger.info(f"VIEWER: {' '.join(cmd)}")
        try:
            # Fire and forget; the viewer outlives us.
            return subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True
            )
        except OSError as e:
            raise LauncherError(f"Failed to start viewer {self.command[0]}: {e}") from e
