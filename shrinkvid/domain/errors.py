from enum import Enum
from pathlib import Path
from typing import Optional

class ShrinkvidError(Exception):
    """Base class for all errors reported to the operator."""

class ConfigError(ShrinkvidError):
    pass

class ProbeError(ShrinkvidError):
    """ffprobe failed or did not report a usable duration."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to retrieve video duration for {path}: {reason}")

class EncodeErrorKind(str, Enum):
    SPAWN_FAILED = "spawn_failed"
    PROCESS_FAILED = "process_failed"
    OUTPUT_MISSING = "output_missing"
    SAME_AS_INPUT = "same_as_input"
    CANCELLED = "cancelled"

class EncodeError(ShrinkvidError):
    def __init__(self, message: str, kind: EncodeErrorKind = EncodeErrorKind.PROCESS_FAILED,
                 return_code: Optional[int] = None):
        self.kind = kind
        self.return_code = return_code
        super().__init__(message)

class PromptIOError(ShrinkvidError):
    """Reading operator input or deleting the original failed. Never fatal."""

class LauncherError(ShrinkvidError):
    """The viewer application could not be started. Never fatal."""
