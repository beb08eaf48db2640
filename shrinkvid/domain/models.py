import math
from enum import Enum
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

class QualityLevel(str, Enum):
    BAD = "bad"
    OK = "ok"
    GOOD = "good"

    @property
    def crf(self) -> int:
        return CRF_BY_QUALITY[self]

CRF_BY_QUALITY = {
    QualityLevel.BAD: 35,
    QualityLevel.OK: 28,
    QualityLevel.GOOD: 23,
}
DEFAULT_CRF = CRF_BY_QUALITY[QualityLevel.OK]

def crf_for(quality) -> int:
    """Maps a quality selector (enum, token or None) to the x264 CRF value."""
    try:
        return QualityLevel(quality).crf
    except ValueError:
        return DEFAULT_CRF

class JobStatus(str, Enum):
    PENDING = "PENDING"
    PROBING = "PROBING"
    ENCODING = "ENCODING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

class ProcessOutcome(BaseModel):
    return_code: int
    duration_seconds: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.return_code == 0

class EncodeJob(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    input_path: Path
    output_path: Path
    quality: QualityLevel = QualityLevel.OK
    duration_seconds: Optional[float] = None
    progress_percent: float = 0.0
    status: JobStatus = JobStatus.PENDING
    error_message: Optional[str] = None

    @field_validator("duration_seconds")
    @classmethod
    def validate_duration(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and (not math.isfinite(v) or v <= 0):
            raise ValueError(f"Duration must be a positive finite number, got {v}")
        return v

    @property
    def crf(self) -> int:
        return crf_for(self.quality)

    def advance_progress(self, percent: float) -> float:
        """Clamps to [0, 100] and never lets progress go backwards. Returns the stored value."""
        clamped = max(0.0, min(100.0, percent))
        if clamped > self.progress_percent:
            self.progress_percent = clamped
        return self.progress_percent

def to_mb(size_bytes: int) -> float:
    return round(size_bytes / 1024 / 1024, 2)

class EncodeSummary(BaseModel):
    input_path: Path
    output_path: Path
    input_size_bytes: int = Field(ge=0)
    output_size_bytes: int = Field(gt=0)

    @property
    def input_size_mb(self) -> float:
        return to_mb(self.input_size_bytes)

    @property
    def output_size_mb(self) -> float:
        return to_mb(self.output_size_bytes)

    @property
    def ratio_percent(self) -> float:
        """Input size relative to output size, e.g. 250.0 for a 100MB -> 40MB encode."""
        return round(self.input_size_bytes / self.output_size_bytes * 100, 2)

class FollowUpResult(BaseModel):
    deleted_original: bool = False
    viewer_launched: bool = False
