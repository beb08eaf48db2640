from pydantic import BaseModel
from .models import EncodeJob, EncodeSummary, FollowUpResult

class Event(BaseModel):
    """Base class for all domain events."""
    pass

class JobEvent(Event):
    job: EncodeJob

class JobStarted(JobEvent):
    pass

class DurationProbed(JobEvent):
    duration_seconds: float

class EncodeStarted(JobEvent):
    crf: int

class JobProgressUpdated(JobEvent):
    progress_percent: float

class JobCompleted(JobEvent):
    summary: EncodeSummary

class JobFailed(JobEvent):
    error_message: str

class ActionMessage(Event):
    """Free-form feedback for the operator (deleted file, launching viewer...)."""
    message: str
    level: str = "info"

class FollowUpFinished(Event):
    result: FollowUpResult
