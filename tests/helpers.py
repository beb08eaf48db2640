from unittest.mock import MagicMock
from shrinkvid.infrastructure.event_bus import EventBus

MB = 1024 * 1024

class EventRecorder:
    """Collects every published event of the subscribed types, in order."""

    def __init__(self, bus: EventBus, *event_types):
        self.events = []
        for event_type in event_types:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type):
        return [e for e in self.events if isinstance(e, event_type)]

def fake_process(stderr_lines, returncode=0):
    """Mimics the Popen object used by FFmpegAdapter."""
    process = MagicMock()
    process.stderr = stderr_lines
    process.wait.return_value = returncode
    process.returncode = returncode
    process.poll.return_value = None
    return process
