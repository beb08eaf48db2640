import pytest
from pathlib import Path
from shrinkvid.infrastructure.event_bus import EventBus
from shrinkvid.domain.models import EncodeJob, QualityLevel
from tests.helpers import MB

@pytest.fixture
def bus():
    return EventBus()

@pytest.fixture
def make_file(tmp_path):
    """Creates a (sparse) file of the given size under tmp_path."""
    def _make(name: str, size: int) -> Path:
        path = tmp_path / name
        with open(path, "wb") as f:
            f.truncate(size)
        return path
    return _make

@pytest.fixture
def sample_job(make_file, tmp_path):
    input_file = make_file("input.mov", 100 * MB)
    return EncodeJob(
        input_path=input_file,
        output_path=tmp_path / "input_compressed.mp4",
        quality=QualityLevel.OK,
        duration_seconds=90.0
    )
