import subprocess
import pytest
from pathlib import Path
from unittest.mock import patch, MagicMock
from shrinkvid.infrastructure.ffmpeg import FFmpegAdapter, parse_progress
from shrinkvid.config.models import EncoderConfig
from shrinkvid.domain.errors import EncodeError, EncodeErrorKind
from shrinkvid.domain.events import JobProgressUpdated, EncodeStarted
from shrinkvid.domain.models import EncodeJob, JobStatus, QualityLevel
from tests.helpers import EventRecorder, fake_process, MB

STATUS_LINE = "frame= {f} fps=30 q=28.0 size=    1024kB time={t} bitrate= 100.0kbits/s speed=1.0x"

def test_ffmpeg_command_generation():
    job = EncodeJob(input_path=Path("input.mov"), output_path=Path("output.mp4"), quality=QualityLevel.GOOD)
    adapter = FFmpegAdapter(event_bus=MagicMock())
    cmd = adapter._build_command(job)

    assert cmd == [
        "ffmpeg", "-i", "input.mov",
        "-vcodec", "libx264",
        "-crf", "23",
        "-preset", "fast",
        "-y", "output.mp4"
    ]

@pytest.mark.parametrize("quality,crf", [(QualityLevel.BAD, "35"), (QualityLevel.OK, "28"), (QualityLevel.GOOD, "23")])
def test_ffmpeg_command_crf(quality, crf):
    job = EncodeJob(input_path=Path("input.mov"), output_path=Path("output.mp4"), quality=quality)
    cmd = FFmpegAdapter(event_bus=MagicMock())._build_command(job)
    idx = cmd.index("-crf")
    assert cmd[idx + 1] == crf

def test_ffmpeg_command_uses_configured_binary():
    config = EncoderConfig(ffmpeg_bin="/usr/local/bin/ffmpeg")
    job = EncodeJob(input_path=Path("input.mov"), output_path=Path("output.mp4"))
    cmd = FFmpegAdapter(event_bus=MagicMock(), config=config)._build_command(job)
    assert cmd[0] == "/usr/local/bin/ffmpeg"

def test_parse_progress_full_duration():
    assert parse_progress(STATUS_LINE.format(f=2700, t="00:01:30.00"), 90.0) == 100.0

def test_parse_progress_half_duration():
    assert parse_progress(STATUS_LINE.format(f=1350, t="00:00:45.00"), 90.0) == 50.0

def test_parse_progress_hours():
    assert parse_progress("time=01:00:00.00", 7200.0) == 50.0

def test_parse_progress_without_time():
    assert parse_progress("Stream #0:0: Video: h264 (High)", 90.0) is None
    assert parse_progress("time=N/A bitrate=N/A", 90.0) is None

class TestCompress:

    def test_compress_success(self, bus, sample_job, make_file):
        make_file("input_compressed.mp4", 40 * MB)
        recorder = EventRecorder(bus, JobProgressUpdated, EncodeStarted)
        lines = [
            "Input #0, mov,mp4,m4a,3gp,3g2,mj2, from 'input.mov':",
            STATUS_LINE.format(f=675, t="00:00:22.50"),
            STATUS_LINE.format(f=1350, t="00:00:45.00"),
            "[libx264 @ 0x0] kb/s:1234.56",
        ]

        with patch("subprocess.Popen", return_value=fake_process(lines)) as mock_popen:
            summary = FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert mock_popen.called
        kwargs = mock_popen.call_args.kwargs
        assert kwargs["stderr"] == subprocess.PIPE
        assert kwargs["stdin"] == subprocess.DEVNULL

        progress = [e.progress_percent for e in recorder.of_type(JobProgressUpdated)]
        assert progress == [25.0, 50.0, 100.0]
        assert recorder.of_type(EncodeStarted)[0].crf == 28

        assert sample_job.status == JobStatus.COMPLETED
        assert sample_job.progress_percent == 100.0
        assert summary.input_size_mb == 100.0
        assert summary.output_size_mb == 40.0
        assert summary.ratio_percent == 250.0

    def test_lines_without_time_emit_nothing_until_exit(self, bus, sample_job, make_file):
        make_file("input_compressed.mp4", 10 * MB)
        recorder = EventRecorder(bus, JobProgressUpdated)

        with patch("subprocess.Popen", return_value=fake_process(["no progress here", "still nothing"])):
            FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert [e.progress_percent for e in recorder.events] == [100.0]

    def test_progress_forced_to_100_after_exit(self, bus, sample_job, make_file):
        make_file("input_compressed.mp4", 10 * MB)
        recorder = EventRecorder(bus, JobProgressUpdated)

        with patch("subprocess.Popen", return_value=fake_process([STATUS_LINE.format(f=300, t="00:00:09.00")])):
            FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert [e.progress_percent for e in recorder.events] == [10.0, 100.0]

    def test_jittery_timestamps_do_not_regress(self, bus, sample_job, make_file):
        make_file("input_compressed.mp4", 10 * MB)
        recorder = EventRecorder(bus, JobProgressUpdated)
        lines = [
            STATUS_LINE.format(f=1, t="00:00:45.00"),
            STATUS_LINE.format(f=2, t="00:00:44.10"),
            STATUS_LINE.format(f=3, t="00:02:00.00"),
        ]

        with patch("subprocess.Popen", return_value=fake_process(lines)):
            FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert [e.progress_percent for e in recorder.events] == [50.0, 100.0, 100.0]

    def test_compress_failure_exit_code(self, bus, sample_job):
        recorder = EventRecorder(bus, JobProgressUpdated)

        with patch("subprocess.Popen", return_value=fake_process(["Error while opening encoder"], returncode=1)):
            with pytest.raises(EncodeError) as excinfo:
                FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.PROCESS_FAILED
        assert excinfo.value.return_code == 1
        assert "Error while opening encoder" in str(excinfo.value)
        assert sample_job.status == JobStatus.FAILED
        assert "ffmpeg exited with code 1" in sample_job.error_message
        # The bar is still finalized
        assert [e.progress_percent for e in recorder.events] == [100.0]

    def test_exit_code_ignored_when_configured(self, bus, sample_job, make_file):
        make_file("input_compressed.mp4", 50 * MB)
        adapter = FFmpegAdapter(event_bus=bus, config=EncoderConfig(fail_on_error=False))

        with patch("subprocess.Popen", return_value=fake_process([], returncode=1)):
            summary = adapter.compress(sample_job)

        assert sample_job.status == JobStatus.COMPLETED
        assert summary.ratio_percent == 200.0

    def test_missing_output(self, bus, sample_job):
        with patch("subprocess.Popen", return_value=fake_process([])):
            with pytest.raises(EncodeError) as excinfo:
                FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.OUTPUT_MISSING
        assert sample_job.status == JobStatus.FAILED

    def test_empty_output(self, bus, sample_job, make_file):
        make_file("input_compressed.mp4", 0)
        with patch("subprocess.Popen", return_value=fake_process([])):
            with pytest.raises(EncodeError) as excinfo:
                FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.OUTPUT_MISSING
        assert "empty" in str(excinfo.value)

    def test_spawn_failure(self, bus, sample_job):
        with patch("subprocess.Popen", side_effect=FileNotFoundError("ffmpeg")):
            with pytest.raises(EncodeError) as excinfo:
                FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.SPAWN_FAILED
        assert sample_job.status == JobStatus.FAILED

    def test_requires_probed_duration(self, bus, tmp_path):
        job = EncodeJob(input_path=tmp_path / "a.mov", output_path=tmp_path / "b.mp4")
        with patch("subprocess.Popen") as mock_popen:
            with pytest.raises(ValueError):
                FFmpegAdapter(event_bus=bus).compress(job)
        mock_popen.assert_not_called()

    def test_keyboard_interrupt_cancels(self, bus, sample_job):
        recorder = EventRecorder(bus, JobProgressUpdated)

        def interrupted_stderr():
            yield STATUS_LINE.format(f=300, t="00:00:09.00")
            raise KeyboardInterrupt

        process = fake_process(interrupted_stderr(), returncode=-15)
        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(EncodeError) as excinfo:
                FFmpegAdapter(event_bus=bus).compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.CANCELLED
        process.terminate.assert_called_once()
        assert sample_job.status == JobStatus.CANCELLED
        assert [e.progress_percent for e in recorder.events] == [10.0]

    def test_cancel_from_progress_callback(self, bus, sample_job):
        adapter = FFmpegAdapter(event_bus=bus)
        process = fake_process([STATUS_LINE.format(f=300, t="00:00:09.00")], returncode=-15)
        process.poll.return_value = None
        bus.subscribe(JobProgressUpdated, lambda event: adapter.cancel())

        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(EncodeError) as excinfo:
                adapter.compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.CANCELLED
        process.terminate.assert_called_once()


    def test_subscriber_error_terminates_encoder(self, bus, sample_job):
        adapter = FFmpegAdapter(event_bus=bus)
        process = fake_process([STATUS_LINE.format(f=300, t="00:00:09.00")])

        def failing_render(event):
            raise RuntimeError("render failed")

        bus.subscribe(JobProgressUpdated, failing_render)

        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(RuntimeError):
                adapter.compress(sample_job)

        process.terminate.assert_called_once()
        assert sample_job.status == JobStatus.FAILED
        assert adapter._process is None
        assert not adapter.cancel_requested

    def test_finished_process_is_not_terminated(self, bus, sample_job):
        process = fake_process(["time=00:00:09.00"])
        process.poll.return_value = 0

        def failing_render(event):
            raise RuntimeError("boom")

        bus.subscribe(JobProgressUpdated, failing_render)

        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(RuntimeError):
                FFmpegAdapter(event_bus=bus).compress(sample_job)

        process.terminate.assert_not_called()

    def test_cancel_when_idle_is_kept_for_next_encode(self, bus, sample_job):
        adapter = FFmpegAdapter(event_bus=bus)
        adapter.cancel()
        assert adapter.cancel_requested

        process = fake_process(["time=00:00:09.00"], returncode=-15)
        with patch("subprocess.Popen", return_value=process):
            with pytest.raises(EncodeError) as excinfo:
                adapter.compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.CANCELLED
        process.terminate.assert_called_once()
        assert not adapter.cancel_requested

    def test_cancel_racing_spawn_is_honoured(self, bus, sample_job):
        adapter = FFmpegAdapter(event_bus=bus)
        process = fake_process([], returncode=-15)

        def spawn(cmd, **kwargs):
            adapter.cancel()
            return process

        with patch("subprocess.Popen", side_effect=spawn):
            with pytest.raises(EncodeError) as excinfo:
                adapter.compress(sample_job)

        assert excinfo.value.kind == EncodeErrorKind.CANCELLED
        process.terminate.assert_called_once()
        assert sample_job.status == JobStatus.CANCELLED

    def test_reset_cancel(self):
        adapter = FFmpegAdapter(event_bus=MagicMock())
        adapter.cancel()
        adapter.reset_cancel()
        assert not adapter.cancel_requested
