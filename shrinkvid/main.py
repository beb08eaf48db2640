import logging
import traceback
import typer
from pathlib import Path
from typing import Optional
from rich.console import Console

from shrinkvid.config.loader import DEFAULT_CONFIG_PATH, load_config
from shrinkvid.domain.errors import ConfigError, EncodeError, EncodeErrorKind, ProbeError
from shrinkvid.domain.models import QualityLevel
from shrinkvid.infrastructure.logging import setup_logging
from shrinkvid.infrastructure.event_bus import EventBus
from shrinkvid.infrastructure.ffprobe import FFprobeAdapter
from shrinkvid.infrastructure.ffmpeg import FFmpegAdapter
from shrinkvid.infrastructure.launcher import ViewerLauncher
from shrinkvid.pipeline.orchestrator import Orchestrator
from shrinkvid.pipeline.followup import run_follow_up
from shrinkvid.ui.state import UIState
from shrinkvid.ui.manager import UIManager
from shrinkvid.ui.progress import ProgressView
from shrinkvid.ui.prompts import Prompter

app = typer.Typer(help="shrinkvid - re-encode a video at a reduced bitrate with ffmpeg")

@app.command()
def compress(
    input_path: Path = typer.Argument(..., help="Video file to compress"),
    quality: QualityLevel = typer.Argument(QualityLevel.OK, case_sensitive=True, help="Output quality: bad, ok or good"),
    output_path: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file (default: <input>_compressed.mp4)"),
    config_path: Optional[Path] = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to YAML config"),
    follow_up: bool = typer.Option(True, "--follow-up/--no-follow-up", help="Ask to delete the original and open the result"),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable verbose debug logging")
):
    """Compress a single video file with H.264."""
    if not input_path.is_file():
        typer.secho(f"Error: Input file does not exist: {input_path}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if debug: config.debug = True

    logger = setup_logging(Path(config.log_dir) if config.log_dir else None, debug=config.debug)
    logger.info(f"shrinkvid started: input={input_path}, quality={quality.value}, output={output_path}")

    console = Console()
    bus = EventBus()
    ui_state = UIState()
    progress = ProgressView(console)
    UIManager(bus, ui_state, console, progress)

    orchestrator = Orchestrator(
        config=config,
        event_bus=bus,
        ffprobe_adapter=FFprobeAdapter(config.encoder.ffprobe_bin),
        ffmpeg_adapter=FFmpegAdapter(event_bus=bus, config=config.encoder)
    )

    try:
        with progress:
            summary = orchestrator.run(input_path, quality, output_path)

        if follow_up:
            run_follow_up(
                summary,
                prompter=Prompter(console),
                launcher=ViewerLauncher(config.viewer.command),
                event_bus=bus,
                viewer_name=config.viewer.name
            )

    except EncodeError as e:
        # Already reported through JobFailed
        if e.kind == EncodeErrorKind.CANCELLED:
            raise typer.Exit(code=130)
        raise typer.Exit(code=1)

    except ProbeError:
        raise typer.Exit(code=1)

    except KeyboardInterrupt:
        typer.echo("\nInterrupted by user")
        raise typer.Exit(code=130)

    except Exception as e:
        logging.getLogger(__name__).error(f"Unexpected error:\n{traceback.format_exc()}")
        typer.secho(f"Fatal Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

def main():
    app()

if __name__ == "__main__":
    main()
