import logging
from pathlib import Path
from typing import Optional
from shrinkvid.domain.errors import LauncherError, PromptIOError
from shrinkvid.domain.events import ActionMessage, FollowUpFinished
from shrinkvid.domain.models import EncodeSummary, FollowUpResult
from shrinkvid.infrastructure.event_bus import EventBus
from shrinkvid.infrastructure.launcher import ViewerLauncher
from shrinkvid.ui.prompts import Prompter

logger = logging.getLogger(__name__)

def delete_original(path: Path):
    try:
        path.unlink()
    except OSError as e:
        raise PromptIOError(f"Failed to delete {path}: {e}") from e

def _ask(prompter: Prompter, question: str) -> bool:
    try:
        return prompter.confirm(question)
    except PromptIOError as e:
        logger.warning(str(e))
        return False

def run_follow_up(
    summary: EncodeSummary,
    prompter: Prompter,
    launcher: ViewerLauncher,
    event_bus: EventBus,
    viewer_name: Optional[str] = None
) -> FollowUpResult:
    """Offers to delete the original, then to open the result. Failures here are never fatal."""
    result = FollowUpResult()

    if _ask(prompter, "Do you want to delete the original video file?"):
        try:
            delete_original(summary.input_path)
        except PromptIOError as e:
            logger.error(str(e))
            event_bus.publish(ActionMessage(message=str(e), level="error"))
        else:
            result.deleted_original = True
            logger.info(f"Deleted original {summary.input_path}")
            event_bus.publish(ActionMessage(message=f"Deleted original video file: {summary.input_path}"))

    viewer = viewer_name or "the viewer"
    if _ask(prompter, f"Do you want to view the compressed video in {viewer}?"):
        event_bus.publish(ActionMessage(message=f"Starting {viewer}..."))
        try:
            launcher.open(summary.output_path)
        except LauncherError as e:
            logger.error(str(e))
            event_bus.publish(ActionMessage(message=str(e), level="error"))
        else:
            result.viewer_launched = True

    event_bus.publish(FollowUpFinished(result=result))
    return result
