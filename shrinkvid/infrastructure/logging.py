import logging
import sys
import tempfile
from pathlib import Path
from typing import Optional

LOG_FILENAME = "shrinkvid.log"

def setup_logging(log_dir: Optional[Path] = None, debug: bool = False) -> logging.Logger:
    """
    Routes everything to a log file and only warnings to stderr,
    so the console stays readable while the progress bar is drawn.
    """
    log_dir = Path(log_dir) if log_dir else Path(tempfile.gettempdir())
    log_dir.mkdir(parents=True, exist_ok=True)
    log_filepath = log_dir / LOG_FILENAME

    logger = logging.getLogger()
    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    fh = logging.FileHandler(log_filepath, encoding='utf-8')
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.WARNING)
    ch.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    logger.addHandler(fh)
    logger.addHandler(ch)

    app_logger = logging.getLogger("shrinkvid")
    app_logger.info(f"Logging to {log_filepath}")
    return app_logger
