import logging
from pathlib import Path
from typing import Optional
import yaml
from pydantic import ValidationError
from shrinkvid.config.models import AppConfig
from shrinkvid.domain.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("conf/shrinkvid.yaml")

logger = logging.getLogger(__name__)

def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from conf/shrinkvid.yaml or a provided path.
    A missing file yields defaults; an unreadable or invalid one raises ConfigError.
    """
    config_file = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    if not config_file.exists():
        logger.debug(f"Config file {config_file} not found, using defaults")
        return AppConfig()

    try:
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to read config file {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping at top level")

    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {config_file}: {e}") from e
