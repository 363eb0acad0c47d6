import logging
import logging.config
from pathlib import Path
from typing import Optional, Union

import yaml

from ..config.settings import settings

DEFAULT_LOGGING_CONFIG_PATH = Path(settings.LOGGING_CONFIG_PATH)


def setup_logging(
    config_path: Union[str, Path, None] = None,
    level: Optional[Union[int, str]] = None,
) -> None:
    """
    Configure logging for the service and the CLI from a dictConfig YAML file.

    Args:
        config_path: YAML file to load; ``settings.LOGGING_CONFIG_PATH`` when None.
        level: Optional level forced onto the ``room_design`` logger after loading,
               e.g. from a ``--verbose`` flag.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_LOGGING_CONFIG_PATH
    if path.exists():
        try:
            with open(path, 'rt') as f:
                log_config = yaml.safe_load(f.read())
            logging.config.dictConfig(log_config)
            logging.getLogger(__name__).info(f"Logging configured from {path}")
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logging.basicConfig(level=logging.INFO)
            logging.getLogger(__name__).error(f"Invalid logging configuration in {path}: {e}. Using basicConfig.")
    else:
        logging.basicConfig(level=logging.INFO)
        logging.getLogger(__name__).warning(f"Logging configuration file not found at {path}. Using basicConfig.")

    if level is not None:
        logging.getLogger("room_design").setLevel(level)
