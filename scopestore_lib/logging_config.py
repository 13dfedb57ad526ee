from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional

from scopestore_lib.config import CONFIG_PATH, load_yaml_file

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s]: %(message)s'


def configure_logging(level: Optional[str] = None, config_path: Optional[Path] = None) -> logging.Logger:
    """Configure root logging for scopestore tools.

    An explicit `level` wins; otherwise `log_level` is read from the YAML
    storage config, falling back to WARNING. Existing root handlers are
    replaced. Returns a module logger for the caller.
    """
    default_level = logging.WARNING

    if level is None:
        cfg_path = config_path or CONFIG_PATH
        try:
            level = load_yaml_file(cfg_path).get('log_level')
        except ValueError:
            # If config parse fails, fall back to default level
            logging.getLogger(__name__).warning('Failed to read log level from %s', cfg_path)
            level = None

    numeric = getattr(logging, str(level).upper(), None) if level else None
    if not isinstance(numeric, int):
        numeric = default_level

    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)
    logging.basicConfig(level=numeric, format=LOG_FORMAT)
    logger = logging.getLogger(__name__)
    logger.debug('Log level set to: %s', logging.getLevelName(numeric))
    return logger
