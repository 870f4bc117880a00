# --- src/scensim_core/log_config.py ---
import logging
import sys
from typing import Optional, TextIO, Union

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] [%(name)s] %(message)s"


def _coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level '{level}'.")
    return resolved


def setup_logging(level: Union[int, str] = logging.INFO, stream: Optional[TextIO] = None):
    """ Configures basic logging to stdout (or the given stream). """
    log_formatter = logging.Formatter(LOG_FORMAT)
    root_logger = logging.getLogger()

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    console_handler.setFormatter(log_formatter)
    root_logger.setLevel(_coerce_level(level))
    root_logger.addHandler(console_handler)
    logging.info("Logging configured.")


def set_package_log_level(level: Union[int, str]):
    """Adjusts only the `scensim_core` logger tree, leaving the root handler untouched."""
    logging.getLogger("scensim_core").setLevel(_coerce_level(level))
