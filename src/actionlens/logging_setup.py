"""
Logging setup for ActionLens.
"""

import logging
from typing import Optional

from actionlens.config import Config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    config: Config,
    verbose: bool = False,
    level: Optional[str] = None,
) -> logging.Logger:
    """Configure the ``actionlens`` logger.

    Sets up both console and file handlers with a standard format.
    The file handler logs at the configured level; the console only
    shows warnings unless ``verbose`` is set. Calling this more than
    once replaces the previously installed handlers.

    Args:
        config: Configuration providing the log level and log path.
        verbose: Echo every record at the configured level to the console.
        level: Overrides the configured log level for this setup only.

    Returns:
        The configured package logger.
    """
    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger("actionlens")
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    if not verbose:
        console_handler.setLevel(logging.WARNING)
    root_logger.addHandler(console_handler)

    config.ensure_data_dir()
    file_handler = logging.FileHandler(config.log_path)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    root_logger.setLevel(log_level)
    return root_logger
