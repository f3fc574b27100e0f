"""Logging configuration for the application."""
import logging
import sys

import colorlog


def setup_logger(name: str = None, log_level: str = "INFO") -> logging.Logger:
    """Set up a colored logger with the specified name and level.

    Args:
        name: The logger name. If None, configures the root logger.
        log_level: The logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).

    Returns:
        A configured logger instance.
    """
    logger = logging.getLogger(name)
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Only add handlers if they haven't been added before
    if not logger.handlers:
        handler = colorlog.StreamHandler(sys.stdout)
        handler.setFormatter(
            colorlog.ColoredFormatter(
                "%(log_color)s%(asctime)s %(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
                reset=True,
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            )
        )
        logger.addHandler(handler)

    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)

    return logger


# Create default logger
logger = setup_logger("hive")
