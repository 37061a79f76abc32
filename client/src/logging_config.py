"""
Logging configuration for the room client.

Every module logs through a child of the ``room_client`` logger. Raw wire
frames go to a separate ``room_client.frames`` logger that stays quiet
unless frame tracing is switched on, so DEBUG dispatch logs stay readable.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .config import get_config

ROOT_LOGGER_NAME = "room_client"
FRAME_LOGGER_NAME = f"{ROOT_LOGGER_NAME}.frames"
MAX_FRAME_LOG_LENGTH = 200


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None,
    log_to_console: bool = True,
    log_frames: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure logging for the client.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR). Uses config if not specified.
        log_file: Optional path to log file. Uses config if not specified.
        log_to_console: Whether to log to console
        log_frames: Trace every sent and received frame. Uses config if not specified.

    Returns:
        The root logger for the client
    """
    if log_level is None or log_frames is None:
        debug_cfg = get_config().debug
        if log_level is None:
            log_level = debug_cfg.log_level
        if log_frames is None:
            log_frames = debug_cfg.log_frames
        if log_file is None and debug_cfg.log_file:
            log_file = Path(debug_cfg.log_file)

    level = getattr(logging, log_level.upper(), logging.INFO)
    handler_level = logging.DEBUG if log_frames else level

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    logging.getLogger(FRAME_LOGGER_NAME).setLevel(logging.DEBUG if log_frames else logging.WARNING)

    formatter = logging.Formatter(
        "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(handler_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(handler_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def log_frame(direction: str, frame: Union[str, bytes]) -> None:
    """Trace one wire frame; long frames are cut to MAX_FRAME_LOG_LENGTH."""
    frame_logger = logging.getLogger(FRAME_LOGGER_NAME)
    if not frame_logger.isEnabledFor(logging.DEBUG):
        return

    text = frame if isinstance(frame, str) else repr(frame)
    if len(text) > MAX_FRAME_LOG_LENGTH:
        text = text[:MAX_FRAME_LOG_LENGTH] + "..."
    frame_logger.debug(f"{direction} {text}")
