"""
Logging setup for the ODS export.

Every module calls :func:`create_logger` with its ``__name__`` and gets a
colour console logger; ``LOG_DIR`` adds a plain-text copy on disk.
"""

import logging
import os
import sys
from typing import Optional, Union

import colorlog

PACKAGE_LOGGER = "ods_pipeline"

CONSOLE_FORMAT = "%(log_color)s[%(levelname)s]%(reset)s %(blue)s[%(name)s]%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

TROUBLESHOOTING_STEPS = [
    "Check network access to the Cidades Sustentáveis API",
    "Verify ODS_* settings in .env",
    "Make sure the output spreadsheet is not open elsewhere",
]


def _console_handler(level: Union[int, str]) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(colorlog.ColoredFormatter(CONSOLE_FORMAT, log_colors=LEVEL_COLORS))
    return handler


def _file_handler(path: str, level: Union[int, str]) -> logging.Handler:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def _log_file_path(name: str, log_dir: Optional[str], log_file: Optional[str]) -> Optional[str]:
    """Where file output goes, or ``None`` for console only."""
    if not (log_dir or log_file):
        return None
    # one file per package, not per module
    file_name = log_file or f"{name.split('.')[0]}.log"
    return os.path.join(log_dir, file_name) if log_dir else file_name


def create_logger(
    name: Optional[str] = None,
    log_level: Union[int, str, None] = None,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
):
    """
    Return a colour console logger, replacing any handlers it already had.

    :param name: Logger name, usually ``__name__``
    :param log_level: Level (default: ``LOG_LEVEL`` or INFO)
    :param log_dir: Directory for a log file (default: ``LOG_DIR``)
    :param log_file: File name inside ``log_dir``, or a path on its own
    :return: Configured logger
    """
    name = name or PACKAGE_LOGGER
    level = log_level or os.getenv("LOG_LEVEL", "INFO").upper()
    log_dir = log_dir if log_dir is not None else os.getenv("LOG_DIR") or None

    logger = colorlog.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(level))

    path = _log_file_path(name, log_dir, log_file)
    if path:
        logger.addHandler(_file_handler(path, level))

    return logger


def set_log_level(level: Union[int, str]) -> None:
    """
    Change the level of every package logger and its handlers.

    :param level: New logging level
    """
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.name.startswith(PACKAGE_LOGGER):
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)


def log_exception(logger, e, context=None):
    """
    Log an exception as a CRITICAL block with context and hints.

    :param logger: Logger instance
    :param e: Exception object
    :param context: Optional additional context for the error
    """
    logger.critical(f"🚨 {type(e).__name__}: {e}")
    if context:
        for key, value in context.items() if isinstance(context, dict) else [("context", context)]:
            logger.critical(f"   {key}: {value}")

    logger.critical("What to check:")
    for number, step in enumerate(TROUBLESHOOTING_STEPS, start=1):
        logger.critical(f"  {number}. {step}")
