"""Logging utilities for the patch engine.

Provides a centralized logging setup that can be configured via config.yml.
"""

import logging
import sys
from typing import Optional

from config import LoggingConfig

ROOT_LOGGER_NAME = "patch_ledger"

# Global reference to the root logger for the engine
_engine_logger: Optional[logging.Logger] = None


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    log_file: str = "patch_ledger.log",
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """Set up a logger with file and optional console handlers.

    Args:
        name: Logger name (module name or custom).
        log_file: Path to log file. Empty string disables file logging.
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console: Whether to also log to console.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    # Convert string level to logging constant
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(log_level)

    formatter = logging.Formatter(
        "[%(levelname)s] %(asctime)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler
    if log_file:
        if not any(isinstance(h, logging.FileHandler) for h in logger.handlers):
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            file_handler.setLevel(log_level)
            logger.addHandler(file_handler)

    # Console handler (stderr keeps stdout free for JSON output)
    if console:
        # FileHandler subclasses StreamHandler, so compare exact types
        if not any(type(h) is logging.StreamHandler for h in logger.handlers):
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            console_handler.setLevel(log_level)
            logger.addHandler(console_handler)

    return logger


def configure_from_config(config: LoggingConfig, level: Optional[str] = None) -> logging.Logger:
    """Configure the engine logger from the logging config section.

    Args:
        config: The `logging` section of AppConfig.
        level: Overrides config.level when given (e.g. from --log-level).

    Returns:
        Configured root engine logger.
    """
    global _engine_logger

    _engine_logger = setup_logger(
        name=ROOT_LOGGER_NAME,
        log_file=config.log_file,
        level=level or config.level,
        console=config.console,
    )
    return _engine_logger


def get_logger(name: str = None) -> logging.Logger:
    """Get a logger for a specific module.

    If the engine logger has been configured, child loggers will inherit
    its handlers and level.

    Args:
        name: Module or component name (e.g., "applicator", "history").

    Returns:
        Logger instance.
    """
    if name:
        return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
    return logging.getLogger(ROOT_LOGGER_NAME)
