"""
Logging utilities for the geocoder tooling.

Logging is configured from the ``[logging]`` config section:

    [logging]
    level = "INFO"
    console = true
    file = "logs/geocoder.log"
    rotate = true

    [logging.logger."lib.rate_limiter"]
    level = "DEBUG"
"""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# Loggers of HTTP libraries that log every request at INFO level
NOISY_LOGGERS = ("httpx", "httpcore")


def getLogLevelByStr(levelStr: str, default: Optional[int] = None) -> Optional[int]:
    """Get log level by string."""
    level = logging.getLevelName(levelStr.upper())
    if isinstance(level, int):
        return level
    logger.error(f"Invalid log level '{levelStr}'")
    return default


def _makeHandler(config: Dict[str, Any], kind: str, loggerLevel: int) -> logging.Handler:
    """Create console or file handler described by config (internal helper)."""
    handler: logging.Handler
    if kind == "console":
        handler = logging.StreamHandler()
    else:
        logFile = Path(config["file"])
        logFile.parent.mkdir(parents=True, exist_ok=True)
        if config.get("rotate", False):
            handler = TimedRotatingFileHandler(
                filename=logFile,
                when="midnight",
                interval=1,
                backupCount=config.get("backup-count", 7),
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(logFile, encoding="utf-8")

    handlerLevel = loggerLevel
    if f"{kind}-level" in config:
        handlerLevel = getLogLevelByStr(config[f"{kind}-level"], loggerLevel) or loggerLevel
    handler.setLevel(handlerLevel)
    handler.setFormatter(logging.Formatter(config.get("format", DEFAULT_LOG_FORMAT)))
    return handler


def configureLogger(localLogger: logging.Logger, config: Dict[str, Any]) -> None:
    """Configure individual logger from config file settings."""

    if "propagate" in config:
        localLogger.propagate = bool(config["propagate"])

    if "level" in config:
        logLevel = getLogLevelByStr(config["level"])
        if logLevel is not None:
            localLogger.setLevel(logLevel)

    logLevel = localLogger.getEffectiveLevel()

    # Clear existing handlers to avoid duplicates
    for handler in localLogger.handlers[:]:
        localLogger.removeHandler(handler)

    if config.get("console", False):
        localLogger.addHandler(_makeHandler(config, "console", logLevel))
        logger.info(f"Logging {localLogger.name} to console")

    if "file" in config:
        try:
            localLogger.addHandler(_makeHandler(config, "file", logLevel))
            logger.info(f"Logging {localLogger.name} to file: {config['file']}")
        except OSError as e:
            logger.error(f"Failed to setup file logging for {localLogger.name}: {e}")


def initLogging(config: Dict[str, Any]) -> None:
    """Configure logging from config file settings."""
    rootLogger = logging.getLogger()
    rootLogger.setLevel(logging.INFO)

    configureLogger(rootLogger, config)
    logLevel = rootLogger.getEffectiveLevel()

    # Avoid all GET requests being logged by the HTTP stack
    if logLevel < logging.WARNING:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    for loggerName, loggerConfig in config.get("logger", {}).items():
        logger.debug(f"Configuring logger '{loggerName}' with config {loggerConfig}")
        configureLogger(logging.getLogger(loggerName), loggerConfig)

    logger.info(f"Logging configured: root level={logging.getLevelName(logLevel)}")
