"""
Quote Scraper - Logging Utility
===============================

Logging setup using Loguru with:
- Console and file logging
- Automatic log rotation
- JSON logging support
- Contextual logging (ticker, correlation id)
"""

import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from loguru import logger

DEFAULT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


class LoggerSetup:
    """Configure and manage application logging"""

    def __init__(self, config: Optional[Mapping[str, Any]] = None):
        """
        Initialize logger with configuration

        Args:
            config: ``logging`` section of the application settings
        """
        self.config = self._merge(self._default_config(), config or {})
        self._setup_logger()

    @staticmethod
    def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
                merged[key] = {**merged[key], **value}
            else:
                merged[key] = value
        return merged

    def _default_config(self) -> Dict[str, Any]:
        """Default logging configuration"""
        return {
            'level': 'INFO',
            'format': DEFAULT_FORMAT,
            'console': {'enabled': True, 'colorize': True},
            'file': {
                'enabled': False,
                'path': './logs/quote-scraper.log',
                'rotation': '50 MB',
                'retention': '14 days',
                'compression': 'zip'
            },
            'error_file': {
                'enabled': False,
                'path': './logs/errors.log',
                'level': 'ERROR',
                'rotation': '20 MB',
                'retention': '30 days'
            },
            'json': {
                'enabled': False,
                'path': './logs/quote-scraper.json'
            }
        }

    def _setup_logger(self):
        """Configure loguru logger"""
        logger.remove()
        # Records logged through the bare logger still render {extra[name]}
        logger.configure(extra={"name": "quote_scraper"})

        log_level = self.config.get('level', 'INFO')
        log_format = self.config.get('format') or DEFAULT_FORMAT

        console_config = self.config.get('console', {})
        if console_config.get('enabled', True):
            logger.add(
                sys.stderr,
                format=log_format,
                level=log_level,
                colorize=console_config.get('colorize', True),
                backtrace=True,
                diagnose=False
            )

        file_config = self.config.get('file', {})
        if file_config.get('enabled', False):
            log_path = Path(file_config.get('path', './logs/quote-scraper.log'))
            log_path.parent.mkdir(parents=True, exist_ok=True)

            logger.add(
                log_path,
                format=log_format,
                level=log_level,
                rotation=file_config.get('rotation', '50 MB'),
                retention=file_config.get('retention', '14 days'),
                compression=file_config.get('compression', 'zip'),
                backtrace=True,
                diagnose=False
            )

        error_config = self.config.get('error_file', {})
        if error_config.get('enabled', False):
            error_path = Path(error_config.get('path', './logs/errors.log'))
            error_path.parent.mkdir(parents=True, exist_ok=True)

            logger.add(
                error_path,
                format=log_format,
                level=error_config.get('level', 'ERROR'),
                rotation=error_config.get('rotation', '20 MB'),
                retention=error_config.get('retention', '30 days'),
                backtrace=True,
                diagnose=False
            )

        # JSON logging (for log aggregation systems)
        json_config = self.config.get('json', {})
        if json_config.get('enabled', False):
            json_path = Path(json_config.get('path', './logs/quote-scraper.json'))
            json_path.parent.mkdir(parents=True, exist_ok=True)

            logger.add(
                json_path,
                format="{message}",
                level=log_level,
                serialize=True,
                rotation=file_config.get('rotation', '50 MB'),
                retention=file_config.get('retention', '14 days')
            )

    def get_logger(self, name: Optional[str] = None):
        """
        Get a logger instance

        Args:
            name: Logger name (usually __name__)
        """
        if name:
            return logger.bind(name=name)
        return logger


def setup_logging(config: Optional[Mapping[str, Any]] = None) -> LoggerSetup:
    """
    Initialize logging system

    Args:
        config: ``logging`` section of the application settings
    """
    setup = LoggerSetup(config)
    logger.bind(name=__name__).debug("Logging system initialized")
    return setup


def get_logger(name: Optional[str] = None):
    """
    Get a logger instance

    Loggers are bound lazily, so modules may call this at import time and
    still pick up the handlers installed later by ``setup_logging``.

    Example:
        >>> from quote_scraper.utils.logger import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("Starting scraper")
    """
    return logger.bind(name=name or "quote_scraper")


__all__ = ["LoggerSetup", "setup_logging", "get_logger"]
