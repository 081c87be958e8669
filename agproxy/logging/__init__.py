"""Logging module for the proxy."""

from .setup import LOG_DATE_FORMAT, LOG_FORMAT, LOGGER_NAME, logger, setup_logging

__all__ = [
    "LOGGER_NAME",
    "LOG_DATE_FORMAT",
    "LOG_FORMAT",
    "logger",
    "setup_logging",
]
