"""Structured logging: JSON formatter and setup."""

from reordenar.logging.formatter import JSONLogFormatter
from reordenar.logging.setup import configure_logging

__all__ = ["JSONLogFormatter", "configure_logging"]
