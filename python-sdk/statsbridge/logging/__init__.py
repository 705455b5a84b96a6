"""Logging module initialization."""

from statsbridge.logging.config import LogConfig
from statsbridge.logging.logger import new_logger

__all__ = ["LogConfig", "new_logger"]
