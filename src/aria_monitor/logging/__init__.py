"""Logging utilities for the ARIA monitoring pipeline."""

from aria_monitor.logging.config import JsonFormatter, setup_logging

__all__ = ["JsonFormatter", "setup_logging"]
