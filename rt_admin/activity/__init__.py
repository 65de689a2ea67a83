"""Structured activity logging package."""

from rt_admin.activity.logger import ActivityLogger, configure_logging, get_logger

__all__ = ["ActivityLogger", "configure_logging", "get_logger"]
