"""Process-level bootstrap helpers."""

from .app_context import AppContext
from .logging import LogSettings, resolve_log_settings, setup_logging

__all__ = ["AppContext", "LogSettings", "resolve_log_settings", "setup_logging"]
