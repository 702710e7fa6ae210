"""Core infrastructure modules."""

from .global_paths import GlobalPath, expand_home

__all__ = ["GlobalPath", "expand_home"]

# Log is exported separately from util to avoid circular imports
# To use: from openskills.util.log import Log
