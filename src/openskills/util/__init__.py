"""Utility modules."""

from .log import Log

__all__ = ["Log"]

# error formatting depends on core.config; import it from openskills.util.error
