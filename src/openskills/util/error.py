"""Error formatting utilities.

Turns the skill core's exceptions into one-line messages suitable for a
terminal; anything unrecognised falls back to :func:`format_unknown_error`.
"""

import json
import traceback
from typing import Any

from ..core.config import ConfigError
from ..skill.errors import (
    DestinationExistsError,
    GitHubAPIError,
    RepositoryNotFoundError,
    SkillDownloadError,
    SkillError,
)


def format_error(error: Any) -> str | None:
    """Format known application errors into user-friendly messages.

    Returns None if the error type is not recognized, allowing
    fallback to format_unknown_error.
    """
    if isinstance(error, RepositoryNotFoundError):
        return (
            f"Repository {error.owner}/{error.repo} has no branch \"{error.branch}\" "
            "or is not accessible"
        )
    if isinstance(error, GitHubAPIError) and error.status in (401, 403):
        return f"{error} (check the GitHub token or wait for the rate limit to reset)"
    if isinstance(error, SkillDownloadError):
        lines = [str(error)]
        lines.extend(f"  {path}: {error.errors.get(path, 'unknown error')}" for path in error.failed)
        return "\n".join(lines)
    if isinstance(error, DestinationExistsError):
        return f"{error.path} already exists; remove it first or pick another target"
    if isinstance(error, (SkillError, ConfigError)):
        return str(error)
    return None


def format_unknown_error(error: Any) -> str:
    """Format any error into a string representation.

    Handles Exception objects, serializable objects, and primitives.
    """
    if isinstance(error, Exception):
        if error.__traceback__:
            return ''.join(traceback.format_exception(type(error), error, error.__traceback__))
        return f"{error.__class__.__name__}: {str(error)}"

    if isinstance(error, (dict, list)):
        try:
            return json.dumps(error, indent=2)
        except (TypeError, ValueError):
            return "Unexpected error (unserializable)"

    return str(error)
