"""Exceptions raised by the skill core."""

from __future__ import annotations

from typing import List, Optional


class SkillError(Exception):
    """Base class for skill discovery, fetch and install failures."""


class RepositoryNotFoundError(SkillError):
    """Raised when a repository or branch does not exist upstream."""

    def __init__(self, owner: str, repo: str, branch: str):
        self.owner = owner
        self.repo = repo
        self.branch = branch
        super().__init__(f"Repository or branch not found: {owner}/{repo}@{branch}")


class GitHubAPIError(SkillError):
    """Raised for non-2xx tree listing responses other than 404."""

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        self.reason = reason
        super().__init__(f"GitHub API error: {status} {reason}".rstrip())


class RawContentError(SkillError):
    """Raised when a raw file fetch returns a non-2xx status."""

    def __init__(self, path: str, status: int):
        self.path = path
        self.status = status
        super().__init__(f"Failed to fetch file: {status}")


class SkillDownloadError(SkillError):
    """Raised after a batch download in which one or more files failed.

    Attributes:
        failed: Relative paths that could not be fetched
        errors: Error message per failed path
    """

    def __init__(self, failed: List[str], errors: Optional[dict[str, str]] = None):
        self.failed = failed
        self.errors = errors or {}
        shown = ", ".join(failed[:3])
        more = f" (+{len(failed) - 3} more)" if len(failed) > 3 else ""
        super().__init__(f"Failed to download {len(failed)} file(s): {shown}{more}")


class DestinationExistsError(SkillError):
    """Raised when an import or install target directory already exists."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Destination already exists: {path}")


class UnsafePathError(SkillError):
    """Raised for file paths that would escape the skill directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Refusing to write outside the skill directory: {path}")
