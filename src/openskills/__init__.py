"""Open Skills - find, compare and share agent skill documents.

Scans a workspace and the user's global skill library for ``SKILL.md``
files, lists skills published in GitHub repositories and reports which
skills a workspace is missing.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
