"""Skill discovery, marketplace access and gap analysis.

Skills are directories holding a ``SKILL.md`` document. They are found in
three places: the workspace, the user's global library and GitHub
repositories acting as a marketplace.

Example usage:
    from openskills.skill import GapAnalyzer, SkillScanner

    scanner = SkillScanner("/work/project")
    result = await scanner.scan()
    view = GapAnalyzer("/work/project").reconcile(result.records)
    print(f"coverage: {view.gap.coverage_percentage}%")
"""

from .args import extract_skill
from .cache import TTLCache
from .errors import (
    DestinationExistsError,
    GitHubAPIError,
    RawContentError,
    RepositoryNotFoundError,
    SkillDownloadError,
    SkillError,
    UnsafePathError,
)
from .gap import GapAnalyzer
from .github import GitHubSkillsClient, RemoteFile
from .installer import install_marketplace_skill, write_skill_files
from .models import (
    GapAnalysisResult,
    MarketplaceSkill,
    ScanResult,
    SkillFile,
    SkillRecord,
    SkillSource,
    SkillStatus,
    WorkspaceView,
    normalize_name,
)
from .scanner import SkillScanner

__all__ = [
    "DestinationExistsError",
    "GapAnalysisResult",
    "GapAnalyzer",
    "GitHubAPIError",
    "GitHubSkillsClient",
    "MarketplaceSkill",
    "RawContentError",
    "RemoteFile",
    "RepositoryNotFoundError",
    "ScanResult",
    "SkillDownloadError",
    "SkillError",
    "SkillFile",
    "SkillRecord",
    "SkillScanner",
    "SkillSource",
    "SkillStatus",
    "TTLCache",
    "UnsafePathError",
    "WorkspaceView",
    "extract_skill",
    "install_marketplace_skill",
    "normalize_name",
    "write_skill_files",
]
