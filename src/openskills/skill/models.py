"""Skill records shared by the scanner, the GitHub client and the gap analyzer."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar, assert_never

from ..core.config_schema import SkillRepository
from .constants import SKILL_FILENAME

T = TypeVar("T")

_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """Lowercase ``name`` and drop all whitespace.

    This is the identity key used to match skills across sources.
    """
    return _WHITESPACE.sub("", name.lower())


class SkillStatus(str, Enum):
    ACTIVE = "active"
    MISSING = "missing"
    IMPORTED = "imported"


class SkillSource(str, Enum):
    """Where a local skill was found."""
    AGENT = ".agent/skills"
    CURSOR_RULES = ".cursor/rules"
    CURSOR_SKILLS = ".cursor/skills"
    GLOBAL = "~/open-skills"
    MARKETPLACE = "marketplace"
    CUSTOM = "custom"


def status_label(status: SkillStatus) -> str:
    """Group heading shown for records with ``status``."""
    match status:
        case SkillStatus.ACTIVE:
            return "Active"
        case SkillStatus.MISSING:
            return "Missing"
        case SkillStatus.IMPORTED:
            return "My Skills"
        case _:
            assert_never(status)


def status_marker(status: SkillStatus) -> str:
    """Single glyph used in terminal listings."""
    match status:
        case SkillStatus.ACTIVE:
            return "✓"
        case SkillStatus.MISSING:
            return "✗"
        case SkillStatus.IMPORTED:
            return "★"
        case _:
            assert_never(status)


@dataclass
class SkillRecord:
    """One skill document found on disk.

    Attributes:
        id: Path-derived key, stable while the file does not move
        name: Display name
        path: Absolute path to the SKILL.md file
        description: Declared or first usable line
        dependencies: Skill names listed under ``## Dependencies``
        source: Origin category of the containing root
        status: ``active`` in a workspace root, ``imported`` in the global library
        is_synced: Workspace skill whose name also exists in the global library
    """
    id: str
    name: str
    path: str
    description: str = ""
    dependencies: List[str] = field(default_factory=list)
    source: SkillSource = SkillSource.CUSTOM
    status: SkillStatus = SkillStatus.ACTIVE
    is_synced: bool = False
    normalized_name: str = field(init=False)

    def __post_init__(self) -> None:
        self.normalized_name = normalize_name(self.name)

    def with_status(self, status: SkillStatus) -> "SkillRecord":
        return replace(self, status=status)


@dataclass
class ScanResult:
    records: List[SkillRecord]
    scanned_roots: List[str]
    timestamp: int


@dataclass
class SkillMetadata:
    """Front matter fields recognised in a skill document."""
    name: str = ""
    description: str = ""
    license: Optional[str] = None
    compatibility: Optional[str] = None
    allowed_tools: Optional[str] = None


@dataclass
class MarketplaceSkill:
    """A skill published in a remote repository."""
    name: str
    description: str
    source: SkillRepository
    skill_path: str
    full_content: str
    body_content: str
    license: Optional[str] = None
    compatibility: Optional[str] = None

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    def to_record(self, status: SkillStatus = SkillStatus.MISSING) -> SkillRecord:
        """Status-annotated record for gap analysis against the marketplace.

        ``path`` is the GitHub page of the SKILL.md file.
        """
        repo = self.source
        document = "/".join(p for p in (self.skill_path, SKILL_FILENAME) if p)
        return SkillRecord(
            id=f"{repo.slug}/{document}".lower(),
            name=self.name,
            path=f"https://github.com/{repo.slug}/blob/{repo.branch}/{document}",
            description=self.description,
            source=SkillSource.MARKETPLACE,
            status=status,
        )


@dataclass
class SkillFile:
    path: str
    content: str


@dataclass
class CacheEntry(Generic[T]):
    data: T
    timestamp: float


@dataclass
class GapAnalysisResult:
    present: List[SkillRecord]
    missing: List[SkillRecord]
    total_available: int
    coverage_percentage: int


@dataclass
class WorkspaceView:
    """Scan records reconciled into the groups shown to the user."""
    active: List[SkillRecord]
    global_skills: List[SkillRecord]
    missing: List[SkillRecord]
    gap: GapAnalysisResult

    @property
    def all_records(self) -> List[SkillRecord]:
        return [*self.active, *self.global_skills, *self.missing]

    @property
    def installed_names(self) -> set[str]:
        return {r.name for r in self.all_records if r.status is not SkillStatus.MISSING}

    def by_status(self, status: SkillStatus) -> List[SkillRecord]:
        return [r for r in self.all_records if r.status is status]


@dataclass
class ImportSummary:
    imported: int
    total: int
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return f"imported {self.imported} of {self.total}"


def as_dict(record: Any) -> dict[str, Any]:
    """JSON-friendly view of a record for ``--json`` output."""
    if isinstance(record, SkillRecord):
        return {
            "id": record.id,
            "name": record.name,
            "normalizedName": record.normalized_name,
            "path": record.path,
            "description": record.description,
            "dependencies": list(record.dependencies),
            "source": record.source.value,
            "status": record.status.value,
            "isSynced": record.is_synced,
        }
    if isinstance(record, MarketplaceSkill):
        return {
            "name": record.name,
            "description": record.description,
            "license": record.license,
            "compatibility": record.compatibility,
            "source": record.source.model_dump(by_alias=True),
            "skillPath": record.skill_path,
        }
    raise TypeError(f"unsupported record type: {type(record).__name__}")
