"""Compare local skills against a reference set and move skills around."""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..core.global_paths import GlobalPath
from ..util.log import Log
from .errors import DestinationExistsError
from .models import (
    GapAnalysisResult,
    ImportSummary,
    MarketplaceSkill,
    SkillRecord,
    SkillStatus,
    WorkspaceView,
    normalize_name,
)

log = Log.create({"service": "skill.gap"})


def _dedupe(records: Iterable[SkillRecord]) -> List[SkillRecord]:
    # last record wins, position of the first is kept
    by_name: Dict[str, SkillRecord] = {}
    for record in records:
        by_name[record.normalized_name] = record
    return list(by_name.values())


def _copy_tree(source: Path, target: Path) -> None:
    if target.exists():
        raise DestinationExistsError(str(target))
    shutil.copytree(source, target)


def _move_to_trash(source: Path, trash_dir: Path) -> Path:
    if not source.is_dir():
        raise FileNotFoundError(f"No such skill directory: {source}")
    trash_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    target = trash_dir / f"{stamp}__{source.name}"
    counter = 1
    while target.exists():
        target = trash_dir / f"{stamp}__{source.name}.{counter}"
        counter += 1
    shutil.move(str(source), str(target))
    return target


class GapAnalyzer:
    """Gap analysis plus import and delete of skill directories.

    Failures of :meth:`import_skill` and :meth:`delete_skill` are never
    raised; they are logged, passed to ``on_error`` and reported as False.
    """

    def __init__(
        self,
        workspace_root: str,
        trash_dir: Optional[str] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.workspace_root = workspace_root
        self.trash_dir = Path(trash_dir) if trash_dir else Path(GlobalPath.trash()) / "skills"
        self._on_error = on_error
        self.last_trash_path: Optional[Path] = None

    def _report(self, message: str) -> None:
        log.error(message)
        if self._on_error:
            self._on_error(message)

    def analyze(
        self,
        local: Sequence[SkillRecord],
        reference: Sequence[SkillRecord | MarketplaceSkill],
    ) -> GapAnalysisResult:
        """Split ``reference`` by whether a local skill has the same name.

        ``reference`` may be the global library or a marketplace listing.
        Returned records are copies with status ``active`` (present) or
        ``missing``; the inputs are left untouched.
        """
        local_names = {r.normalized_name for r in local}
        present: List[SkillRecord] = []
        missing: List[SkillRecord] = []

        for skill in reference:
            if isinstance(skill, MarketplaceSkill):
                skill = skill.to_record()
            if skill.normalized_name in local_names:
                present.append(skill.with_status(SkillStatus.ACTIVE))
            else:
                missing.append(skill.with_status(SkillStatus.MISSING))

        total = len(reference)
        coverage = round(len(present) / total * 100) if total > 0 else 100
        return GapAnalysisResult(
            present=present,
            missing=missing,
            total_available=total,
            coverage_percentage=coverage,
        )

    def reconcile(self, records: Sequence[SkillRecord]) -> WorkspaceView:
        """Group scan records into workspace, global library and missing skills."""
        active = _dedupe(r for r in records if r.status is SkillStatus.ACTIVE)
        global_skills = _dedupe(r for r in records if r.status is SkillStatus.IMPORTED)

        global_names = {r.normalized_name for r in global_skills}
        active = [replace(r, is_synced=r.normalized_name in global_names) for r in active]

        gap = self.analyze(active, global_skills)
        return WorkspaceView(
            active=active,
            global_skills=global_skills,
            missing=gap.missing,
            gap=gap,
        )

    async def import_skill(self, skill: SkillRecord, target_dir: str) -> bool:
        """Copy the directory holding ``skill`` into ``target_dir``.

        An existing destination is never overwritten.
        """
        source = Path(skill.path).parent
        target = Path(target_dir) / source.name
        try:
            await asyncio.to_thread(_copy_tree, source, target)
        except (OSError, DestinationExistsError) as e:
            message = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            self._report(f'Failed to import skill "{skill.name}": {message}')
            return False

        log.info("imported skill", {"name": skill.name, "target": str(target)})
        return True

    async def import_all(self, skills: Sequence[SkillRecord], target_dir: str) -> ImportSummary:
        """Import ``skills`` concurrently; one failure does not stop the rest."""
        results = await asyncio.gather(*(self.import_skill(s, target_dir) for s in skills))
        summary = ImportSummary(imported=sum(1 for ok in results if ok), total=len(skills))
        for skill, ok in zip(skills, results):
            if not ok:
                summary.failures[skill.name] = skill.path
        log.info(summary.message)
        return summary

    async def delete_skill(self, skill: SkillRecord) -> bool:
        """Move the directory holding ``skill`` to the trash.

        The directory can be restored from the trash by hand.
        """
        source = Path(skill.path).parent
        try:
            self.last_trash_path = await asyncio.to_thread(_move_to_trash, source, self.trash_dir)
        except (OSError, shutil.Error) as e:
            self._report(f'Failed to delete skill "{skill.name}": {e}')
            return False

        log.info("moved skill to trash", {"name": skill.name, "trash": str(self.last_trash_path)})
        return True

    def find_missing_dependencies(
        self,
        skill: SkillRecord,
        universe: Iterable[SkillRecord],
    ) -> List[str]:
        """Declared dependencies of ``skill`` that no record in ``universe`` provides."""
        available = {r.normalized_name for r in universe}
        return [dep for dep in skill.dependencies if normalize_name(dep) not in available]

    def target_for(self, skill: SkillRecord, target_import_path: str, global_root: str) -> str:
        """Where importing ``skill`` copies it.

        Missing skills come into the workspace; workspace skills go to the
        global library.
        """
        if skill.status is SkillStatus.MISSING:
            return os.path.join(self.workspace_root, target_import_path)
        return global_root
