"""Local skill discovery.

Skills are found in two kinds of roots:
1. Workspace roots: every entry of ``DEFAULT_SCAN_PATHS`` plus user
   configured paths, relative to the workspace
2. The global library (``~/open-skills`` by default), shared by all workspaces

Inside a root, each subdirectory holding a ``SKILL.md`` is one skill. A
``SKILL.md`` lying directly in the root is a skill named after the root.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..core.global_paths import expand_home
from ..util.log import Log
from .constants import DEFAULT_GLOBAL_SKILLS_PATH, DEFAULT_SCAN_PATHS, SKILL_FILENAME
from .frontmatter import extract_dependencies, extract_description, extract_name
from .models import ScanResult, SkillRecord, SkillSource, SkillStatus

log = Log.create({"service": "skill.scanner"})

# Checked in order against the workspace-relative root path; first hit wins.
SOURCE_PATTERNS: List[Tuple[str, SkillSource]] = [
    (".cursor/rules", SkillSource.CURSOR_RULES),
    (".cursor/skills", SkillSource.CURSOR_SKILLS),
    (".agent", SkillSource.AGENT),
]


def _list_entries(directory: str) -> List[Tuple[str, bool, bool]]:
    with os.scandir(directory) as it:
        return [(entry.name, entry.is_dir(), entry.is_file()) for entry in it]


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def _is_within(path: str, root: str) -> bool:
    path = os.path.normpath(path)
    root = os.path.normpath(root)
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


class SkillScanner:
    """Scan a workspace and the global library for skill documents.

    Example:
        scanner = SkillScanner("/work/project", [".my-skills"], "~/open-skills")
        result = await scanner.scan()
        for record in result.records:
            print(record.name, record.status)
    """

    def __init__(
        self,
        workspace_root: str,
        custom_paths: Sequence[str] = (),
        global_path: str = DEFAULT_GLOBAL_SKILLS_PATH,
    ):
        self.workspace_root = os.path.normpath(workspace_root)
        self.custom_paths = list(custom_paths)
        self.global_path = os.path.normpath(expand_home(global_path))
        self._cached: Optional[ScanResult] = None

    def resolve_scan_paths(self) -> List[str]:
        paths = [
            os.path.join(self.workspace_root, p)
            for p in [*DEFAULT_SCAN_PATHS, *self.custom_paths]
        ]
        paths.append(self.global_path)
        return paths

    async def scan(self) -> ScanResult:
        """Scan every root concurrently.

        Records are ordered by root declaration order. A root that is missing
        or unreadable contributes no records.
        """
        scan_paths = self.resolve_scan_paths()
        records: List[SkillRecord] = []

        with log.time("scan", {"roots": len(scan_paths)}):
            results = await asyncio.gather(
                *(self._scan_directory(p) for p in scan_paths),
                return_exceptions=True,
            )

        for path, result in zip(scan_paths, results):
            if isinstance(result, BaseException):
                log.error("error scanning skills", {"directory": path, "error": result})
                continue
            records.extend(result)

        self._cached = ScanResult(
            records=records,
            scanned_roots=scan_paths,
            timestamp=int(time.time() * 1000),
        )
        log.info("scan finished", {"count": len(records)})
        return self._cached

    def cached_result(self) -> Optional[ScanResult]:
        """Last scan result, without scanning again."""
        return self._cached

    async def _scan_directory(self, directory: str) -> List[SkillRecord]:
        records: List[SkillRecord] = []

        try:
            entries = await asyncio.to_thread(_list_entries, directory)
        except FileNotFoundError:
            return records
        except OSError as e:
            log.warn("cannot read skill root", {"directory": directory, "error": str(e)})
            return records

        for name, is_dir, is_file in entries:
            if is_dir:
                record = await self._parse_skill_file(
                    os.path.join(directory, name, SKILL_FILENAME), name, directory
                )
                if record:
                    records.append(record)

            if name == SKILL_FILENAME and is_file:
                record = await self._parse_skill_file(
                    os.path.join(directory, name), os.path.basename(directory), directory
                )
                if record:
                    records.append(record)

        return records

    async def _parse_skill_file(
        self,
        file_path: str,
        skill_name: str,
        base_path: str,
    ) -> Optional[SkillRecord]:
        try:
            text = await asyncio.to_thread(_read_text, file_path)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            log.warn("failed to read skill file", {"path": file_path, "error": str(e)})
            return None

        source = self.resolve_source(base_path)
        return SkillRecord(
            id=self.generate_id(file_path),
            name=extract_name(text, skill_name),
            path=file_path,
            description=extract_description(text),
            dependencies=extract_dependencies(text),
            source=source,
            status=SkillStatus.IMPORTED if source is SkillSource.GLOBAL else SkillStatus.ACTIVE,
        )

    def generate_id(self, file_path: str) -> str:
        """Lowercased, slash-joined path relative to the workspace root."""
        if _is_within(file_path, self.workspace_root):
            relative = os.path.relpath(file_path, self.workspace_root)
        else:
            relative = os.path.normpath(file_path).lstrip("/\\")
        return relative.replace("\\", "/").lower()

    def resolve_source(self, base_path: str) -> SkillSource:
        if _is_within(base_path, self.global_path):
            return SkillSource.GLOBAL
        if _is_within(base_path, self.workspace_root):
            relative = os.path.relpath(base_path, self.workspace_root)
        else:
            relative = base_path
        relative = relative.replace("\\", "/")
        for fragment, source in SOURCE_PATTERNS:
            if fragment in relative:
                return source
        return SkillSource.CUSTOM
