"""Write marketplace skills to disk."""

from __future__ import annotations

import asyncio
import os
import shutil
import uuid
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Sequence

from ..util.log import Log
from .errors import DestinationExistsError, UnsafePathError
from .models import MarketplaceSkill, SkillFile

if TYPE_CHECKING:
    from .github import GitHubSkillsClient

log = Log.create({"service": "skill.installer"})


def _safe_relative(path: str) -> PurePosixPath:
    rel = PurePosixPath(path.replace("\\", "/"))
    if not path or rel.is_absolute() or ".." in rel.parts or Path(path).is_absolute():
        raise UnsafePathError(path)
    return rel


def _write_all(target_dir: Path, files: Sequence[SkillFile]) -> None:
    target_dir.mkdir(parents=True, exist_ok=True)
    for file in files:
        dest = target_dir.joinpath(*_safe_relative(file.path).parts)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(file.content, encoding="utf-8")


async def write_skill_files(target_dir: str | Path, files: Sequence[SkillFile]) -> None:
    """Write ``files`` below ``target_dir``, creating directories as needed.

    Every path is validated before anything is written.
    """
    for file in files:
        _safe_relative(file.path)
    await asyncio.to_thread(_write_all, Path(target_dir), files)


async def install_marketplace_skill(
    client: "GitHubSkillsClient",
    skill: MarketplaceSkill,
    target_root: str | Path,
) -> Path:
    """Install ``skill`` as ``target_root/<skill name>``.

    All files are downloaded before anything touches the disk, then written to
    a staging directory that is renamed into place. Either the whole skill is
    installed or nothing is.
    """
    if len(_safe_relative(skill.name).parts) != 1:
        raise UnsafePathError(skill.name)
    target = Path(target_root) / skill.name
    if target.exists():
        raise DestinationExistsError(str(target))

    files = await client.fetch_skill_files(skill)

    staging = target.parent / f".{skill.name}.{uuid.uuid4().hex[:8]}.partial"
    try:
        await write_skill_files(staging, files)
        if target.exists():
            raise DestinationExistsError(str(target))
        await asyncio.to_thread(os.replace, staging, target)
    finally:
        if staging.exists():
            await asyncio.to_thread(shutil.rmtree, staging, True)

    log.info("installed skill", {"name": skill.name, "path": str(target), "files": len(files)})
    return target
