from __future__ import annotations

import json
from pathlib import Path

import pytest

from openskills.runtime import AppContext
from openskills.skill.models import SkillStatus


def _skill(root: Path, folder: str) -> None:
    (root / folder).mkdir(parents=True)
    (root / folder / "SKILL.md").write_text(f"# {folder}\n", encoding="utf-8")


@pytest.mark.anyio
async def test_services_follow_workspace_config(tmp_path: Path, isolated_home: Path) -> None:
    ws = tmp_path / "ws"
    ws.mkdir()
    (ws / "open-skills.json").write_text(
        json.dumps({"customScanPaths": ["team-skills"], "targetImportPath": "vendor/skills", "cacheTimeout": 42}),
        encoding="utf-8",
    )
    _skill(ws / "team-skills", "shared-conventions")

    app = AppContext(str(ws))
    await app.startup()
    try:
        view = await app.view()
        assert [r.name for r in view.active] == ["shared-conventions"]
        assert app.import_target == str(ws / "vendor" / "skills")
        assert app.global_root == str(isolated_home / "open-skills")
        assert app.github.cache.ttl == 42
    finally:
        await app.shutdown()


@pytest.mark.anyio
async def test_find_skill_prefers_missing_then_workspace(tmp_path: Path, isolated_home: Path) -> None:
    ws = tmp_path / "ws"
    _skill(ws / ".agent" / "skills", "both")
    _skill(isolated_home / "open-skills", "both")
    _skill(isolated_home / "open-skills", "Remote Only")

    app = AppContext(str(ws))
    await app.startup()

    both = await app.find_skill("both")
    remote = await app.find_skill("remoteonly")
    unknown = await app.find_skill("nothing")

    assert both is not None and both.status is SkillStatus.ACTIVE
    assert remote is not None and remote.status is SkillStatus.MISSING
    assert unknown is None
    await app.shutdown()


def test_services_require_startup() -> None:
    app = AppContext(".")

    with pytest.raises(RuntimeError):
        app.scanner
