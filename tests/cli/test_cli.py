from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from typer.testing import CliRunner

from openskills import __version__
from openskills.cli.main import app
from openskills.core.config_schema import SkillRepository
from openskills.core.global_paths import GlobalPath
from openskills.skill.github import GitHubSkillsClient

runner = CliRunner()


def _skill(root: Path, folder: str, body: str = "") -> Path:
    directory = root / folder
    directory.mkdir(parents=True)
    (directory / "SKILL.md").write_text(f"# {folder}\n{body}", encoding="utf-8")
    return directory


@pytest.fixture
def workspace(tmp_path: Path, isolated_home: Path) -> Path:
    ws = tmp_path / "ws"
    _skill(ws / ".agent" / "skills", "foo", "Local foo\n")
    _skill(isolated_home / "open-skills", "foo")
    _skill(isolated_home / "open-skills", "bar", "Global bar\n")
    return ws


def test_version() -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"open-skills {__version__}" in result.stdout


def test_scan_groups_records(workspace: Path) -> None:
    result = runner.invoke(app, ["-w", str(workspace), "scan"])

    assert result.exit_code == 0, result.stdout
    assert "Active (1)" in result.stdout
    assert "My Skills (2)" in result.stdout
    assert "Missing (1)" in result.stdout
    assert "✓ foo (synced)" in result.stdout
    assert "✗ bar" in result.stdout
    assert "Skills: 1 active, 1 missing" in result.stdout


def test_scan_json_output(workspace: Path) -> None:
    result = runner.invoke(app, ["-w", str(workspace), "scan", "--json"])

    assert result.exit_code == 0, result.stdout
    records = json.loads(result.stdout)
    assert sorted((r["name"], r["status"]) for r in records) == [
        ("bar", "imported"),
        ("bar", "missing"),
        ("foo", "active"),
        ("foo", "imported"),
    ]
    assert records[0]["name"] == "foo"
    assert records[0]["isSynced"] is True
    assert records[0]["source"] == ".agent/skills"


def test_gap_reports_coverage_and_missing_dependencies(workspace: Path) -> None:
    _skill(workspace / ".agent" / "skills", "needs", "## Dependencies\n- foo\n- Ghost Skill\n")

    result = runner.invoke(app, ["-w", str(workspace), "gap"])

    assert result.exit_code == 0, result.stdout
    assert "Coverage: 50% (1 of 2)" in result.stdout
    assert "✗ bar" in result.stdout
    assert "needs: missing dependencies: Ghost Skill" in result.stdout


def test_import_missing_skill_into_workspace(workspace: Path) -> None:
    result = runner.invoke(app, ["-w", str(workspace), "import", "bar"])

    assert result.exit_code == 0, result.stdout
    assert 'Skill "bar" imported to workspace!' in result.stdout
    assert (workspace / ".agent" / "skills" / "bar" / "SKILL.md").is_file()


def test_import_global_copies_workspace_skill_to_library(workspace: Path, isolated_home: Path) -> None:
    _skill(workspace / ".agent" / "skills", "local-only")

    result = runner.invoke(app, ["-w", str(workspace), "import", "local-only", "--global"])

    assert result.exit_code == 0, result.stdout
    assert 'Skill "local-only" copied to My Skills!' in result.stdout
    assert (isolated_home / "open-skills" / "local-only" / "SKILL.md").is_file()


def test_import_conflict_fails(workspace: Path) -> None:
    result = runner.invoke(app, ["-w", str(workspace), "import", "foo"])

    assert result.exit_code == 1
    assert 'Failed to import skill "foo"' in result.stdout


def test_import_missing_imports_every_missing_skill(workspace: Path) -> None:
    result = runner.invoke(app, ["-w", str(workspace), "import-missing"])

    assert result.exit_code == 0, result.stdout
    assert "imported 1 of 1" in result.stdout
    assert (workspace / ".agent" / "skills" / "bar").is_dir()


def test_delete_moves_skill_to_trash(workspace: Path) -> None:
    result = runner.invoke(app, ["-w", str(workspace), "delete", "foo"])

    assert result.exit_code == 0, result.stdout
    assert 'Skill "foo" deleted successfully.' in result.stdout
    assert not (workspace / ".agent" / "skills" / "foo").exists()
    trash = Path(GlobalPath.trash()) / "skills"
    assert [p.name.endswith("__foo") for p in trash.iterdir()] == [True]


def test_unknown_skill_is_an_error(workspace: Path) -> None:
    result = runner.invoke(app, ["-w", str(workspace), "delete", "nope"])

    assert result.exit_code == 1
    assert 'Skill "nope" not found' in result.stdout


def test_repo_add_updates_global_config() -> None:
    result = runner.invoke(app, ["repo", "add", "me", "mine", "--path", "skills", "--branch", "dev"])

    assert result.exit_code == 0, result.stdout
    assert "Added me/mine@dev:skills" in result.stdout
    saved = json.loads((Path(GlobalPath.config()) / "open-skills.json").read_text(encoding="utf-8"))
    assert saved["skillRepositories"] == [
        {"owner": "me", "repo": "mine", "path": "skills", "branch": "dev", "singleSkill": False}
    ]


def _marketplace(monkeypatch: pytest.MonkeyPatch) -> None:
    raw = "https://raw.githubusercontent.com/acme/skills/main/skills"
    routes = {
        "https://api.github.com/repos/acme/skills/git/trees/main?recursive=1": lambda: httpx.Response(200, json={
            "tree": [
                {"path": "skills/alpha/SKILL.md", "type": "blob"},
                {"path": "skills/alpha/ref/guide.md", "type": "blob"},
            ],
        }),
        f"{raw}/alpha/SKILL.md": lambda: httpx.Response(200, text="---\nname: alpha\ndescription: Alpha skill\n---\n"),
        f"{raw}/alpha/ref/guide.md": lambda: httpx.Response(200, text="guide"),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        return route() if route else httpx.Response(404)

    async def no_sleep(delay: float) -> None:
        return None

    def fake_from_config(cls, config, **kwargs):  # type: ignore[no-untyped-def]
        return cls(
            [SkillRepository(owner="acme", repo="skills", path="skills")],
            transport=httpx.MockTransport(handler),
            sleep=no_sleep,
            **kwargs,
        )

    monkeypatch.setattr(GitHubSkillsClient, "from_config", classmethod(fake_from_config))


def test_marketplace_lists_remote_skills(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _marketplace(monkeypatch)

    result = runner.invoke(app, ["-w", str(workspace), "marketplace"])

    assert result.exit_code == 0, result.stdout
    assert "Marketplace Skills (1)" in result.stdout
    assert "alpha acme/skills" in result.stdout
    assert "Alpha skill" in result.stdout


def test_install_downloads_skill_into_workspace(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _marketplace(monkeypatch)

    result = runner.invoke(app, ["-w", str(workspace), "install", "alpha"])

    assert result.exit_code == 0, result.stdout
    target = workspace / ".agent" / "skills" / "alpha"
    assert (target / "ref" / "guide.md").read_text(encoding="utf-8") == "guide"
    assert 'Skill "alpha" installed to' in result.stdout


def test_install_unknown_marketplace_skill(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _marketplace(monkeypatch)

    result = runner.invoke(app, ["-w", str(workspace), "install", "zeta"])

    assert result.exit_code == 1
    assert 'Skill "zeta" not found in the marketplace' in result.stdout


def test_gap_against_marketplace(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _marketplace(monkeypatch)

    result = runner.invoke(app, ["-w", str(workspace), "gap", "--marketplace"])

    assert result.exit_code == 0, result.stdout
    assert "Coverage: 0% (0 of 1)" in result.stdout
    assert "✗ alpha" in result.stdout


def test_malformed_project_config_is_skipped(workspace: Path) -> None:
    (workspace / "open-skills.json").write_text('{"cacheTimeout": 5,}', encoding="utf-8")

    result = runner.invoke(app, ["-w", str(workspace), "scan"])

    assert result.exit_code == 0, result.stdout
    assert "Active (1)" in result.stdout


def test_repo_add_leaves_malformed_global_config_untouched() -> None:
    config_file = Path(GlobalPath.config()) / "open-skills.json"
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text('{"cacheTimeout": 5}}', encoding="utf-8")

    result = runner.invoke(app, ["repo", "add", "me", "mine"])

    assert result.exit_code == 1
    assert "Config error in" in result.stdout
    assert config_file.read_text(encoding="utf-8") == '{"cacheTimeout": 5}}'
