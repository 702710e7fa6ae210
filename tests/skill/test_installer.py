from pathlib import Path

import pytest

from openskills.core.config_schema import SkillRepository
from openskills.skill.errors import DestinationExistsError, SkillDownloadError, UnsafePathError
from openskills.skill.installer import install_marketplace_skill, write_skill_files
from openskills.skill.models import MarketplaceSkill, SkillFile


def _skill(name: str = "alpha") -> MarketplaceSkill:
    return MarketplaceSkill(
        name=name,
        description="d",
        source=SkillRepository(owner="acme", repo="skills", path="skills"),
        skill_path=f"skills/{name}",
        full_content="",
        body_content="",
    )


class _Client:
    def __init__(self, files: list[SkillFile] | None = None, error: Exception | None = None) -> None:
        self.files = files or []
        self.error = error
        self.calls = 0

    async def fetch_skill_files(self, skill: MarketplaceSkill) -> list[SkillFile]:
        self.calls += 1
        if self.error:
            raise self.error
        return self.files


@pytest.mark.anyio
async def test_write_skill_files_creates_nested_directories(tmp_path: Path) -> None:
    await write_skill_files(tmp_path / "out", [
        SkillFile("SKILL.md", "doc"),
        SkillFile("scripts/deep/run.sh", "echo"),
    ])

    assert (tmp_path / "out" / "SKILL.md").read_text(encoding="utf-8") == "doc"
    assert (tmp_path / "out" / "scripts" / "deep" / "run.sh").read_text(encoding="utf-8") == "echo"


@pytest.mark.anyio
@pytest.mark.parametrize("bad_path", ["../escape.txt", "/etc/passwd", "a/../../b", ""])
async def test_write_skill_files_rejects_unsafe_paths(tmp_path: Path, bad_path: str) -> None:
    with pytest.raises(UnsafePathError):
        await write_skill_files(tmp_path / "out", [SkillFile("ok.txt", "x"), SkillFile(bad_path, "x")])

    assert not (tmp_path / "out").exists()


@pytest.mark.anyio
async def test_install_writes_all_files_into_named_directory(tmp_path: Path) -> None:
    client = _Client([SkillFile("SKILL.md", "doc"), SkillFile("ref/notes.md", "notes")])

    target = await install_marketplace_skill(client, _skill(), tmp_path / "skills")

    assert target == tmp_path / "skills" / "alpha"
    assert (target / "ref" / "notes.md").read_text(encoding="utf-8") == "notes"
    assert [p.name for p in (tmp_path / "skills").iterdir()] == ["alpha"]


@pytest.mark.anyio
async def test_install_refuses_existing_destination(tmp_path: Path) -> None:
    (tmp_path / "skills" / "alpha").mkdir(parents=True)
    client = _Client([SkillFile("SKILL.md", "doc")])

    with pytest.raises(DestinationExistsError):
        await install_marketplace_skill(client, _skill(), tmp_path / "skills")

    assert client.calls == 0


@pytest.mark.anyio
async def test_failed_download_writes_nothing(tmp_path: Path) -> None:
    client = _Client(error=SkillDownloadError(["a.txt"], {"a.txt": "Failed to fetch file: 500"}))

    with pytest.raises(SkillDownloadError):
        await install_marketplace_skill(client, _skill(), tmp_path / "skills")

    assert not (tmp_path / "skills").exists()


@pytest.mark.anyio
async def test_failed_write_leaves_no_partial_directory(tmp_path: Path) -> None:
    client = _Client([SkillFile("SKILL.md", "doc"), SkillFile("../evil", "x")])
    root = tmp_path / "skills"
    root.mkdir()

    with pytest.raises(UnsafePathError):
        await install_marketplace_skill(client, _skill(), root)

    assert list(root.iterdir()) == []


@pytest.mark.anyio
async def test_install_rejects_skill_names_with_separators(tmp_path: Path) -> None:
    with pytest.raises(UnsafePathError):
        await install_marketplace_skill(_Client(), _skill("../outside"), tmp_path)
