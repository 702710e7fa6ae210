from collections.abc import Iterator
from pathlib import Path

import pytest

from openskills.core.config import ConfigManager
from openskills.core.global_paths import GlobalPath
from openskills.util.log import Log


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("OPEN_SKILLS_TEST_HOME", str(home))
    monkeypatch.delenv("OPEN_SKILLS_CONFIG_CONTENT", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)

    app_dirs = tmp_path / "app"
    monkeypatch.setattr(GlobalPath, "data", classmethod(lambda cls: str(app_dirs / "data")))
    monkeypatch.setattr(GlobalPath, "config", classmethod(lambda cls: str(app_dirs / "config")))
    monkeypatch.setattr(GlobalPath, "cache", classmethod(lambda cls: str(app_dirs / "cache")))
    return home


@pytest.fixture(autouse=True)
def config_context() -> Iterator[None]:
    token = ConfigManager.provide(ConfigManager())
    try:
        yield
    finally:
        ConfigManager.restore(token)


@pytest.fixture(autouse=True)
def _log_teardown() -> Iterator[None]:
    yield
    Log.disable()


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"
