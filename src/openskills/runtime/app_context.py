"""Application context shared by the command line commands."""

from __future__ import annotations

import os
from typing import Callable, List, Optional

from ..core.config import Config, ConfigManager
from ..core.global_paths import expand_home
from ..skill.gap import GapAnalyzer
from ..skill.github import GitHubSkillsClient
from ..skill.models import MarketplaceSkill, SkillRecord, WorkspaceView, normalize_name
from ..skill.scanner import SkillScanner
from ..util.log import Log

log = Log.create({"service": "runtime"})


class AppContext:
    """Services for one workspace, built from its effective configuration.

    Created once per command invocation. ``startup`` loads configuration;
    ``shutdown`` releases the HTTP client.
    """

    def __init__(
        self,
        workspace_root: str = ".",
        *,
        on_warning: Optional[Callable[[str], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.workspace_root = os.path.abspath(workspace_root)
        self.on_warning = on_warning
        self.on_error = on_error
        self.config: Optional[Config] = None
        self._scanner: Optional[SkillScanner] = None
        self._analyzer: Optional[GapAnalyzer] = None
        self._github: Optional[GitHubSkillsClient] = None

    async def startup(self) -> None:
        if self.config is not None:
            return
        self.config = await ConfigManager.load(self.workspace_root)
        log.info("runtime started", {"workspace": self.workspace_root, "sources": ConfigManager.sources()})

    async def shutdown(self) -> None:
        if self._github is not None:
            await self._github.aclose()
            self._github = None

    def _require_config(self) -> Config:
        if self.config is None:
            raise RuntimeError("AppContext used before startup()")
        return self.config

    @property
    def global_root(self) -> str:
        return expand_home(self._require_config().global_skills_path)

    @property
    def import_target(self) -> str:
        return os.path.join(self.workspace_root, self._require_config().target_import_path)

    @property
    def scanner(self) -> SkillScanner:
        if self._scanner is None:
            config = self._require_config()
            self._scanner = SkillScanner(
                self.workspace_root,
                config.custom_scan_paths,
                config.global_skills_path,
            )
        return self._scanner

    @property
    def analyzer(self) -> GapAnalyzer:
        if self._analyzer is None:
            self._analyzer = GapAnalyzer(self.workspace_root, on_error=self.on_error)
        return self._analyzer

    @property
    def github(self) -> GitHubSkillsClient:
        if self._github is None:
            self._github = GitHubSkillsClient.from_config(
                self._require_config(),
                on_warning=self.on_warning,
            )
        return self._github

    async def view(self) -> WorkspaceView:
        """Scan, then reconcile the records into a workspace view."""
        result = await self.scanner.scan()
        return self.analyzer.reconcile(result.records)

    async def find_skill(self, name: str) -> Optional[SkillRecord]:
        """Look up a skill by name or id.

        Missing skills come first, then workspace skills, then the global
        library.
        """
        view = await self.view()
        key = normalize_name(name)
        for record in [*view.missing, *view.active, *view.global_skills]:
            if record.normalized_name == key or record.id == name:
                return record
        return None

    async def find_marketplace_skill(self, name: str) -> List[MarketplaceSkill]:
        key = normalize_name(name)
        skills = await self.github.fetch_all_skills()
        return [s for s in skills if s.normalized_name == key]
