"""Skill marketplace backed by GitHub repositories.

Each configured repository is resolved into :class:`MarketplaceSkill`
records. A recursive tree listing (GitHub REST API) locates every
``SKILL.md`` under the repository's skills path, then each document is
fetched from ``raw.githubusercontent.com`` and parsed.

Tree listings and raw documents share one TTL cache per client.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Sequence

import httpx

from ..core.config_schema import Config, SkillRepository
from ..util.log import Log
from .cache import TTLCache
from .constants import DEFAULT_SKILL_REPOSITORIES, METADATA_FILENAME, SKILL_FILENAME
from .errors import (
    GitHubAPIError,
    RawContentError,
    RepositoryNotFoundError,
    SkillDownloadError,
    SkillError,
)
from .frontmatter import parse_skill_document
from .models import MarketplaceSkill, SkillFile, SkillMetadata

log = Log.create({"service": "skill.github"})

API_BASE = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"

DEFAULT_DESCRIPTION = "No description available"
RATE_LIMIT_THRESHOLD = 10
DEFAULT_CONCURRENCY = 5
DEFAULT_BATCH_DELAY = 0.15


class RemoteFile(NamedTuple):
    """A repository file and the path it takes inside the installed skill."""
    remote_path: str
    relative_path: str


def _join(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name


class GitHubSkillsClient:
    """Fetch marketplace skills from GitHub.

    Example:
        async with GitHubSkillsClient.from_config(config) as client:
            skills = await client.fetch_all_skills()
            files = await client.fetch_skill_files(skills[0])
    """

    def __init__(
        self,
        repositories: Optional[Sequence[SkillRepository]] = None,
        *,
        token: Optional[str] = None,
        cache: Optional[TTLCache] = None,
        cache_ttl: float = 3600,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        on_warning: Optional[Callable[[str], None]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.repositories: List[SkillRepository] = list(
            DEFAULT_SKILL_REPOSITORIES if repositories is None else repositories
        )
        self.token = token
        self.cache = cache if cache is not None else TTLCache(ttl=cache_ttl)
        self._transport = transport
        self._on_warning = on_warning
        self._sleep = sleep
        self._http: Optional[httpx.AsyncClient] = None
        self._last_errors: List[str] = []
        self._rate_limit_warned = False

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> "GitHubSkillsClient":
        """Client for the default repositories plus the configured ones."""
        return cls(
            [*DEFAULT_SKILL_REPOSITORIES, *config.skill_repositories],
            token=config.github_token,
            cache_ttl=config.cache_timeout,
            **kwargs,
        )

    async def __aenter__(self) -> "GitHubSkillsClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=10.0,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._http

    def _api_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _warn(self, message: str) -> None:
        log.warn(message)
        if self._on_warning:
            self._on_warning(message)

    @property
    def last_errors(self) -> List[str]:
        """Per-repository failures of the last :meth:`fetch_all_skills` call."""
        return list(self._last_errors)

    async def fetch_all_skills(self) -> List[MarketplaceSkill]:
        """Resolve every repository concurrently.

        A failing repository contributes no skills. When nothing at all could
        be fetched a single warning is emitted.
        """
        skills: List[MarketplaceSkill] = []
        errors: List[str] = []

        with log.time("fetch all skills", {"repositories": len(self.repositories)}):
            results = await asyncio.gather(
                *(self.fetch_skills_from_repo(repo) for repo in self.repositories),
                return_exceptions=True,
            )

        for repo, result in zip(self.repositories, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                log.error("failed to fetch repository", {"repository": repo.slug, "error": str(result)})
                errors.append(f"{repo.slug}: {result}")
                continue
            skills.extend(result)

        self._last_errors = errors
        if errors and not skills:
            more = f" (+{len(errors) - 1} more)" if len(errors) > 1 else ""
            self._warn(f"Failed to fetch some skills: {errors[0]}{more}")

        return skills

    async def fetch_skills_from_repo(self, repo: SkillRepository) -> List[MarketplaceSkill]:
        if repo.single_skill:
            return await self._fetch_single_skill(repo)

        tree = await self.fetch_repo_tree(repo.owner, repo.repo, repo.branch)
        prefix = f"{repo.path}/" if repo.path else ""

        skill_paths: List[str] = []
        for item in tree.get("tree", []):
            path = item.get("path", "")
            if item.get("type") != "blob" or not path.startswith(prefix):
                continue
            if path.endswith(f"/{SKILL_FILENAME}") or path == SKILL_FILENAME:
                skill_paths.append(path.rpartition("/")[0])

        # dict keeps first-seen order
        unique_paths = list(dict.fromkeys(skill_paths))

        results = await asyncio.gather(
            *(
                self.fetch_skill_metadata(repo, path.rsplit("/", 1)[-1] or repo.repo, path)
                for path in unique_paths
            )
        )
        return [skill for skill in results if skill is not None]

    async def _fetch_single_skill(self, repo: SkillRepository) -> List[MarketplaceSkill]:
        skill_name = repo.path.rsplit("/", 1)[-1] or repo.repo
        skill = await self.fetch_skill_metadata(repo, skill_name, repo.path)
        return [skill] if skill else []

    async def fetch_repo_tree(self, owner: str, repo: str, branch: str) -> Dict[str, Any]:
        """Recursive git tree listing of ``branch``."""
        cache_key = f"tree:{owner}/{repo}@{branch}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"{API_BASE}/repos/{owner}/{repo}/git/trees/{branch}?recursive=1"
        response = await self._client().get(url, headers=self._api_headers())

        if not response.is_success:
            if response.status_code == 404:
                raise RepositoryNotFoundError(owner, repo, branch)
            raise GitHubAPIError(response.status_code, response.reason_phrase)

        self.check_rate_limit(response.headers)

        data = response.json()
        if data.get("truncated"):
            log.warn("tree listing truncated", {"repository": f"{owner}/{repo}", "branch": branch})
        self.cache.set(cache_key, data)
        return data

    def check_rate_limit(self, headers: httpx.Headers | Dict[str, str]) -> None:
        """Warn once when fewer than 10 API requests remain.

        The warning is re-armed by :meth:`clear_cache`.
        """
        if self._rate_limit_warned:
            return
        remaining_raw = headers.get("x-ratelimit-remaining")
        if not remaining_raw:
            return
        try:
            remaining = int(remaining_raw)
        except ValueError:
            return
        if remaining >= RATE_LIMIT_THRESHOLD:
            return

        reset_raw = headers.get("x-ratelimit-reset")
        try:
            reset_at = datetime.fromtimestamp(int(reset_raw)) if reset_raw else datetime.now()
        except ValueError:
            reset_at = datetime.now()

        self._rate_limit_warned = True
        self._warn(
            f"GitHub API rate limit low ({remaining} remaining). "
            f"Resets at {reset_at.strftime('%H:%M:%S')}"
        )

    async def fetch_skill_metadata(
        self,
        repo: SkillRepository,
        skill_name: str,
        skill_path: str,
    ) -> Optional[MarketplaceSkill]:
        """Fetch and parse one remote skill, or None if its document is unavailable."""
        try:
            content = await self.fetch_raw_content(
                repo.owner, repo.repo, _join(skill_path, SKILL_FILENAME), repo.branch
            )
        except (SkillError, httpx.HTTPError) as e:
            log.warn("failed to fetch skill", {"repository": repo.slug, "path": skill_path, "error": str(e)})
            return None

        parsed = parse_skill_document(content)
        metadata = parsed.metadata

        if not metadata.description:
            await self._enrich_from_metadata_json(repo, skill_name, skill_path, metadata)

        return MarketplaceSkill(
            name=metadata.name or skill_name,
            description=metadata.description or DEFAULT_DESCRIPTION,
            license=metadata.license,
            compatibility=metadata.compatibility,
            source=repo,
            skill_path=skill_path,
            full_content=content,
            body_content=parsed.body,
        )

    async def _enrich_from_metadata_json(
        self,
        repo: SkillRepository,
        skill_name: str,
        skill_path: str,
        metadata: SkillMetadata,
    ) -> None:
        # metadata.json is optional
        try:
            raw = await self.fetch_raw_content(
                repo.owner, repo.repo, _join(skill_path, METADATA_FILENAME), repo.branch
            )
            meta = json.loads(raw)
        except (SkillError, httpx.HTTPError, ValueError):
            return
        if not isinstance(meta, dict):
            return
        if meta.get("abstract"):
            metadata.description = str(meta["abstract"])
        if meta.get("organization") and not metadata.name:
            metadata.name = f"{meta['organization']}: {skill_name}"

    async def fetch_raw_content(self, owner: str, repo: str, path: str, branch: str) -> str:
        cache_key = f"raw:{owner}/{repo}/{path}@{branch}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        url = f"{RAW_BASE}/{owner}/{repo}/{branch}/{path}"
        response = await self._client().get(url)
        if not response.is_success:
            raise RawContentError(path, response.status_code)

        content = response.text
        self.cache.set(cache_key, content)
        return content

    async def fetch_file_content(self, owner: str, repo: str, path: str, branch: str) -> str:
        return await self.fetch_raw_content(owner, repo, path, branch)

    async def fetch_skill_files(self, skill: MarketplaceSkill) -> List[SkillFile]:
        """Download every file of ``skill``, with paths relative to its directory."""
        source = skill.source
        tree = await self.fetch_repo_tree(source.owner, source.repo, source.branch)
        prefix = f"{skill.skill_path}/" if skill.skill_path else ""

        files = [
            RemoteFile(item["path"], item["path"][len(prefix):])
            for item in tree.get("tree", [])
            if item.get("type") == "blob" and item.get("path", "").startswith(prefix)
        ]
        return await self.fetch_files_with_pool(files, source.owner, source.repo, source.branch)

    async def fetch_files_with_pool(
        self,
        files: Sequence[RemoteFile],
        owner: str,
        repo: str,
        branch: str,
        concurrency: int = DEFAULT_CONCURRENCY,
        batch_delay: float = DEFAULT_BATCH_DELAY,
    ) -> List[SkillFile]:
        """Download ``files`` in windows of ``concurrency`` requests.

        Each window completes before the next starts, with a pause of
        ``batch_delay`` seconds between windows. A failed file does not stop
        the others; once every window is done, failures are raised together
        as :class:`SkillDownloadError`.
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        downloaded: List[SkillFile] = []
        failures: Dict[str, str] = {}

        for start in range(0, len(files), concurrency):
            window = files[start:start + concurrency]
            results = await asyncio.gather(
                *(self.fetch_raw_content(owner, repo, f.remote_path, branch) for f in window),
                return_exceptions=True,
            )
            for remote, result in zip(window, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    failures[remote.relative_path] = str(result)
                else:
                    downloaded.append(SkillFile(path=remote.relative_path, content=result))

            if start + concurrency < len(files):
                await self._sleep(batch_delay)

        if failures:
            log.error("skill download incomplete", {"repository": f"{owner}/{repo}", "failed": len(failures)})
            raise SkillDownloadError(list(failures), failures)

        return downloaded

    def clear_cache(self) -> None:
        self.cache.clear()
        self._rate_limit_warned = False
