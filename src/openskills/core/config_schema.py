"""Configuration schema — Pydantic models for open-skills config files."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SkillRepository(BaseModel):
    """A GitHub repository that publishes skills.

    ``path`` is the directory inside the repository that holds the skills.
    With ``single_skill`` the path itself is one skill directory and no tree
    listing is made.
    """
    owner: str
    repo: str
    path: str = ""
    branch: str = "main"
    single_skill: bool = Field(False, alias="singleSkill")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("path")
    @classmethod
    def _strip_slashes(cls, value: str) -> str:
        return value.strip().strip("/")

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: Optional[str] = None
    format: Optional[Literal["kv", "json", "pretty"]] = None
    console: Optional[bool] = None
    file: Optional[bool] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class Config(BaseModel):
    """Main configuration schema."""
    schema_: Optional[str] = Field(None, alias="$schema")

    custom_scan_paths: List[str] = Field(default_factory=list, alias="customScanPaths")
    target_import_path: str = Field(".agent/skills", alias="targetImportPath")
    global_skills_path: str = Field("~/open-skills", alias="globalSkillsPath")

    cache_timeout: int = Field(3600, alias="cacheTimeout", ge=0)
    github_token: Optional[str] = Field(None, alias="githubToken")
    skill_repositories: List[SkillRepository] = Field(
        default_factory=list,
        alias="skillRepositories",
    )

    logging: Optional[LoggingConfig] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
