"""Marketplace repository CLI commands."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from ...core.config import ConfigError, ConfigManager
from ...core.config_schema import SkillRepository
from ...skill.constants import DEFAULT_SKILL_REPOSITORIES

app = typer.Typer(help="Manage marketplace repositories")
console = Console(soft_wrap=True)


def _describe(repo: SkillRepository) -> str:
    location = f"{repo.slug}@{repo.branch}"
    if repo.path:
        location += f":{repo.path}"
    if repo.single_skill:
        location += " (single skill)"
    return location


@app.command("list")
def list_command() -> None:
    """Show the default and configured repositories."""

    async def run() -> None:
        config = await ConfigManager.get()
        for repo in DEFAULT_SKILL_REPOSITORIES:
            console.print(f"  {_describe(repo)} [dim](default)[/dim]")
        for repo in config.skill_repositories:
            console.print(f"  {_describe(repo)}")

    try:
        asyncio.run(run())
    except ConfigError as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(1)


@app.command("add")
def add_command(
    owner: str = typer.Argument(..., help="Repository owner"),
    repo: str = typer.Argument(..., help="Repository name"),
    path: str = typer.Option("", "--path", help="Directory holding the skills"),
    branch: str = typer.Option("main", "--branch", help="Branch to read"),
    single: bool = typer.Option(False, "--single", help="The path is one skill"),
) -> None:
    """Add a repository to the global configuration."""
    entry = SkillRepository(owner=owner, repo=repo, path=path, branch=branch, single_skill=single)

    async def run() -> None:
        await ConfigManager.update_global({"skillRepositories": [entry.model_dump(by_alias=True)]})

    try:
        asyncio.run(run())
    except ConfigError as e:
        console.print(str(e), style="red", markup=False)
        raise typer.Exit(1)

    console.print(f"Added {_describe(entry)}", markup=False)
