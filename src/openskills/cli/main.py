"""CLI entry point for Open Skills.

Lists the skills of a workspace, compares them with the global library and
the GitHub marketplace, and copies skills between the three.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx
import typer
from rich.console import Console

from .. import __version__
from ..core.config import ConfigError
from ..runtime import AppContext, setup_logging
from ..skill.args import extract_skill
from ..skill.errors import SkillError
from ..skill.installer import install_marketplace_skill
from ..skill.models import SkillStatus, as_dict, status_label, status_marker
from ..util.error import format_error, format_unknown_error
from .cmd.repo import app as repo_app

app = typer.Typer(
    name="open-skills",
    help="Open Skills - discover, compare and import agent skills",
    no_args_is_help=True,
    add_completion=False,
)
app.add_typer(repo_app, name="repo", help="Manage marketplace repositories")

console = Console(soft_wrap=True)


@dataclass
class CliOptions:
    workspace: str = "."
    log_level: Optional[str] = None
    print_logs: bool = False


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"open-skills {__version__}")
        raise typer.Exit()


def _warn(message: str) -> None:
    console.print(message, style="yellow", markup=False)


def _error(message: str) -> None:
    console.print(message, style="red", markup=False)


def _with_runtime(ctx: typer.Context, fn: Callable[[AppContext], Awaitable[None]]) -> None:
    options: CliOptions = ctx.obj or CliOptions()

    async def run() -> None:
        app_ctx = AppContext(options.workspace, on_warning=_warn, on_error=_error)
        try:
            await app_ctx.startup()
            setup_logging(
                app_ctx.config,
                level=options.log_level,
                console=True if options.print_logs else None,
            )
            await fn(app_ctx)
        finally:
            await app_ctx.shutdown()

    try:
        asyncio.run(run())
    except (SkillError, ConfigError, ValueError) as e:
        _error(format_error(e) or str(e))
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        _error(f"Network error: {e}")
        raise typer.Exit(1)
    except OSError as e:
        _error(format_unknown_error(e))
        raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    workspace: str = typer.Option(
        ".",
        "--workspace",
        "-w",
        help="Workspace root to scan",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARN, ERROR)",
    ),
    print_logs: bool = typer.Option(
        False,
        "--print-logs",
        help="Write logs to stderr",
    ),
):
    """Open Skills - discover, compare and import agent skills."""
    ctx.obj = CliOptions(workspace=workspace, log_level=log_level, print_logs=print_logs)


@app.command()
def scan(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output records as JSON"),
):
    """Scan the workspace and the global library for skills."""

    async def run(app_ctx: AppContext) -> None:
        view = await app_ctx.view()

        if json_output:
            console.print_json(json.dumps([as_dict(r) for r in view.all_records]))
            return

        if not view.all_records:
            console.print("[yellow]No skills found[/yellow]")
            return

        for status in (SkillStatus.ACTIVE, SkillStatus.IMPORTED, SkillStatus.MISSING):
            records = view.by_status(status)
            if not records:
                continue
            console.print(f"\n[bold]{status_label(status)} ({len(records)})[/bold]\n")
            for record in records:
                synced = " [dim](synced)[/dim]" if record.is_synced else ""
                console.print(f"  {status_marker(status)} [cyan]{record.name}[/cyan]{synced}")
                if record.description:
                    console.print(f"    {record.description}", markup=False)

        missing = len(view.missing)
        if missing:
            console.print(f"\nSkills: {len(view.active)} active, {missing} missing")
        else:
            console.print(f"\nSkills: {len(view.active)} active")

    _with_runtime(ctx, run)


@app.command()
def gap(
    ctx: typer.Context,
    against_marketplace: bool = typer.Option(
        False, "--marketplace", help="Compare with the marketplace instead of the global library"
    ),
):
    """Compare the workspace with the global library or the marketplace."""

    async def run(app_ctx: AppContext) -> None:
        view = await app_ctx.view()
        if against_marketplace:
            skills = await app_ctx.github.fetch_all_skills()
            result = app_ctx.analyzer.analyze(view.active, skills)
        else:
            result = view.gap

        console.print(
            f"Coverage: {result.coverage_percentage}% "
            f"({len(result.present)} of {result.total_available})"
        )
        if result.missing:
            console.print("\n[bold]Missing from workspace[/bold]\n")
            for record in result.missing:
                console.print(f"  {status_marker(record.status)} {record.name}", markup=False)

        installed = [r for r in view.all_records if r.status is not SkillStatus.MISSING]
        for record in view.active:
            deps = app_ctx.analyzer.find_missing_dependencies(record, installed)
            if deps:
                console.print(f"{record.name}: missing dependencies: {', '.join(deps)}", markup=False)

    _with_runtime(ctx, run)


@app.command()
def marketplace(
    ctx: typer.Context,
    refresh: bool = typer.Option(False, "--refresh", help="Drop cached listings first"),
    json_output: bool = typer.Option(False, "--json", help="Output skills as JSON"),
):
    """List skills published in the marketplace repositories."""

    async def run(app_ctx: AppContext) -> None:
        if refresh:
            app_ctx.github.clear_cache()
        skills = await app_ctx.github.fetch_all_skills()

        if json_output:
            console.print_json(json.dumps([as_dict(s) for s in skills]))
            return

        if not skills:
            console.print("[yellow]No marketplace skills available[/yellow]")
            return

        installed = (await app_ctx.view()).installed_names
        console.print(f"\n[bold]Marketplace Skills ({len(skills)})[/bold]\n")
        for skill in skills:
            mark = "✓ " if skill.name in installed else "  "
            console.print(f"  {mark}[cyan]{skill.name}[/cyan] [dim]{skill.source.slug}[/dim]")
            console.print(f"    {skill.description}", markup=False)

    _with_runtime(ctx, run)


@app.command()
def install(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Marketplace skill name"),
    repo: Optional[str] = typer.Option(None, "--repo", help="Only consider owner/repo"),
):
    """Install a marketplace skill into the workspace."""

    async def run(app_ctx: AppContext) -> None:
        candidates = await app_ctx.find_marketplace_skill(name)
        if repo:
            candidates = [s for s in candidates if s.source.slug.lower() == repo.lower()]
        if not candidates:
            raise ValueError(f'Skill "{name}" not found in the marketplace')

        skill = candidates[0]
        target = await install_marketplace_skill(app_ctx.github, skill, app_ctx.import_target)
        console.print(f'Skill "{skill.name}" installed to {target}', markup=False)

    _with_runtime(ctx, run)


@app.command("import")
def import_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Skill name or id"),
    to_global: bool = typer.Option(False, "--global", help="Copy into the global library"),
):
    """Import a missing skill, or copy a workspace skill to the global library."""

    async def run(app_ctx: AppContext) -> None:
        record = await app_ctx.find_skill(name)
        if record is None:
            raise ValueError(f'Skill "{name}" not found')

        global_root = app_ctx.global_root
        if to_global:
            target = global_root
        else:
            config = app_ctx.config
            target = app_ctx.analyzer.target_for(record, config.target_import_path, global_root)

        if not await app_ctx.analyzer.import_skill(record, target):
            raise typer.Exit(1)
        if target == global_root:
            console.print(f'Skill "{record.name}" copied to My Skills!', markup=False)
        else:
            console.print(f'Skill "{record.name}" imported to workspace!', markup=False)

    _with_runtime(ctx, run)


@app.command("import-missing")
def import_missing(ctx: typer.Context):
    """Import every global skill the workspace does not have."""

    async def run(app_ctx: AppContext) -> None:
        view = await app_ctx.view()
        if not view.missing:
            console.print("No missing skills")
            return
        summary = await app_ctx.analyzer.import_all(view.missing, app_ctx.import_target)
        console.print(summary.message)
        if summary.failures:
            raise typer.Exit(1)

    _with_runtime(ctx, run)


@app.command()
def delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Skill name or id"),
):
    """Move a skill directory to the trash."""

    async def run(app_ctx: AppContext) -> None:
        found = await app_ctx.find_skill(name)
        record = extract_skill(
            found,
            workspace_root=app_ctx.workspace_root,
            global_root=app_ctx.global_root,
        )
        if record is None:
            raise ValueError(f'Skill "{name}" not found')

        if not await app_ctx.analyzer.delete_skill(record):
            raise typer.Exit(1)
        console.print(f'Skill "{record.name}" deleted successfully.', markup=False)
        console.print(f"Moved to {app_ctx.analyzer.last_trash_path}", markup=False)

    _with_runtime(ctx, run)


if __name__ == "__main__":
    app()
