"""
Skill management CLI commands.

Commands:
- skillsync skill list: List installed skills
- skillsync skill available: List skills offered by repositories
- skillsync skill info <skill>: Show an installed skill
- skillsync skill install <spec> --app <app>: Install a skill
- skillsync skill uninstall <skill>: Remove a skill everywhere
- skillsync skill enable/disable <skill> --app <app>: Toggle an application
- skillsync skill sync [--app <app>]: Rebuild application mirrors
- skillsync skill sync-method [auto|symlink|copy]: Show or set the sync method
- skillsync skill scan: List unmanaged skill directories
- skillsync skill import <dir>...: Adopt unmanaged directories
"""

import json
import logging
from datetime import datetime

import click

from skillsync.cli.errors import handle_errors
from skillsync.skills.exceptions import SkillErrorCode, SkillNotFoundError
from skillsync.skills.models import AppType, SyncMethod
from skillsync.skills.service import SkillService


logger = logging.getLogger(__name__)

APP_CHOICE = click.Choice([app.value for app in AppType.all()])
METHOD_CHOICE = click.Choice([m.value for m in SyncMethod])


def _apps_label(apps) -> str:
    enabled = [app.value for app in apps.enabled_apps()]
    return ", ".join(enabled) if enabled else "-"


def _dump(models) -> str:
    return json.dumps([m.model_dump(mode="json", by_alias=True) for m in models], indent=2)


@click.group(name="skill")
def skill_group():
    """Skill management commands."""
    pass


@skill_group.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@handle_errors
def list_installed(output_json):
    """List installed skills."""
    service = SkillService()
    skills = service.list_installed()

    if output_json:
        click.echo(_dump(skills))
        return

    if not skills:
        click.echo("No skills installed.")
        return

    click.echo(f"\n{'Directory':<30} {'Apps':<22} {'Source'}")
    click.echo("-" * 80)

    for s in skills:
        source = "local" if s.is_local else s.repo_label
        click.echo(f"{s.directory:<30} {_apps_label(s.apps):<22} {source}")

    click.echo(f"\nTotal: {len(skills)} skills")


@skill_group.command("available")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@handle_errors
def list_available(output_json):
    """List skills offered by enabled repositories."""
    service = SkillService()
    skills = service.list_skills()

    if output_json:
        click.echo(_dump(skills))
        return

    if not skills:
        click.echo("No skills found.")
        return

    for s in skills:
        status_icon = "✓" if s.installed else "○"
        description = (s.description or "")[:50]
        click.echo(f"{status_icon} {s.key:<50} {description}")

    click.echo(f"\nTotal: {len(skills)} skills")


@skill_group.command()
@click.argument("skill")
@handle_errors
def info(skill):
    """Show details of an installed skill."""
    service = SkillService()
    record = service.get_installed(skill)

    if record is None:
        raise SkillNotFoundError(
            f"Installed skill not found: {skill}", SkillErrorCode.SKILL_NOT_INSTALLED
        )

    installed_at = datetime.fromtimestamp(record.installed_at).isoformat(sep=" ")

    click.echo(f"\n{'='*60}")
    click.echo(f"Skill: {record.name}")
    click.echo(f"{'='*60}")
    click.echo(f"ID:           {record.id}")
    click.echo(f"Directory:    {record.directory}")
    click.echo(f"Description:  {record.description or 'N/A'}")
    click.echo(f"Source:       {'local' if record.is_local else record.repo_label}")
    if record.repo_branch:
        click.echo(f"Branch:       {record.repo_branch}")
    if record.readme_url:
        click.echo(f"README:       {record.readme_url}")
    click.echo(f"Apps:         {_apps_label(record.apps)}")
    click.echo(f"Installed At: {installed_at}")
    click.echo()


@skill_group.command()
@click.argument("spec")
@click.option("--app", type=APP_CHOICE, default=AppType.CLAUDE.value, show_default=True,
              help="Application to enable the skill for")
@handle_errors
def install(spec, app):
    """
    Install a skill from a repository.

    Examples:
        skillsync skill install anthropics/skills:pdf

        skillsync skill install pdf --app codex
    """
    service = SkillService()

    click.echo(f"📦 Installing {spec} for {app}...")
    record = service.install(spec, AppType(app))

    click.echo(f"✅ Installed skill: {record.directory}")
    click.echo(f"   Source: {record.repo_label}")
    click.echo(f"   Apps:   {_apps_label(record.apps)}")


@skill_group.command()
@click.argument("skill")
@handle_errors
def uninstall(skill):
    """Remove a skill from every application and the store."""
    service = SkillService()
    record = service.uninstall(skill)
    click.echo(f"✅ Uninstalled skill: {record.directory}")


@skill_group.command()
@click.argument("skill")
@click.option("--app", type=APP_CHOICE, required=True, help="Application")
@handle_errors
def enable(skill, app):
    """Enable a skill for an application."""
    service = SkillService()
    record = service.toggle_app(skill, AppType(app), True)
    click.echo(f"✅ Skill enabled for {app}: {record.directory}")


@skill_group.command()
@click.argument("skill")
@click.option("--app", type=APP_CHOICE, required=True, help="Application")
@handle_errors
def disable(skill, app):
    """Disable a skill for an application."""
    service = SkillService()
    record = service.toggle_app(skill, AppType(app), False)
    click.echo(f"✅ Skill disabled for {app}: {record.directory}")


@skill_group.command()
@click.option("--app", type=APP_CHOICE, default=None, help="Only sync this application")
@click.option("--best-effort", is_flag=True, help="Log failures and keep going")
@handle_errors
def sync(app, best_effort):
    """Rebuild application mirrors from the SSOT."""
    service = SkillService()

    if best_effort:
        service.sync_all_enabled_best_effort()
    else:
        service.sync_all_enabled(AppType(app) if app else None)

    click.echo(f"✅ Synced skills to {app or 'all apps'}")


@skill_group.command("sync-method")
@click.argument("method", type=METHOD_CHOICE, required=False)
@handle_errors
def sync_method(method):
    """Show or set how mirrors are created (auto, symlink, copy)."""
    service = SkillService()

    if method is None:
        click.echo(service.get_sync_method().value)
        return

    service.set_sync_method(SyncMethod(method))
    click.echo(f"✅ Sync method set to {method}")
    click.echo("\n💡 Run 'skillsync skill sync' to rebuild existing mirrors.")


@skill_group.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@handle_errors
def scan(output_json):
    """List skill directories in application folders that are not managed."""
    service = SkillService()
    skills = service.scan_unmanaged()

    if output_json:
        click.echo(_dump(skills))
        return

    if not skills:
        click.echo("No unmanaged skills found.")
        return

    for s in skills:
        click.echo(f"⊗ {s.directory:<30} {', '.join(s.found_in)}")

    click.echo(f"\n💡 To manage them, run:")
    click.echo(f"   skillsync skill import {' '.join(s.directory for s in skills)}")


@skill_group.command(name="import")
@click.argument("directories", nargs=-1, required=True)
@handle_errors
def import_(directories):
    """Adopt unmanaged skill directories found in application folders."""
    service = SkillService()
    records = service.import_from_apps(list(directories))

    if not records:
        click.echo("⚠️  Nothing imported.")
        return

    for record in records:
        click.echo(f"✅ Imported {record.directory} ({_apps_label(record.apps)})")


__all__ = ["skill_group"]
