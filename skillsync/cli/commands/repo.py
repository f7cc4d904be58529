"""CLI commands for skill repositories

Repositories are the GitHub sources `skillsync skill available` and
`skillsync skill install` search.
"""

import click
from rich.console import Console
from rich.table import Table

from skillsync.cli.errors import handle_errors
from skillsync.skills.models import SkillRepo
from skillsync.skills.service import SkillService

console = Console()


def _parse_full_name(full_name: str):
    owner, sep, name = full_name.strip().partition("/")
    if not sep or not owner or not name or "/" in name:
        raise click.BadParameter(
            f"expected owner/name, got '{full_name}'", param_hint="REPO"
        )
    return owner, name


@click.group(name="repo")
def repo_group():
    """Skill repository management"""
    pass


@repo_group.command("list")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@handle_errors
def list_repos(output_json: bool):
    """List configured repositories"""
    service = SkillService()
    repos = service.list_repos()

    if output_json:
        console.print_json(data=[r.model_dump(by_alias=True) for r in repos])
        return

    if not repos:
        console.print("[yellow]No repositories configured[/yellow]")
        return

    table = Table(title=f"Skill repositories ({len(repos)})")
    table.add_column("Repository", style="cyan", no_wrap=True)
    table.add_column("Branch", style="green")
    table.add_column("Enabled", style="magenta")

    for r in repos:
        table.add_row(r.full_name, r.branch, "yes" if r.enabled else "no")

    console.print(table)


@repo_group.command("add")
@click.argument("full_name", metavar="REPO")
@click.option("--branch", default="main", show_default=True, help="Branch to download")
@click.option("--disabled", is_flag=True, help="Add without enabling")
@handle_errors
def add_repo(full_name: str, branch: str, disabled: bool):
    """Add or update a repository (owner/name)"""
    owner, name = _parse_full_name(full_name)
    repo = SkillRepo(owner=owner, name=name, branch=branch, enabled=not disabled)

    service = SkillService()
    service.upsert_repo(repo)

    console.print(f"[green]✓ Repository saved: {repo.full_name}@{repo.branch}[/green]")


@repo_group.command("remove")
@click.argument("full_name", metavar="REPO")
@handle_errors
def remove_repo(full_name: str):
    """Remove a repository (owner/name)"""
    owner, name = _parse_full_name(full_name)

    service = SkillService()
    if not service.remove_repo(owner, name):
        console.print(f"[yellow]Repository not found: {owner}/{name}[/yellow]")
        return

    console.print(f"[green]✓ Repository removed: {owner}/{name}[/green]")


__all__ = ["repo_group"]
