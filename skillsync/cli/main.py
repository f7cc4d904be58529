"""CLI main entry point"""

from pathlib import Path

import click

from skillsync import __version__
from skillsync.cli.commands.repo import repo_group
from skillsync.cli.commands.skill import skill_group
from skillsync.core.config import get_config
from skillsync.core.log import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="skillsync")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override SKILLSYNC_LOG_LEVEL",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Also write log records to this file",
)
def cli(log_level, log_file):
    """SkillSync - keep skill packages in sync across Claude, Codex and Gemini."""
    config = get_config()
    setup_logging(log_level or config.log_level, Path(log_file) if log_file else None)


cli.add_command(skill_group, name="skill")
cli.add_command(repo_group, name="repo")


if __name__ == "__main__":
    cli()
