"""Map engine errors to CLI output and exit codes.

- SkillError: red message plus hint text, exit code 1
- anything else: logged with traceback, exit code 2
"""

import functools
import logging
import sys

import click

from skillsync.skills.exceptions import SkillError, hint_text

logger = logging.getLogger(__name__)

EXIT_SKILL_ERROR = 1
EXIT_UNEXPECTED = 2


def handle_errors(func):
    """Decorator for command callbacks."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.Abort):
            raise
        except SkillError as e:
            click.secho(f"❌ [{e.error_code.value}] {e.message}", fg="red", err=True)
            hint = hint_text(e.hint)
            if hint:
                click.echo(f"💡 {hint}", err=True)
            sys.exit(EXIT_SKILL_ERROR)
        except Exception as e:
            logger.exception(f"Command failed with unexpected error: {e}")
            click.secho(f"❌ Unexpected error: {e}", fg="red", err=True)
            sys.exit(EXIT_UNEXPECTED)

    return wrapper


__all__ = ["handle_errors", "EXIT_SKILL_ERROR", "EXIT_UNEXPECTED"]
