# skillsync/core/storage/paths.py
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from skillsync.core.config import get_config

if TYPE_CHECKING:
    from skillsync.skills.models import AppType

DB_FILENAME = "skillsync.db"
LEGACY_INDEX_FILENAME = "skills.json"


def skillsync_home() -> Path:
    """Home directory; defaults to ~/.skillsync, overridable via SKILLSYNC_HOME"""
    return get_config().home


def db_path() -> Path:
    """SQLite file backing the skill store"""
    return skillsync_home() / DB_FILENAME


def legacy_index_path() -> Path:
    """skills.json written by releases that predate the database"""
    return skillsync_home() / LEGACY_INDEX_FILENAME


def ssot_dir() -> Path:
    """Canonical skill store; created on demand"""
    d = skillsync_home() / "skills"
    d.mkdir(parents=True, exist_ok=True)
    return d


def app_config_dir(app: "AppType") -> Path:
    """Config directory of a consumer application (override or ~/.<app>)"""
    config = get_config()
    override = getattr(config, f"{app.value}_dir")
    if override is not None:
        return override
    return Path.home() / f".{app.value}"


def app_skills_dir(app: "AppType") -> Path:
    """Mirror root of an application: <config dir>/skills"""
    return app_config_dir(app) / "skills"
