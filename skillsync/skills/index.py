"""Skill index load/save on top of the persistence store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from skillsync.core.config import get_config
from skillsync.core.storage import paths
from skillsync.skills.models import SKILLS_INDEX_VERSION, SkillsIndex, SyncMethod
from skillsync.skills.store import SkillStore

logger = logging.getLogger(__name__)

SYNC_METHOD_SETTING = "skills_sync_method"
MIGRATION_PENDING_SETTING = "skills_ssot_migration_pending"


def parse_flag(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in ("true", "1")


def open_store(db_path: Optional[Path] = None, legacy_path: Optional[Path] = None) -> SkillStore:
    """
    Open the skill store, importing a legacy skills.json on first creation.

    The legacy file is only consulted when the database file does not exist
    yet, so the import runs once per installation.
    """
    from skillsync.skills.legacy import load_legacy_index, migrate_legacy_index

    db_path = db_path or paths.db_path()
    legacy_path = legacy_path or paths.legacy_index_path()

    fresh = not db_path.exists()
    if fresh and legacy_path.exists():
        # Parsed before the database file exists; a parse error creates nothing.
        legacy_index = load_legacy_index(legacy_path)
        store = SkillStore(db_path)
        migrate_legacy_index(store, legacy_index, legacy_path)
        return store

    return SkillStore(db_path)


class SkillIndexRepository:
    """Builds a SkillsIndex from the store and writes it back.

    Settings are read on every load; nothing is cached between calls.
    """

    def __init__(self, store: SkillStore):
        self.store = store

    def load(self) -> SkillsIndex:
        self.store.init_default_repos()

        repos = self.store.get_repos()
        installed = self.store.get_installed_skills()
        skills = {skill.directory: skill for skill in installed.values()}

        return SkillsIndex(
            version=SKILLS_INDEX_VERSION,
            sync_method=self.get_sync_method(),
            repos=repos,
            skills=skills,
            ssot_migration_pending=self.is_migration_pending(),
        )

    def save(self, index: SkillsIndex) -> None:
        self.set_sync_method(index.sync_method)

        for repo in index.repos:
            self.store.save_repo(repo)

        for skill in index.skills.values():
            self.store.save_skill(skill)

    def get_sync_method(self) -> SyncMethod:
        raw = self.store.get_setting(SYNC_METHOD_SETTING)
        if raw is None:
            return SyncMethod(get_config().default_sync_method)
        try:
            return SyncMethod(raw.strip().lower())
        except ValueError:
            logger.warning(f"Unknown sync method '{raw}' in settings, using auto")
            return SyncMethod.AUTO

    def set_sync_method(self, method: SyncMethod) -> None:
        self.store.set_setting(SYNC_METHOD_SETTING, SyncMethod(method).value)

    def is_migration_pending(self) -> bool:
        return parse_flag(self.store.get_setting(MIGRATION_PENDING_SETTING))

    def set_migration_pending(self, pending: bool) -> None:
        self.store.set_setting(MIGRATION_PENDING_SETTING, "true" if pending else "false")


__all__ = [
    "SkillIndexRepository",
    "open_store",
    "parse_flag",
    "SYNC_METHOD_SETTING",
    "MIGRATION_PENDING_SETTING",
]
