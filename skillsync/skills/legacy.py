"""
Legacy skills.json import.

Releases before the database kept the index in ``<home>/skills.json``. Two
shapes exist:

- versioned index: ``{"version": 1, "syncMethod": ..., "repos": [...],
  "skills": {dir: record}, "ssotMigrationPending": ...}``
- oldest store (Claude only): ``{"skills": {dir: {"installed": true,
  "installedAt": "..."}}, "repos": [...]}``

Both are written into the SkillStore once, then the file is renamed to
``skills.json.migrated``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from skillsync.skills.exceptions import SkillStoreError
from skillsync.skills.index import SkillIndexRepository
from skillsync.skills.models import (
    AppType,
    InstalledSkill,
    SkillApps,
    SkillRepo,
    SkillsIndex,
    SyncMethod,
)
from skillsync.skills.store import SkillStore

logger = logging.getLogger(__name__)


def load_legacy_index(path: Path) -> SkillsIndex:
    """
    Parse a legacy skills.json into a SkillsIndex.

    Raises:
        SkillStoreError: File unreadable or not a recognized shape
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SkillStoreError(f"Failed to read {path}: {e}")

    if raw.startswith("\ufeff"):
        raw = raw[1:]

    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SkillStoreError(f"Invalid JSON in {path}: {e}")

    if not isinstance(value, dict):
        raise SkillStoreError(f"Unexpected content in {path}: expected an object")

    try:
        if isinstance(value.get("version"), int):
            index = SkillsIndex.model_validate(value)
            if index.version == 0:
                index.version = 1
            return index
        return _from_oldest_store(value)
    except ValidationError as e:
        raise SkillStoreError(f"Invalid skills index in {path}: {e}")


def _from_oldest_store(value: Dict[str, Any]) -> SkillsIndex:
    repos = [SkillRepo.model_validate(r) for r in value.get("repos") or []]
    index = SkillsIndex(
        sync_method=SyncMethod.AUTO,
        repos=repos,
        ssot_migration_pending=True,
    )

    for directory, state in (value.get("skills") or {}).items():
        if not isinstance(state, dict) or not state.get("installed"):
            continue
        index.skills[directory] = InstalledSkill(
            id=f"local:{directory}",
            name=directory,
            directory=directory,
            apps=SkillApps.only(AppType.CLAUDE),
            installed_at=_parse_timestamp(state.get("installedAt")),
        )

    return index


def _parse_timestamp(value: Any) -> int:
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())
        except ValueError:
            logger.debug(f"Unparseable installedAt '{value}'")
    return int(datetime.now().timestamp())


def archive_legacy_file(path: Path, suffix: str = "migrated") -> Optional[Path]:
    """Rename path to <name>.<suffix>, adding a counter when taken."""
    if not path.exists():
        return None

    candidate = path.with_name(f"{path.name}.{suffix}")
    counter = 1
    while candidate.exists():
        candidate = path.with_name(f"{path.name}.{suffix}.{counter}")
        counter += 1

    path.rename(candidate)
    return candidate


def migrate_legacy_index(store: SkillStore, index: SkillsIndex, path: Path) -> Optional[Path]:
    """Write a parsed legacy index into the store and archive the file."""
    repository = SkillIndexRepository(store)
    repository.set_migration_pending(index.ssot_migration_pending)
    repository.save(index)

    archived = archive_legacy_file(path)
    logger.info(
        f"Imported legacy skills index ({len(index.skills)} skills, "
        f"{len(index.repos)} repos) from {path}"
    )
    return archived


__all__ = ["load_legacy_index", "migrate_legacy_index", "archive_legacy_file"]
