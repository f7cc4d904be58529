"""
One-time SSOT migration.

Older layouts kept skills directly in each application's skills directory.
While the ``skills_ssot_migration_pending`` flag is set, the first index load
that asks for it reconciles those directories into the SSOT:

- index already tracks skills: only those skills are (re)copied into the
  SSOT; other app directories are left alone and never become managed
- index is empty: every app directory is copied into the SSOT and recorded

Either way the flag is cleared and never set again.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from skillsync.skills.index import SkillIndexRepository
from skillsync.skills.manifest import read_skill_metadata
from skillsync.skills.models import AppType, InstalledSkill, SkillApps, SkillsIndex
from skillsync.skills.scanner import list_top_level_dirs
from skillsync.skills.sync import SkillSyncer, copy_dir_recursive

logger = logging.getLogger(__name__)


def migrate_ssot_if_pending(
    index: SkillsIndex,
    repository: SkillIndexRepository,
    syncer: SkillSyncer,
) -> int:
    """
    Run the migration when the index says it is pending.

    Returns:
        Number of SSOT copies (tracked branch) or new records (empty branch)
    """
    if not index.ssot_migration_pending:
        return 0

    if index.skills:
        created = _backfill_tracked(index, syncer)
    else:
        created = _adopt_app_dirs(index, syncer)

    index.ssot_migration_pending = False
    repository.set_migration_pending(False)
    repository.save(index)
    logger.info(f"SSOT migration complete ({created} created)")
    return created


def _backfill_tracked(index: SkillsIndex, syncer: SkillSyncer) -> int:
    ssot_dir = syncer.ssot_dir
    created = 0

    for directory, record in index.skills.items():
        dest = ssot_dir / directory
        if dest.exists():
            continue

        candidates = record.apps.enabled_apps() or AppType.all()
        source = None
        for app in candidates:
            skill_path = syncer.app_dir(app) / directory
            if skill_path.exists():
                source = skill_path
                break

        if source is None:
            logger.warning(f"SSOT migration: no source found for {directory}, skipped")
            continue

        copy_dir_recursive(source, dest)
        created += 1

        name, description = read_skill_metadata(dest, record.directory)
        if not record.name.strip() or record.name.lower() == record.directory.lower():
            record.name = name
        if record.description is None:
            record.description = description

    return created


def _adopt_app_dirs(index: SkillsIndex, syncer: SkillSyncer) -> int:
    ssot_dir = syncer.ssot_dir
    # lowercase name -> (first seen spelling, apps)
    discovered: Dict[str, Tuple[str, SkillApps]] = {}
    order: List[str] = []

    for app in AppType.all():
        for path in list_top_level_dirs(syncer.app_dir(app)):
            lowered = path.name.lower()
            if lowered not in discovered:
                discovered[lowered] = (path.name, SkillApps())
                order.append(lowered)
            directory, apps = discovered[lowered]

            ssot_path = ssot_dir / directory
            if not ssot_path.exists():
                copy_dir_recursive(path, ssot_path)

            apps.set_enabled_for(app, True)

    created = 0
    for lowered in order:
        directory, apps = discovered[lowered]
        name, description = read_skill_metadata(ssot_dir / directory, directory)

        existing_key = index.find_directory_ci(directory)
        if existing_key is not None:
            existing = index.skills[existing_key]
            existing.apps.merge_enabled(apps)
            if not existing.name.strip():
                existing.name = name
            if existing.description is None:
                existing.description = description
            continue

        index.skills[directory] = InstalledSkill(
            id=f"local:{directory}",
            name=name,
            description=description,
            directory=directory,
            apps=apps,
        )
        created += 1

    return created


__all__ = ["migrate_ssot_if_pending"]
