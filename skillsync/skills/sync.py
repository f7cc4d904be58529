"""
Skill mirror materialization.

Every application gets a mirror of each enabled skill under its skills dir,
either as a symlink to the SSOT copy or as a full recursive copy:

    <home>/skills/<dir>           (SSOT)
    ~/.claude/skills/<dir>  -> SSOT  (symlink, or copy)
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, Optional

from skillsync.core.storage import paths
from skillsync.skills.exceptions import (
    SkillErrorCode,
    SkillFilesystemError,
    SkillNotFoundError,
)
from skillsync.skills.models import AppType, SkillsIndex, SyncMethod

logger = logging.getLogger(__name__)


def is_symlink(path: Path) -> bool:
    return os.path.islink(path)


def remove_path(path: Path) -> None:
    """
    Remove a mirror entry.

    A symlink is unlinked without touching its target; only a real directory
    is deleted recursively.
    """
    path = Path(path)
    try:
        if is_symlink(path):
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
    except OSError as e:
        raise SkillFilesystemError(path, e, "Failed to remove")


def copy_dir_recursive(src: Path, dest: Path) -> None:
    """Copy src into dest; existing files in dest are overwritten, missing ones added."""
    try:
        shutil.copytree(src, dest, dirs_exist_ok=True)
    except OSError as e:
        raise SkillFilesystemError(dest, e, f"Failed to copy {src}")


def create_symlink(src: Path, dest: Path) -> None:
    try:
        os.symlink(src, dest, target_is_directory=True)
    except OSError as e:
        raise SkillFilesystemError(dest, e, f"Failed to create symlink to {src}")


class SkillSyncer:
    """Create and remove per-application mirrors of SSOT skills."""

    def __init__(self, ssot_dir: Optional[Path] = None):
        self._ssot_dir = ssot_dir

    @property
    def ssot_dir(self) -> Path:
        if self._ssot_dir is not None:
            self._ssot_dir.mkdir(parents=True, exist_ok=True)
            return self._ssot_dir
        return paths.ssot_dir()

    def app_dir(self, app: AppType) -> Path:
        return paths.app_skills_dir(app)

    def sync_to_app_dir(self, directory: str, app: AppType, method: SyncMethod) -> None:
        """
        Materialize one skill for one application.

        Raises:
            SkillNotFoundError: The skill is missing from the SSOT
            SkillFilesystemError: Creating the mirror failed
        """
        source = (self.ssot_dir / directory).absolute()
        if not source.exists():
            raise SkillNotFoundError(
                f"Skill is not present in the SSOT: {directory}",
                SkillErrorCode.SKILL_NOT_IN_SSOT,
            )

        app_dir = self.app_dir(app)
        try:
            app_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SkillFilesystemError(app_dir, e, "Failed to create directory")

        dest = app_dir / directory
        if dest.exists() or is_symlink(dest):
            remove_path(dest)

        method = SyncMethod(method)
        if method == SyncMethod.AUTO:
            try:
                create_symlink(source, dest)
            except SkillFilesystemError as e:
                logger.warning(
                    f"Symlink failed, falling back to copy: {source} -> {dest}. Error: {e}"
                )
                copy_dir_recursive(source, dest)
        elif method == SyncMethod.SYMLINK:
            create_symlink(source, dest)
        else:
            copy_dir_recursive(source, dest)

        logger.debug(f"Synced {directory} to {app.value} ({method.value})")

    def remove_from_app(self, directory: str, app: AppType) -> None:
        """Remove the mirror of a skill from one application; absence is fine."""
        path = self.app_dir(app) / directory
        if path.exists() or is_symlink(path):
            remove_path(path)
            logger.debug(f"Removed {directory} from {app.value}")

    def sync_to_app(self, index: SkillsIndex, app: AppType) -> None:
        """Materialize every skill enabled for app; the first failure propagates."""
        for skill in index.enabled_for(app):
            self.sync_to_app_dir(skill.directory, app, index.sync_method)

    def sync_apps(
        self,
        index: SkillsIndex,
        apps: Iterable[AppType],
        best_effort: bool = False,
    ) -> None:
        """
        Sync several applications.

        With best_effort, a failing application is logged and the remaining
        ones still run; otherwise the first error propagates.
        """
        for app in apps:
            try:
                self.sync_to_app(index, app)
            except Exception as e:
                if not best_effort:
                    raise
                logger.warning(f"Failed to sync skills to {app.value}: {e}")


__all__ = [
    "SkillSyncer",
    "remove_path",
    "copy_dir_recursive",
    "create_symlink",
    "is_symlink",
]
