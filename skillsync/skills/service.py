"""
Skill Service: install, uninstall, toggle and sync skills across applications.

Every call loads the index from the store, mutates it in memory and saves it
back; nothing is cached between calls. The SSOT copy under ``<home>/skills``
is the only real copy of a skill, each enabled application gets a mirror.

Example:
    service = SkillService()
    skill = service.install("anthropics/skills:pdf", AppType.CLAUDE)
    service.toggle_app(skill.directory, AppType.CODEX, True)
    service.uninstall("pdf")
"""

from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path, PurePath
from typing import Dict, Iterable, List, Optional, Tuple

from skillsync.skills.exceptions import (
    HINT_CHECK_REPO_URL,
    HINT_FULL_KEY,
    HINT_UNINSTALL_FIRST,
    SkillArchiveError,
    SkillConflictError,
    SkillErrorCode,
    SkillInputError,
    SkillNotFoundError,
)
from skillsync.skills.importer import GitHubFetcher
from skillsync.skills.index import SkillIndexRepository, open_store
from skillsync.skills.manifest import read_skill_metadata
from skillsync.skills.migration import migrate_ssot_if_pending
from skillsync.skills.models import (
    AppType,
    DiscoverableSkill,
    InstalledSkill,
    Skill,
    SkillApps,
    SkillRepo,
    SkillsIndex,
    SyncMethod,
    UnmanagedSkill,
)
from skillsync.skills.scanner import find_skill_dir_in_repo, list_top_level_dirs
from skillsync.skills.store import SkillStore
from skillsync.skills.sync import SkillSyncer, copy_dir_recursive, is_symlink, remove_path

logger = logging.getLogger(__name__)


class SkillService:
    """Orchestrates the index, the fetcher and the materializer."""

    def __init__(
        self,
        store: Optional[SkillStore] = None,
        fetcher: Optional[GitHubFetcher] = None,
        syncer: Optional[SkillSyncer] = None,
    ):
        """
        Initialize skill service.

        Args:
            store: Persistence store (default: store at the configured home,
                   importing a legacy skills.json on first use)
            fetcher: Repository fetcher (default: GitHubFetcher())
            syncer: Mirror materializer (default: SkillSyncer())
        """
        self.store = store or open_store()
        self.repository = SkillIndexRepository(self.store)
        self.fetcher = fetcher or GitHubFetcher()
        self.syncer = syncer or SkillSyncer()

    # ------------------------------------------------------------------
    # Index helpers
    # ------------------------------------------------------------------

    def _load(self) -> SkillsIndex:
        return self.repository.load()

    def _load_migrated(self) -> SkillsIndex:
        index = self._load()
        migrate_ssot_if_pending(index, self.repository, self.syncer)
        return index

    def _resolve_installed(self, index: SkillsIndex, id_or_directory: str) -> str:
        directory = index.resolve_directory(id_or_directory)
        if directory is None:
            raise SkillNotFoundError(
                f"Installed skill not found: {id_or_directory}",
                SkillErrorCode.SKILL_NOT_INSTALLED,
            )
        return directory

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_installed(self) -> List[InstalledSkill]:
        """All managed skills sorted by name (case-insensitive)."""
        index = self._load_migrated()
        return sorted(index.skills.values(), key=lambda s: s.name.lower())

    def get_installed(self, id_or_directory: str) -> Optional[InstalledSkill]:
        index = self._load()
        directory = index.resolve_directory(id_or_directory)
        if directory is None:
            return None
        return index.skills[directory]

    def discover_available(self) -> List[DiscoverableSkill]:
        """Skills offered by every enabled repository."""
        index = self._load()
        return self.fetcher.discover_available(index.repos)

    def list_skills(self) -> List[Skill]:
        """
        Discovery listing joined with install state.

        Local SSOT directories that no repository offers are appended as
        installed rows keyed ``local:<dir>``.
        """
        index = self._load_migrated()
        discovered = self.fetcher.discover_available(index.repos)
        installed_dirs = {d.lower() for d in index.skills}

        skills = [
            Skill(
                key=d.key,
                name=d.name,
                description=d.description,
                directory=d.directory,
                readme_url=d.readme_url,
                installed=d.directory.lower() in installed_dirs,
                repo_owner=d.repo_owner,
                repo_name=d.repo_name,
                repo_branch=d.repo_branch,
            )
            for d in discovered
        ]

        self._merge_local_ssot_skills(index, skills)

        seen = set()
        unique = []
        for skill in skills:
            lowered = skill.directory.lower()
            if lowered in seen:
                continue
            seen.add(lowered)
            unique.append(skill)

        unique.sort(key=lambda s: s.name.lower())
        return unique

    def _merge_local_ssot_skills(self, index: SkillsIndex, skills: List[Skill]) -> None:
        by_dir = {s.directory.lower(): s for s in skills}

        for path in list_top_level_dirs(self.syncer.ssot_dir):
            directory = path.name
            listed = by_dir.get(directory.lower())
            if listed is not None:
                listed.installed = True
                continue

            key = index.find_directory_ci(directory)
            if key is not None:
                record = index.skills[key]
                name, description = record.name, record.description or ""
            else:
                name, description = read_skill_metadata(path, directory)
                description = description or ""

            skills.append(Skill(
                key=f"local:{directory}",
                name=name,
                description=description,
                directory=directory,
                installed=True,
            ))

    # ------------------------------------------------------------------
    # Install / uninstall / toggle
    # ------------------------------------------------------------------

    def install(self, spec: str, app: AppType) -> InstalledSkill:
        """
        Install a skill for one application.

        Args:
            spec: Full key (owner/name:directory) or a directory name
            app: Application to enable the skill for

        Returns:
            The installed (or re-enabled) record

        Raises:
            SkillInputError: Empty or ambiguous spec
            SkillNotFoundError: No repository offers the skill
            SkillConflictError: The directory belongs to another repository
            SkillFetchError: Repository download failed
            SkillArchiveError: Snapshot lacks the skill directory
            SkillFilesystemError: Copy or mirror creation failed
        """
        spec = spec.strip()
        if not spec:
            raise SkillInputError("Skill spec must not be empty", SkillErrorCode.EMPTY_SPEC)

        index = self._load_migrated()
        discovered = self._resolve_install_spec(index, spec)
        install_name = PurePath(discovered.directory.replace("\\", "/")).name or discovered.directory

        existing_key = index.find_directory_ci(install_name)
        if existing_key is not None:
            existing = index.skills[existing_key]
            same_repo = (
                existing.repo_owner == discovered.repo_owner
                and existing.repo_name == discovered.repo_name
            )
            if not same_repo and (
                existing.repo_owner is not None
                or existing.repo_name is not None
                or existing.is_local
            ):
                raise SkillConflictError(
                    f"Directory '{existing_key}' is already used by {existing.repo_label}, "
                    f"cannot install it from {discovered.repo_owner}/{discovered.repo_name}",
                    SkillErrorCode.SKILL_DIRECTORY_CONFLICT,
                    HINT_UNINSTALL_FIRST,
                )

            existing.apps.set_enabled_for(app, True)
            self.repository.save(index)
            self.syncer.sync_to_app_dir(existing_key, app, index.sync_method)
            logger.info(f"Skill {existing_key} already installed, enabled for {app.value}")
            return existing

        # No record owns the directory; merge the snapshot over any leftover copy.
        dest = self.syncer.ssot_dir / install_name
        self._copy_from_repo(discovered, install_name, dest)

        record = InstalledSkill(
            id=discovered.key,
            name=discovered.name,
            description=discovered.description if discovered.description.strip() else None,
            directory=install_name,
            readme_url=discovered.readme_url,
            repo_owner=discovered.repo_owner,
            repo_name=discovered.repo_name,
            repo_branch=discovered.repo_branch,
            apps=SkillApps.only(app),
            installed_at=int(time.time()),
        )

        index.skills[install_name] = record
        self.repository.save(index)
        self.syncer.sync_to_app_dir(install_name, app, index.sync_method)

        logger.info(f"Installed skill {record.id} for {app.value}")
        return record

    def _copy_from_repo(self, discovered: DiscoverableSkill, install_name: str, dest: Path) -> None:
        repo = SkillRepo(
            owner=discovered.repo_owner,
            name=discovered.repo_name,
            branch=discovered.repo_branch,
        )
        temp_dir = self.fetcher.download_repo(repo)
        try:
            source = find_skill_dir_in_repo(temp_dir, install_name)
            if source is None or not source.exists():
                raise SkillArchiveError(
                    f"Skill directory '{install_name}' not found in {repo.full_name}",
                    SkillErrorCode.SKILL_DIR_NOT_FOUND,
                    HINT_CHECK_REPO_URL,
                )
            copy_dir_recursive(source, dest)
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

    def _resolve_install_spec(self, index: SkillsIndex, spec: str) -> DiscoverableSkill:
        discovered = self.fetcher.discover_available(index.repos)

        for skill in discovered:
            if skill.key == spec:
                return skill

        lowered = spec.lower()
        matches = [s for s in discovered if s.directory.lower() == lowered]

        if not matches:
            raise SkillNotFoundError(
                f"No installable skill found: {spec}",
                SkillErrorCode.SKILL_NOT_FOUND,
            )
        if len(matches) > 1:
            keys = ", ".join(s.key for s in matches)
            raise SkillInputError(
                f"Skill name '{spec}' is ambiguous: {keys}",
                SkillErrorCode.AMBIGUOUS_SPEC,
                HINT_FULL_KEY,
            )
        return matches[0]

    def uninstall(self, id_or_directory: str) -> InstalledSkill:
        """
        Remove a skill everywhere: every mirror, the SSOT copy and the record.

        Mirror removal is best effort; SSOT removal errors propagate.
        """
        index = self._load()
        directory = self._resolve_installed(index, id_or_directory)
        record = index.skills[directory]

        for app in AppType.all():
            try:
                self.syncer.remove_from_app(directory, app)
            except Exception as e:
                logger.warning(f"Failed to remove skill {directory} from {app.value}: {e}")

        ssot_path = self.syncer.ssot_dir / directory
        if ssot_path.exists() or is_symlink(ssot_path):
            remove_path(ssot_path)

        self.store.delete_skill(record.id)
        logger.info(f"Uninstalled skill {record.id}")
        return record

    def toggle_app(self, id_or_directory: str, app: AppType, enabled: bool) -> InstalledSkill:
        """
        Enable or disable a skill for one application.

        The mirror is created or removed before the flag is persisted; a
        crash in between leaves the stored flag stale until the next sync.
        """
        index = self._load()
        directory = self._resolve_installed(index, id_or_directory)
        record = index.skills[directory]
        record.apps.set_enabled_for(app, enabled)

        if enabled:
            self.syncer.sync_to_app_dir(record.directory, app, index.sync_method)
        else:
            self.syncer.remove_from_app(record.directory, app)

        self.repository.save(index)
        return record

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def sync_all_enabled(self, app: Optional[AppType] = None) -> None:
        """Rebuild mirrors for one application or all of them; first error propagates."""
        index = self._load_migrated()
        apps = [app] if app is not None else AppType.all()
        self.syncer.sync_apps(index, apps)

    def sync_all_enabled_best_effort(self) -> None:
        """Rebuild every mirror, logging failures instead of raising them."""
        index = self._load()
        try:
            migrate_ssot_if_pending(index, self.repository, self.syncer)
        except Exception as e:
            logger.warning(f"SSOT migration failed: {e}")
        self.syncer.sync_apps(index, AppType.all(), best_effort=True)

    # ------------------------------------------------------------------
    # Unmanaged scan / import
    # ------------------------------------------------------------------

    def scan_unmanaged(self) -> List[UnmanagedSkill]:
        """Directories in application mirrors that the index does not track."""
        index = self._load()
        found: Dict[str, UnmanagedSkill] = {}

        for app in AppType.all():
            for path in list_top_level_dirs(self.syncer.app_dir(app)):
                directory = path.name
                if directory in index.skills:
                    continue

                if directory in found:
                    found[directory].found_in.append(app.value)
                    continue

                name, description = read_skill_metadata(path, directory)
                found[directory] = UnmanagedSkill(
                    directory=directory,
                    name=name,
                    description=description,
                    found_in=[app.value],
                )

        return [found[d] for d in sorted(found)]

    def import_from_apps(self, directories: Iterable[str]) -> List[InstalledSkill]:
        """
        Bring unmanaged mirror directories under management.

        Args:
            directories: Directory names as they appear in the mirrors

        Returns:
            Created or updated records, in input order
        """
        index = self._load()
        ssot_dir = self.syncer.ssot_dir
        imported: List[InstalledSkill] = []

        for directory in directories:
            source, apps = self._locate_in_apps(directory)
            if source is None:
                logger.warning(f"Skill directory {directory} not found in any app, skipped")
                continue

            key = index.find_directory_ci(directory) or directory
            dest = ssot_dir / key
            if not dest.exists():
                copy_dir_recursive(source, dest)

            name, description = read_skill_metadata(dest, key)

            record = index.skills.get(key)
            if record is None:
                record = InstalledSkill(
                    id=f"local:{key}",
                    name=name,
                    description=description,
                    directory=key,
                )
                index.skills[key] = record

            record.apps.merge_enabled(apps)
            if record.description is None:
                record.description = description
            if not record.name.strip():
                record.name = name

            # Found under a different spelling than the tracked key: the
            # flagged mirror itself does not exist yet.
            for app in apps.enabled_apps():
                mirror = self.syncer.app_dir(app) / key
                if not mirror.exists() and not is_symlink(mirror):
                    self.syncer.sync_to_app_dir(key, app, index.sync_method)

            imported.append(record)

        self.repository.save(index)
        return imported

    def _locate_in_apps(self, directory: str) -> Tuple[Optional[Path], SkillApps]:
        source = None
        apps = SkillApps()
        for app in AppType.all():
            skill_path = self.syncer.app_dir(app) / directory
            if skill_path.exists():
                if source is None:
                    source = skill_path
                apps.set_enabled_for(app, True)
        return source, apps

    # ------------------------------------------------------------------
    # Repositories and settings
    # ------------------------------------------------------------------

    def list_repos(self) -> List[SkillRepo]:
        return self._load().repos

    def upsert_repo(self, repo: SkillRepo) -> None:
        """Replace the repository with the same (owner, name), else append it."""
        index = self._load()
        for i, existing in enumerate(index.repos):
            if existing.owner == repo.owner and existing.name == repo.name:
                index.repos[i] = repo
                break
        else:
            index.repos.append(repo)
        self.repository.save(index)

    def remove_repo(self, owner: str, name: str) -> bool:
        return self.store.delete_repo(owner, name)

    def get_sync_method(self) -> SyncMethod:
        return self.repository.get_sync_method()

    def set_sync_method(self, method: SyncMethod) -> None:
        self.repository.set_sync_method(method)


__all__ = ["SkillService"]
