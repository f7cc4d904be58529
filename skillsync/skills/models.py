"""Data models for the skill sync engine"""

import time
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


SKILLS_INDEX_VERSION = 1


class AppType(str, Enum):
    """Consumer applications that receive skill mirrors"""
    CLAUDE = "claude"
    CODEX = "codex"
    GEMINI = "gemini"

    @classmethod
    def all(cls) -> List["AppType"]:
        """All applications in fixed traversal order"""
        return [cls.CLAUDE, cls.CODEX, cls.GEMINI]


class SyncMethod(str, Enum):
    """How a mirror is materialized from the SSOT copy"""
    AUTO = "auto"  # symlink, fall back to copy
    SYMLINK = "symlink"
    COPY = "copy"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SkillRepo(_CamelModel):
    """Remote repository that hosts skills, keyed by (owner, name)"""
    owner: str
    name: str
    branch: str = "main"
    enabled: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class SkillApps(_CamelModel):
    """Per-application enable flags"""
    claude: bool = False
    codex: bool = False
    gemini: bool = False

    @classmethod
    def only(cls, app: AppType) -> "SkillApps":
        apps = cls()
        apps.set_enabled_for(app, True)
        return apps

    def is_enabled_for(self, app: AppType) -> bool:
        return bool(getattr(self, app.value))

    def set_enabled_for(self, app: AppType, enabled: bool) -> None:
        setattr(self, app.value, enabled)

    def merge_enabled(self, other: "SkillApps") -> None:
        """OR the other flags into these; never clears a flag"""
        for app in AppType.all():
            if other.is_enabled_for(app):
                self.set_enabled_for(app, True)

    def enabled_apps(self) -> List[AppType]:
        return [app for app in AppType.all() if self.is_enabled_for(app)]

    def any_enabled(self) -> bool:
        return bool(self.enabled_apps())


class InstalledSkill(_CamelModel):
    """Index record of a managed skill"""
    id: str
    name: str
    description: Optional[str] = None
    directory: str
    readme_url: Optional[str] = None
    repo_owner: Optional[str] = None
    repo_name: Optional[str] = None
    repo_branch: Optional[str] = None
    apps: SkillApps = Field(default_factory=SkillApps)
    installed_at: int = Field(default_factory=lambda: int(time.time()))

    @property
    def is_local(self) -> bool:
        return self.id.startswith("local:")

    @property
    def repo_label(self) -> str:
        return f"{self.repo_owner or 'unknown'}/{self.repo_name or 'unknown'}"


class DiscoverableSkill(_CamelModel):
    """Skill found in a remote repository snapshot"""
    key: str  # owner/name:directory
    name: str
    description: str = ""
    directory: str
    readme_url: Optional[str] = None
    repo_owner: str
    repo_name: str
    repo_branch: str


class Skill(_CamelModel):
    """Discovery listing row with installed flag"""
    key: str
    name: str
    description: str = ""
    directory: str
    readme_url: Optional[str] = None
    installed: bool = False
    repo_owner: Optional[str] = None
    repo_name: Optional[str] = None
    repo_branch: Optional[str] = None


class UnmanagedSkill(_CamelModel):
    """Directory present in app mirrors but absent from the index"""
    directory: str
    name: str
    description: Optional[str] = None
    found_in: List[str] = Field(default_factory=list)


class SkillMetadata(BaseModel):
    """name/description from SKILL.md front matter"""
    name: Optional[str] = None
    description: Optional[str] = None


class SkillsIndex(_CamelModel):
    """In-memory view of everything the engine persists"""
    version: int = SKILLS_INDEX_VERSION
    sync_method: SyncMethod = SyncMethod.AUTO
    repos: List[SkillRepo] = Field(default_factory=list)
    skills: Dict[str, InstalledSkill] = Field(default_factory=dict)
    ssot_migration_pending: bool = False

    def find_directory_ci(self, directory: str) -> Optional[str]:
        """Return the stored key matching directory case-insensitively."""
        if directory in self.skills:
            return directory
        lowered = directory.lower()
        for key in self.skills:
            if key.lower() == lowered:
                return key
        return None

    def resolve_directory(self, value: str) -> Optional[str]:
        """
        Resolve user input to a skill directory key.

        Order: exact directory, case-insensitive directory, then id.
        """
        trimmed = value.strip()
        if not trimmed:
            return None

        if trimmed in self.skills:
            return trimmed

        lowered = trimmed.lower()
        for directory in self.skills:
            if directory.lower() == lowered:
                return directory

        for directory, skill in self.skills.items():
            if skill.id.lower() == lowered:
                return directory

        return None

    def enabled_for(self, app: AppType) -> Iterable[InstalledSkill]:
        return [s for s in self.skills.values() if s.apps.is_enabled_for(app)]


__all__ = [
    "AppType",
    "SyncMethod",
    "SkillRepo",
    "SkillApps",
    "InstalledSkill",
    "DiscoverableSkill",
    "Skill",
    "UnmanagedSkill",
    "SkillMetadata",
    "SkillsIndex",
    "SKILLS_INDEX_VERSION",
]
