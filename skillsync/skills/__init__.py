"""Skill package sync engine.

This module provides:
- SkillService: install, uninstall, toggle, sync and import skills
- SkillStore: SQLite-backed persistence of repos, skills and settings
- Data models shared by the CLI and the engine

Design Principles:
1. Single source of truth: ~/.skillsync/skills holds the only real copy
2. Mirrors: each application gets a symlink (or copy) per enabled skill
3. Never claim what was not asked for: migration only adopts tracked skills
"""

from skillsync.skills.exceptions import SkillError, SkillErrorCode
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
from skillsync.skills.service import SkillService
from skillsync.skills.store import SkillStore

__all__ = [
    "SkillService",
    "SkillStore",
    "SkillError",
    "SkillErrorCode",
    "AppType",
    "SyncMethod",
    "SkillRepo",
    "SkillApps",
    "InstalledSkill",
    "DiscoverableSkill",
    "Skill",
    "UnmanagedSkill",
    "SkillsIndex",
]
