"""Locate skill roots (directories containing SKILL.md) in a tree."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from skillsync.skills.exceptions import SkillFilesystemError
from skillsync.skills.manifest import MANIFEST_FILENAME

logger = logging.getLogger(__name__)

SKIPPED_DIR_NAMES = {"node_modules", "target"}


def _is_skipped(name: str) -> bool:
    return name.startswith(".") or name in SKIPPED_DIR_NAMES


def scan_skill_dirs(root: Path) -> List[Path]:
    """
    Depth-first walk of root returning every skill root.

    The root itself is never a skill (temp dirs have random names), and the
    walk does not descend into a directory once it is recognized as a skill.
    """
    root = Path(root)
    results: List[Path] = []
    stack = [root]

    while stack:
        current = stack.pop()
        if current != root and (current / MANIFEST_FILENAME).is_file():
            results.append(current)
            continue

        try:
            entries = sorted(current.iterdir(), reverse=True)
        except OSError as e:
            raise SkillFilesystemError(current, e, "Failed to read directory")

        for entry in entries:
            if _is_skipped(entry.name):
                continue
            if entry.is_dir() and not entry.is_symlink():
                stack.append(entry)

    return results


def find_skill_dir_in_repo(root: Path, directory: str) -> Optional[Path]:
    """Find the skill root whose folder name matches directory case-insensitively."""
    target = directory.strip()
    if not target:
        return None

    lowered = target.lower()
    matches = sorted(d for d in scan_skill_dirs(root) if d.name.lower() == lowered)

    if len(matches) > 1:
        logger.warning(
            f"Found {len(matches)} skill directories named '{target}', "
            f"using the first match: {matches[0]}"
        )

    return matches[0] if matches else None


def list_top_level_dirs(root: Path) -> List[Path]:
    """Non-hidden subdirectories of root (symlinked dirs included), sorted by name."""
    root = Path(root)
    if not root.is_dir():
        return []

    try:
        entries = sorted(root.iterdir())
    except OSError as e:
        raise SkillFilesystemError(root, e, "Failed to read directory")

    return [e for e in entries if e.is_dir() and not e.name.startswith(".")]


__all__ = ["scan_skill_dirs", "find_skill_dir_in_repo", "list_top_level_dirs"]
