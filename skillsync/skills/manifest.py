"""SKILL.md front matter parsing.

A skill manifest starts with a YAML front matter block:

    ---
    name: Hello
    description: Says hello
    ---

    # Body

Only ``name`` and ``description`` are read. Anything malformed yields empty
metadata instead of an error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import yaml

from skillsync.skills.models import SkillMetadata

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "SKILL.md"
FRONT_MATTER_DELIMITER = "---"
BOM = "\ufeff"


def parse_front_matter(content: str) -> SkillMetadata:
    """Parse name/description out of manifest text."""
    if content.startswith(BOM):
        content = content[len(BOM):]
    parts = content.split(FRONT_MATTER_DELIMITER, 2)
    if len(parts) < 3:
        return SkillMetadata()

    try:
        data = yaml.safe_load(parts[1].strip())
    except yaml.YAMLError as e:
        logger.debug(f"Invalid front matter: {e}")
        return SkillMetadata()

    if not isinstance(data, dict):
        return SkillMetadata()

    return SkillMetadata(
        name=_as_text(data.get("name")),
        description=_as_text(data.get("description")),
    )


def parse_skill_metadata(path: Path) -> SkillMetadata:
    """Read and parse a SKILL.md file; never raises."""
    try:
        content = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug(f"Cannot read manifest {path}: {e}")
        return SkillMetadata()
    return parse_front_matter(content)


def read_skill_metadata(skill_dir: Path, fallback_name: str) -> Tuple[str, Optional[str]]:
    """Return (name, description) for a skill directory, name defaulting to fallback_name."""
    manifest = Path(skill_dir) / MANIFEST_FILENAME
    if not manifest.is_file():
        return fallback_name, None
    meta = parse_skill_metadata(manifest)
    return meta.name or fallback_name, meta.description


def _as_text(value: object) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


__all__ = [
    "MANIFEST_FILENAME",
    "parse_front_matter",
    "parse_skill_metadata",
    "read_skill_metadata",
]
