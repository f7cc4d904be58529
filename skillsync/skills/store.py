"""Skill Store - Database-backed persistence for the skill index.

This module provides:
- SkillStore class for repository, installed skill and setting records
- SQLite database with WAL mode
- Case-insensitive uniqueness of skill directories

Database Schema:
- skill_repos: remote repositories keyed by (owner, name)
- installed_skills: managed skills keyed by id, directory UNIQUE COLLATE NOCASE
- settings: key/value pairs (sync method, migration flag)
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from skillsync.skills.exceptions import SkillStoreError
from skillsync.skills.models import InstalledSkill, SkillApps, SkillRepo

logger = logging.getLogger(__name__)


# SQL statements
CREATE_REPOS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS skill_repos (
    owner TEXT NOT NULL,
    name TEXT NOT NULL,
    branch TEXT NOT NULL DEFAULT 'main',
    enabled INTEGER NOT NULL DEFAULT 1,
    PRIMARY KEY (owner, name)
)
"""

CREATE_SKILLS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS installed_skills (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    directory TEXT NOT NULL UNIQUE COLLATE NOCASE,
    readme_url TEXT,
    repo_owner TEXT,
    repo_name TEXT,
    repo_branch TEXT,
    enabled_claude INTEGER NOT NULL DEFAULT 0,
    enabled_codex INTEGER NOT NULL DEFAULT 0,
    enabled_gemini INTEGER NOT NULL DEFAULT 0,
    installed_at INTEGER NOT NULL  -- epoch seconds
)
"""

CREATE_SETTINGS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT
)
"""

UPSERT_SKILL_SQL = """
INSERT INTO installed_skills (
    id, name, description, directory, readme_url,
    repo_owner, repo_name, repo_branch,
    enabled_claude, enabled_codex, enabled_gemini, installed_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(id) DO UPDATE SET
    name = excluded.name,
    description = excluded.description,
    directory = excluded.directory,
    readme_url = excluded.readme_url,
    repo_owner = excluded.repo_owner,
    repo_name = excluded.repo_name,
    repo_branch = excluded.repo_branch,
    enabled_claude = excluded.enabled_claude,
    enabled_codex = excluded.enabled_codex,
    enabled_gemini = excluded.enabled_gemini,
    installed_at = excluded.installed_at
"""

DEFAULT_REPOS = [
    SkillRepo(owner="anthropics", name="skills", branch="main"),
    SkillRepo(owner="ComposioHQ", name="awesome-claude-skills", branch="master"),
    SkillRepo(owner="cexll", name="myclaude", branch="master"),
    SkillRepo(owner="JimLiu", name="baoyu-skills", branch="main"),
]


class SkillStore:
    """Key/record store backing the skill index.

    Every call opens its own short-lived connection; the engine assumes a
    single foreground invocation at a time.
    """

    def __init__(self, db_path: Path):
        """Initialize store and schema.

        Args:
            db_path: SQLite file path (parent directories are created)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables and enable WAL mode."""
        conn = None
        try:
            conn = self._connect()
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")
            conn.execute("PRAGMA busy_timeout=30000")

            conn.execute(CREATE_REPOS_TABLE_SQL)
            conn.execute(CREATE_SKILLS_TABLE_SQL)
            conn.execute(CREATE_SETTINGS_TABLE_SQL)

            conn.commit()
            logger.debug(f"Skill store initialized at: {self.db_path}")

        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database: {e}")
            raise SkillStoreError(f"Failed to initialize skill store {self.db_path}: {e}")
        finally:
            if conn is not None:
                conn.close()

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def get_repos(self) -> List[SkillRepo]:
        """List repositories in insertion order."""
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT owner, name, branch, enabled FROM skill_repos ORDER BY rowid"
            ).fetchall()
            return [
                SkillRepo(
                    owner=row["owner"],
                    name=row["name"],
                    branch=row["branch"],
                    enabled=bool(row["enabled"]),
                )
                for row in rows
            ]
        except sqlite3.Error as e:
            logger.error(f"Failed to list repos: {e}")
            raise SkillStoreError(f"Failed to list repos: {e}")
        finally:
            conn.close()

    def save_repo(self, repo: SkillRepo) -> None:
        """Insert or update a repository."""
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO skill_repos (owner, name, branch, enabled)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(owner, name) DO UPDATE SET
                    branch = excluded.branch,
                    enabled = excluded.enabled
                """,
                (repo.owner, repo.name, repo.branch, int(repo.enabled)),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to save repo {repo.full_name}: {e}")
            raise SkillStoreError(f"Failed to save repo {repo.full_name}: {e}")
        finally:
            conn.close()

    def delete_repo(self, owner: str, name: str) -> bool:
        """Delete a repository; returns False when it did not exist."""
        conn = self._connect()
        try:
            cursor = conn.execute(
                "DELETE FROM skill_repos WHERE owner = ? AND name = ?",
                (owner, name),
            )
            conn.commit()
            if cursor.rowcount == 0:
                logger.warning(f"Repo {owner}/{name} not found for deletion")
                return False
            logger.info(f"Deleted repo {owner}/{name}")
            return True
        except sqlite3.Error as e:
            logger.error(f"Failed to delete repo {owner}/{name}: {e}")
            raise SkillStoreError(f"Failed to delete repo {owner}/{name}: {e}")
        finally:
            conn.close()

    def init_default_repos(self, defaults: Iterable[SkillRepo] = DEFAULT_REPOS) -> int:
        """Insert default repositories that are missing; existing rows are untouched."""
        conn = self._connect()
        try:
            inserted = 0
            for repo in defaults:
                cursor = conn.execute(
                    """
                    INSERT OR IGNORE INTO skill_repos (owner, name, branch, enabled)
                    VALUES (?, ?, ?, ?)
                    """,
                    (repo.owner, repo.name, repo.branch, int(repo.enabled)),
                )
                inserted += cursor.rowcount
            conn.commit()
            return inserted
        except sqlite3.Error as e:
            logger.error(f"Failed to insert default repos: {e}")
            raise SkillStoreError(f"Failed to insert default repos: {e}")
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Installed skills
    # ------------------------------------------------------------------

    def get_installed_skills(self) -> Dict[str, InstalledSkill]:
        """All installed skills keyed by id."""
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM installed_skills ORDER BY installed_at, id"
            ).fetchall()
            return {row["id"]: _row_to_skill(row) for row in rows}
        except sqlite3.Error as e:
            logger.error(f"Failed to list installed skills: {e}")
            raise SkillStoreError(f"Failed to list installed skills: {e}")
        finally:
            conn.close()

    def save_skill(self, skill: InstalledSkill) -> None:
        """Insert or update a skill record (keyed by id)."""
        conn = self._connect()
        try:
            conn.execute(
                UPSERT_SKILL_SQL,
                (
                    skill.id,
                    skill.name,
                    skill.description,
                    skill.directory,
                    skill.readme_url,
                    skill.repo_owner,
                    skill.repo_name,
                    skill.repo_branch,
                    int(skill.apps.claude),
                    int(skill.apps.codex),
                    int(skill.apps.gemini),
                    skill.installed_at,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            logger.error(f"Skill directory {skill.directory} already taken: {e}")
            raise SkillStoreError(
                f"Skill directory '{skill.directory}' is already used by another record: {e}"
            )
        except sqlite3.Error as e:
            logger.error(f"Failed to save skill {skill.id}: {e}")
            raise SkillStoreError(f"Failed to save skill {skill.id}: {e}")
        finally:
            conn.close()

    def delete_skill(self, skill_id: str) -> bool:
        """Delete a skill record; returns False when it did not exist."""
        conn = self._connect()
        try:
            cursor = conn.execute(
                "DELETE FROM installed_skills WHERE id = ?",
                (skill_id,),
            )
            conn.commit()
            if cursor.rowcount == 0:
                logger.warning(f"Skill {skill_id} not found for deletion")
                return False
            logger.info(f"Deleted skill record {skill_id}")
            return True
        except sqlite3.Error as e:
            logger.error(f"Failed to delete skill {skill_id}: {e}")
            raise SkillStoreError(f"Failed to delete skill {skill_id}: {e}")
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def get_setting(self, key: str) -> Optional[str]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT value FROM settings WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None
        except sqlite3.Error as e:
            logger.error(f"Failed to read setting {key}: {e}")
            raise SkillStoreError(f"Failed to read setting {key}: {e}")
        finally:
            conn.close()

    def set_setting(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            conn.execute(
                """
                INSERT INTO settings (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Failed to write setting {key}: {e}")
            raise SkillStoreError(f"Failed to write setting {key}: {e}")
        finally:
            conn.close()


def _row_to_skill(row: sqlite3.Row) -> InstalledSkill:
    return InstalledSkill(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        directory=row["directory"],
        readme_url=row["readme_url"],
        repo_owner=row["repo_owner"],
        repo_name=row["repo_name"],
        repo_branch=row["repo_branch"],
        apps=SkillApps(
            claude=bool(row["enabled_claude"]),
            codex=bool(row["enabled_codex"]),
            gemini=bool(row["enabled_gemini"]),
        ),
        installed_at=row["installed_at"],
    )


__all__ = ["SkillStore", "DEFAULT_REPOS"]
