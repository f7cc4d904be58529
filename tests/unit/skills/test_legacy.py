from __future__ import annotations

import json
from pathlib import Path

import pytest

from skillsync.skills.exceptions import SkillStoreError
from skillsync.skills.index import SkillIndexRepository, open_store
from skillsync.skills.legacy import archive_legacy_file, load_legacy_index
from skillsync.skills.models import AppType, SyncMethod


def _write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


def test_versioned_index_is_imported_once(skillsync_env) -> None:
    _write_json(skillsync_env.legacy, {
        "version": 1,
        "syncMethod": "copy",
        "repos": [{"owner": "acme", "name": "tools", "branch": "dev", "enabled": False}],
        "skills": {
            "pdf": {
                "id": "acme/tools:pdf",
                "name": "PDF",
                "directory": "pdf",
                "repoOwner": "acme",
                "repoName": "tools",
                "repoBranch": "dev",
                "apps": {"claude": True, "codex": True, "gemini": False},
                "installedAt": 1700000000,
            }
        },
        "ssotMigrationPending": False,
    })

    store = open_store()
    index = SkillIndexRepository(store).load()

    assert index.sync_method == SyncMethod.COPY
    assert index.ssot_migration_pending is False
    assert index.repos[0].full_name == "acme/tools"
    assert index.repos[0].enabled is False
    pdf = index.skills["pdf"]
    assert pdf.id == "acme/tools:pdf"
    assert pdf.apps.enabled_apps() == [AppType.CLAUDE, AppType.CODEX]
    assert pdf.installed_at == 1700000000

    assert not skillsync_env.legacy.exists()
    assert (skillsync_env.home / "skills.json.migrated").is_file()


def test_oldest_format_becomes_local_claude_records(skillsync_env) -> None:
    _write_json(skillsync_env.legacy, {
        "skills": {
            "hello": {"installed": True, "installedAt": "2024-01-01T00:00:00Z"},
            "gone": {"installed": False},
        },
        "repos": [],
    })

    index = SkillIndexRepository(open_store()).load()

    assert list(index.skills) == ["hello"]
    hello = index.skills["hello"]
    assert hello.id == "local:hello"
    assert hello.name == "hello"
    assert hello.repo_owner is None
    assert hello.apps.enabled_apps() == [AppType.CLAUDE]
    assert hello.installed_at == 1704067200
    assert index.ssot_migration_pending is True


def test_invalid_json_leaves_file_untouched(skillsync_env) -> None:
    skillsync_env.home.mkdir(parents=True)
    skillsync_env.legacy.write_text("{not json", encoding="utf-8")

    with pytest.raises(SkillStoreError):
        open_store()

    assert skillsync_env.legacy.read_text(encoding="utf-8") == "{not json"
    assert not skillsync_env.db.exists()


def test_legacy_file_ignored_when_database_exists(skillsync_env) -> None:
    open_store()
    _write_json(skillsync_env.legacy, {"skills": {"hello": {"installed": True}}})

    index = SkillIndexRepository(open_store()).load()

    assert index.skills == {}
    assert skillsync_env.legacy.exists()


def test_bom_prefixed_file(tmp_path: Path) -> None:
    path = tmp_path / "skills.json"
    path.write_text("\ufeff" + json.dumps({"version": 0, "skills": {}}), encoding="utf-8")

    index = load_legacy_index(path)

    assert index.version == 1


def test_archive_adds_counter_when_taken(tmp_path: Path) -> None:
    path = tmp_path / "skills.json"
    path.write_text("{}", encoding="utf-8")
    (tmp_path / "skills.json.migrated").write_text("older", encoding="utf-8")

    archived = archive_legacy_file(path)

    assert archived == tmp_path / "skills.json.migrated.1"
    assert archived.read_text(encoding="utf-8") == "{}"
    assert archive_legacy_file(path) is None
