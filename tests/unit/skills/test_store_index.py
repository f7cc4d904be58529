from __future__ import annotations

from pathlib import Path

import pytest

from skillsync.core.config import get_config
from skillsync.skills.exceptions import SkillStoreError
from skillsync.skills.index import (
    MIGRATION_PENDING_SETTING,
    SYNC_METHOD_SETTING,
    SkillIndexRepository,
    parse_flag,
)
from skillsync.skills.models import InstalledSkill, SkillApps, SkillRepo, SkillsIndex, SyncMethod
from skillsync.skills.store import DEFAULT_REPOS, SkillStore


@pytest.fixture
def store(tmp_path: Path) -> SkillStore:
    return SkillStore(tmp_path / "db" / "skillsync.db")


def _skill(skill_id: str, directory: str, **kwargs) -> InstalledSkill:
    return InstalledSkill(id=skill_id, name=kwargs.pop("name", directory), directory=directory, **kwargs)


def test_default_repos_inserted_once(store: SkillStore) -> None:
    repository = SkillIndexRepository(store)

    repository.load()
    index = repository.load()

    assert [r.full_name for r in index.repos] == [r.full_name for r in DEFAULT_REPOS]


def test_default_repos_do_not_override_user_changes(store: SkillStore) -> None:
    store.save_repo(SkillRepo(owner="anthropics", name="skills", branch="dev", enabled=False))

    index = SkillIndexRepository(store).load()

    anthropic = next(r for r in index.repos if r.full_name == "anthropics/skills")
    assert anthropic.branch == "dev"
    assert anthropic.enabled is False


def test_repo_upsert_and_delete(store: SkillStore) -> None:
    store.save_repo(SkillRepo(owner="acme", name="tools"))
    store.save_repo(SkillRepo(owner="acme", name="tools", branch="next"))

    repos = store.get_repos()
    assert len(repos) == 1
    assert repos[0].branch == "next"

    assert store.delete_repo("acme", "tools") is True
    assert store.delete_repo("acme", "tools") is False


def test_skill_round_trip(store: SkillStore) -> None:
    skill = _skill(
        "acme/tools:pdf",
        "pdf",
        description="PDF helpers",
        readme_url="https://github.com/acme/tools/tree/main/pdf",
        repo_owner="acme",
        repo_name="tools",
        repo_branch="main",
        apps=SkillApps(claude=True, gemini=True),
        installed_at=1700000000,
    )

    store.save_skill(skill)

    assert store.get_installed_skills() == {"acme/tools:pdf": skill}
    assert store.delete_skill("acme/tools:pdf") is True
    assert store.delete_skill("acme/tools:pdf") is False


def test_directory_unique_case_insensitively(store: SkillStore) -> None:
    store.save_skill(_skill("local:Hello", "Hello"))

    with pytest.raises(SkillStoreError):
        store.save_skill(_skill("local:hello", "hello"))


def test_settings(store: SkillStore) -> None:
    assert store.get_setting("missing") is None
    store.set_setting("k", "v1")
    store.set_setting("k", "v2")
    assert store.get_setting("k") == "v2"


@pytest.mark.parametrize(
    "raw, expected",
    [(None, False), ("true", True), ("1", True), (" TRUE ", True), ("false", False), ("yes", False)],
)
def test_parse_flag(raw, expected) -> None:
    assert parse_flag(raw) is expected


def test_sync_method_setting(store: SkillStore) -> None:
    repository = SkillIndexRepository(store)
    assert repository.get_sync_method() == SyncMethod.AUTO

    repository.set_sync_method(SyncMethod.COPY)
    assert store.get_setting(SYNC_METHOD_SETTING) == "copy"
    assert repository.load().sync_method == SyncMethod.COPY

    store.set_setting(SYNC_METHOD_SETTING, "hardlink")
    assert repository.get_sync_method() == SyncMethod.AUTO


def test_configured_default_sync_method(store: SkillStore, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SKILLSYNC_DEFAULT_SYNC_METHOD", "symlink")
    get_config(force_reload=True)

    assert SkillIndexRepository(store).get_sync_method() == SyncMethod.SYMLINK


def test_migration_flag(store: SkillStore) -> None:
    repository = SkillIndexRepository(store)
    assert repository.is_migration_pending() is False

    store.set_setting(MIGRATION_PENDING_SETTING, "1")
    assert repository.load().ssot_migration_pending is True

    repository.set_migration_pending(False)
    assert store.get_setting(MIGRATION_PENDING_SETTING) == "false"


def test_load_keys_skills_by_directory(store: SkillStore) -> None:
    store.save_skill(_skill("acme/tools:PDF", "PDF"))
    index = SkillIndexRepository(store).load()
    assert list(index.skills) == ["PDF"]
    assert index.skills["PDF"].id == "acme/tools:PDF"


def test_save_writes_everything_back(store: SkillStore) -> None:
    repository = SkillIndexRepository(store)
    index = repository.load()
    index.sync_method = SyncMethod.SYMLINK
    index.repos.append(SkillRepo(owner="acme", name="tools"))
    index.skills["hello"] = _skill("local:hello", "hello", apps=SkillApps(codex=True))

    repository.save(index)

    reloaded = repository.load()
    assert reloaded.sync_method == SyncMethod.SYMLINK
    assert reloaded.repos[-1].full_name == "acme/tools"
    assert reloaded.skills["hello"].apps.codex is True


def test_resolve_directory_order() -> None:
    index = SkillsIndex(skills={
        "Hello": _skill("local:Hello", "Hello"),
        "pdf": _skill("acme/tools:pdf", "pdf"),
    })

    assert index.resolve_directory("Hello") == "Hello"
    assert index.resolve_directory("  hello ") == "Hello"
    assert index.resolve_directory("ACME/TOOLS:PDF") == "pdf"
    assert index.resolve_directory("") is None
    assert index.resolve_directory("missing") is None
    assert index.find_directory_ci("HELLO") == "Hello"
    assert index.find_directory_ci("nope") is None
