from __future__ import annotations

import os
from pathlib import Path

import pytest

from skillsync.core.config import get_config
from skillsync.skills import sync as sync_module
from skillsync.skills.exceptions import (
    SkillErrorCode,
    SkillFilesystemError,
    SkillNotFoundError,
)
from skillsync.skills.models import AppType, InstalledSkill, SkillApps, SkillsIndex, SyncMethod
from skillsync.skills.sync import SkillSyncer, copy_dir_recursive, remove_path


@pytest.fixture
def syncer() -> SkillSyncer:
    return SkillSyncer()


def _ssot_skill(env, make_skill, directory: str = "hello") -> Path:
    path = env.ssot / directory
    make_skill(path, "Hello", "Says hello")
    return path


def test_symlink_method_links_to_ssot(skillsync_env, make_skill, syncer) -> None:
    source = _ssot_skill(skillsync_env, make_skill)

    syncer.sync_to_app_dir("hello", AppType.CLAUDE, SyncMethod.SYMLINK)

    dest = skillsync_env.apps[AppType.CLAUDE] / "hello"
    assert os.path.islink(dest)
    assert Path(os.readlink(dest)) == source
    assert (dest / "SKILL.md").is_file()


def test_copy_method_creates_real_directory(skillsync_env, make_skill, syncer) -> None:
    _ssot_skill(skillsync_env, make_skill)

    syncer.sync_to_app_dir("hello", AppType.CODEX, SyncMethod.COPY)

    dest = skillsync_env.apps[AppType.CODEX] / "hello"
    assert dest.is_dir()
    assert not os.path.islink(dest)
    assert (dest / "SKILL.md").is_file()


def test_auto_falls_back_to_copy(skillsync_env, make_skill, syncer, monkeypatch) -> None:
    _ssot_skill(skillsync_env, make_skill)

    def refuse(src, dest):
        raise SkillFilesystemError(dest, OSError("symlinks not permitted"))

    monkeypatch.setattr(sync_module, "create_symlink", refuse)

    syncer.sync_to_app_dir("hello", AppType.GEMINI, SyncMethod.AUTO)

    dest = skillsync_env.apps[AppType.GEMINI] / "hello"
    assert dest.is_dir() and not os.path.islink(dest)
    assert (dest / "SKILL.md").is_file()


def test_symlink_method_is_strict(skillsync_env, make_skill, syncer, monkeypatch) -> None:
    _ssot_skill(skillsync_env, make_skill)

    def refuse(src, dest):
        raise SkillFilesystemError(dest, OSError("symlinks not permitted"))

    monkeypatch.setattr(sync_module, "create_symlink", refuse)

    with pytest.raises(SkillFilesystemError):
        syncer.sync_to_app_dir("hello", AppType.CLAUDE, SyncMethod.SYMLINK)
    assert not (skillsync_env.apps[AppType.CLAUDE] / "hello").exists()


def test_missing_ssot_entry(syncer) -> None:
    with pytest.raises(SkillNotFoundError) as exc_info:
        syncer.sync_to_app_dir("ghost", AppType.CLAUDE, SyncMethod.COPY)
    assert exc_info.value.error_code == SkillErrorCode.SKILL_NOT_IN_SSOT


def test_existing_destination_is_replaced(skillsync_env, make_skill, syncer) -> None:
    _ssot_skill(skillsync_env, make_skill)
    stale = skillsync_env.apps[AppType.CLAUDE] / "hello"
    stale.mkdir(parents=True)
    (stale / "old.txt").write_text("old", encoding="utf-8")

    syncer.sync_to_app_dir("hello", AppType.CLAUDE, SyncMethod.COPY)

    assert not (stale / "old.txt").exists()
    assert (stale / "SKILL.md").is_file()


def test_dangling_symlink_is_replaced(skillsync_env, make_skill, syncer, tmp_path) -> None:
    _ssot_skill(skillsync_env, make_skill)
    app_dir = skillsync_env.apps[AppType.CLAUDE]
    app_dir.mkdir(parents=True)
    os.symlink(tmp_path / "gone", app_dir / "hello")

    syncer.sync_to_app_dir("hello", AppType.CLAUDE, SyncMethod.SYMLINK)

    assert (app_dir / "hello" / "SKILL.md").is_file()


def test_relative_home_produces_working_symlink(skillsync_env, make_skill, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SKILLSYNC_HOME", "relhome")
    assert get_config(force_reload=True).home == tmp_path / "relhome"
    make_skill(tmp_path / "relhome" / "skills" / "hello", "Hello")

    SkillSyncer().sync_to_app_dir("hello", AppType.CLAUDE, SyncMethod.AUTO)

    dest = skillsync_env.apps[AppType.CLAUDE] / "hello"
    assert os.path.islink(dest)
    assert Path(os.readlink(dest)).is_absolute()
    assert dest.exists()
    assert (dest / "SKILL.md").is_file()


def test_relative_ssot_dir_produces_working_symlink(skillsync_env, make_skill, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    make_skill(tmp_path / "store" / "hello", "Hello")

    SkillSyncer(ssot_dir=Path("store")).sync_to_app_dir("hello", AppType.CODEX, SyncMethod.SYMLINK)

    assert (skillsync_env.apps[AppType.CODEX] / "hello" / "SKILL.md").is_file()


def test_remove_path_unlinks_symlink_without_touching_target(tmp_path, make_skill) -> None:
    target = tmp_path / "target"
    make_skill(target, "T")
    link = tmp_path / "link"
    os.symlink(target, link)

    remove_path(link)

    assert not os.path.lexists(link)
    assert (target / "SKILL.md").is_file()


def test_remove_from_app_tolerates_absence(skillsync_env, make_skill, syncer) -> None:
    syncer.remove_from_app("nothing", AppType.CODEX)

    _ssot_skill(skillsync_env, make_skill)
    syncer.sync_to_app_dir("hello", AppType.CODEX, SyncMethod.SYMLINK)
    syncer.remove_from_app("hello", AppType.CODEX)

    assert not os.path.lexists(skillsync_env.apps[AppType.CODEX] / "hello")
    assert (skillsync_env.ssot / "hello" / "SKILL.md").is_file()


def test_copy_dir_recursive_completes_partial_copy(tmp_path, make_skill) -> None:
    src = tmp_path / "src"
    make_skill(src, "Full")
    (src / "sub").mkdir()
    (src / "sub" / "data.txt").write_text("data", encoding="utf-8")

    dest = tmp_path / "dest"
    dest.mkdir()
    (dest / "SKILL.md").write_text("partial", encoding="utf-8")

    copy_dir_recursive(src, dest)

    assert (dest / "sub" / "data.txt").read_text(encoding="utf-8") == "data"
    assert "name: Full" in (dest / "SKILL.md").read_text(encoding="utf-8")


def _index(*skills: InstalledSkill) -> SkillsIndex:
    return SkillsIndex(sync_method=SyncMethod.COPY, skills={s.directory: s for s in skills})


def test_sync_to_app_only_materializes_enabled_skills(skillsync_env, make_skill, syncer) -> None:
    _ssot_skill(skillsync_env, make_skill, "one")
    _ssot_skill(skillsync_env, make_skill, "two")
    index = _index(
        InstalledSkill(id="local:one", name="one", directory="one", apps=SkillApps(claude=True)),
        InstalledSkill(id="local:two", name="two", directory="two", apps=SkillApps(codex=True)),
    )

    syncer.sync_to_app(index, AppType.CLAUDE)

    claude = skillsync_env.apps[AppType.CLAUDE]
    assert (claude / "one").is_dir()
    assert not (claude / "two").exists()


def test_sync_apps_strict_vs_best_effort(skillsync_env, make_skill, syncer) -> None:
    _ssot_skill(skillsync_env, make_skill)
    index = _index(
        InstalledSkill(
            id="local:hello",
            name="hello",
            directory="hello",
            apps=SkillApps(claude=True, codex=True),
        )
    )

    # A file where the claude mirror root should be makes that app fail.
    claude_root = skillsync_env.apps[AppType.CLAUDE]
    claude_root.parent.mkdir(parents=True)
    claude_root.write_text("not a directory", encoding="utf-8")

    with pytest.raises(SkillFilesystemError):
        syncer.sync_apps(index, AppType.all())
    assert not (skillsync_env.apps[AppType.CODEX] / "hello").exists()

    syncer.sync_apps(index, AppType.all(), best_effort=True)
    assert (skillsync_env.apps[AppType.CODEX] / "hello" / "SKILL.md").is_file()
