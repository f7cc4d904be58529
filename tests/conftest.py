"""Shared fixtures: every test runs against a throwaway home and app dirs."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest

from skillsync.core import config as config_module
from skillsync.core.config import get_config
from skillsync.skills.models import AppType, DiscoverableSkill, SkillRepo


def write_skill_md(skill_dir: Path, name: Optional[str] = None, description: Optional[str] = None) -> Path:
    skill_dir.mkdir(parents=True, exist_ok=True)
    lines = ["---"]
    if name is not None:
        lines.append(f"name: {name}")
    if description is not None:
        lines.append(f"description: {description}")
    lines += ["---", "", f"# {name or skill_dir.name}", ""]
    manifest = skill_dir / "SKILL.md"
    manifest.write_text("\n".join(lines), encoding="utf-8")
    return manifest


@pytest.fixture(autouse=True)
def skillsync_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    home = tmp_path / "skillsync-home"
    app_roots: Dict[AppType, Path] = {app: tmp_path / f".{app.value}" for app in AppType.all()}

    monkeypatch.setenv("SKILLSYNC_HOME", str(home))
    for app, root in app_roots.items():
        monkeypatch.setenv(f"SKILLSYNC_{app.value.upper()}_DIR", str(root))
    monkeypatch.delenv("SKILLSYNC_DEFAULT_SYNC_METHOD", raising=False)
    monkeypatch.delenv("SKILLSYNC_GITHUB_HOST", raising=False)
    monkeypatch.delenv("SKILLSYNC_USER_AGENT", raising=False)
    get_config(force_reload=True)

    yield SimpleNamespace(
        home=home,
        ssot=home / "skills",
        db=home / "skillsync.db",
        legacy=home / "skills.json",
        apps={app: root / "skills" for app, root in app_roots.items()},
    )

    config_module._config = None


class FakeFetcher:
    """Stands in for GitHubFetcher; serves repository trees from local dirs."""

    def __init__(self, root: Path):
        self.root = root
        self.skills: List[DiscoverableSkill] = []
        self.downloads: List[str] = []

    def add_skill(
        self,
        owner: str,
        name: str,
        directory: str,
        skill_name: Optional[str] = None,
        description: str = "",
        branch: str = "main",
        subdir: str = "skills",
    ) -> DiscoverableSkill:
        skill_dir = self.root / owner / name / subdir / directory
        write_skill_md(skill_dir, skill_name or directory, description or None)
        (skill_dir / "prompt.txt").write_text(f"{owner}/{name}", encoding="utf-8")

        skill = DiscoverableSkill(
            key=f"{owner}/{name}:{directory}",
            name=skill_name or directory,
            description=description,
            directory=directory,
            readme_url=f"https://github.com/{owner}/{name}/tree/{branch}/{subdir}/{directory}",
            repo_owner=owner,
            repo_name=name,
            repo_branch=branch,
        )
        self.skills.append(skill)
        return skill

    def discover_available(self, repos) -> List[DiscoverableSkill]:
        return list(self.skills)

    def download_repo(self, repo: SkillRepo) -> Path:
        self.downloads.append(repo.full_name)
        dest = Path(tempfile.mkdtemp(prefix="skillsync_test_repo_"))
        shutil.copytree(self.root / repo.owner / repo.name, dest, dirs_exist_ok=True)
        return dest


@pytest.fixture
def fake_fetcher(tmp_path: Path) -> FakeFetcher:
    return FakeFetcher(tmp_path / "remote")


@pytest.fixture
def make_skill():
    return write_skill_md
