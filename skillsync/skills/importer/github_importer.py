"""
GitHub Skill Fetcher: Download repository snapshots and discover skills.

Key principles:
1. Archive download: https://<host>/<owner>/<repo>/archive/refs/heads/<branch>.zip
2. Branch fallback: configured branch, then main, then master
3. Read-only: Never execute downloaded code
4. Isolation: One failing repository never aborts discovery of the others
"""

from __future__ import annotations

import io
import logging
import shutil
import tempfile
import time
import zipfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional

import requests

from skillsync.core.config import get_config
from skillsync.skills.exceptions import (
    HINT_CHECK_NETWORK,
    HINT_CHECK_REPO_URL,
    SkillArchiveError,
    SkillErrorCode,
    SkillFetchError,
    SkillFilesystemError,
    hint_for_status,
)
from skillsync.skills.manifest import MANIFEST_FILENAME, parse_skill_metadata
from skillsync.skills.models import DiscoverableSkill, SkillRepo
from skillsync.skills.scanner import scan_skill_dirs


logger = logging.getLogger(__name__)

FALLBACK_BRANCHES = ("main", "master")
CHUNK_SIZE = 64 * 1024


def candidate_branches(repo: SkillRepo) -> List[str]:
    """Branches to try, in order, without duplicates."""
    branches: List[str] = []
    configured = repo.branch.strip()
    if configured:
        branches.append(configured)
    for branch in FALLBACK_BRANCHES:
        if branch not in branches:
            branches.append(branch)
    return branches


def extract_archive(data: bytes, dest: Path) -> None:
    """
    Extract a host-generated snapshot zip into dest.

    The host wraps every snapshot in a single top-level folder; the first
    entry names it and every entry is written with that prefix stripped.
    Entries outside the folder are ignored.

    Raises:
        SkillArchiveError: Invalid or empty archive, or unsafe entry path
        SkillFilesystemError: Writing an entry failed
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise SkillArchiveError(
            f"Invalid ZIP: {e}", SkillErrorCode.ZIP_INVALID, HINT_CHECK_REPO_URL
        )

    with archive:
        members = archive.infolist()
        if not members:
            raise SkillArchiveError(
                "Downloaded archive is empty",
                SkillErrorCode.EMPTY_ARCHIVE,
                HINT_CHECK_REPO_URL,
            )

        root_name = members[0].filename.split("/")[0]
        prefix = f"{root_name}/"

        for member in members:
            if not member.filename.startswith(prefix):
                continue
            relative = member.filename[len(prefix):]
            if not relative:
                continue

            rel_path = PurePosixPath(relative)
            if rel_path.is_absolute() or ".." in rel_path.parts:
                raise SkillArchiveError(
                    f"Unsafe path in archive: {member.filename}",
                    SkillErrorCode.ZIP_INVALID,
                    HINT_CHECK_REPO_URL,
                )

            target = dest.joinpath(*rel_path.parts)
            try:
                if member.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                else:
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(member) as source, open(target, "wb") as out:
                        shutil.copyfileobj(source, out)
            except OSError as e:
                raise SkillFilesystemError(target, e, "Failed to write file")


class GitHubFetcher:
    """Fetch repository snapshots and list the skills they contain."""

    def __init__(
        self,
        host: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize fetcher.

        Args:
            host: Archive host (default: config.github_host)
            timeout: Overall seconds allowed per branch attempt
                     (default: config.download_timeout)
            session: Object with a requests-style get() (default: the
                     requests module, a fresh connection per download)
        """
        config = get_config()
        self.host = host or config.github_host
        self.timeout = timeout or config.download_timeout
        self.connect_timeout = min(config.http_timeout, self.timeout)
        self.headers = {"User-Agent": config.user_agent}
        self.session = session

    def archive_url(self, repo: SkillRepo, branch: str) -> str:
        return f"https://{self.host}/{repo.owner}/{repo.name}/archive/refs/heads/{branch}.zip"

    def readme_url(self, repo: SkillRepo, path: str) -> str:
        return f"https://{self.host}/{repo.owner}/{repo.name}/tree/{repo.branch}/{path}"

    def download_repo(self, repo: SkillRepo) -> Path:
        """
        Download and extract a repository snapshot into a new temp directory.

        Each branch candidate gets its own full timeout budget. When every
        candidate fails, the last specific error is raised.

        Returns:
            Path to the extracted snapshot (caller removes it)

        Raises:
            SkillFetchError: Every branch failed to download
            SkillArchiveError: The downloaded archive was unusable
        """
        last_error: Optional[Exception] = None

        for branch in candidate_branches(repo):
            url = self.archive_url(repo, branch)
            temp_dir = Path(tempfile.mkdtemp(prefix="skillsync_repo_"))
            try:
                data = self._download(url, repo)
                extract_archive(data, temp_dir)
                logger.info(f"Downloaded {repo.full_name}@{branch}")
                return temp_dir
            except (SkillFetchError, SkillArchiveError, SkillFilesystemError) as e:
                shutil.rmtree(temp_dir, ignore_errors=True)
                logger.debug(f"Branch {branch} of {repo.full_name} failed: {e}")
                last_error = e

        if last_error is None:
            raise SkillFetchError(
                f"Failed to download {repo.full_name}",
                SkillErrorCode.DOWNLOAD_FAILED,
                HINT_CHECK_NETWORK,
            )
        raise last_error

    def _download(self, url: str, repo: SkillRepo) -> bytes:
        logger.debug(f"Downloading from {url}")
        deadline = time.monotonic() + self.timeout

        try:
            response = (self.session or requests).get(
                url,
                headers=self.headers,
                stream=True,
                timeout=(self.connect_timeout, self.timeout),
            )
        except requests.exceptions.Timeout:
            raise self._timeout_error(repo)
        except requests.exceptions.RequestException as e:
            raise SkillFetchError(
                f"Download failed: {e}", SkillErrorCode.DOWNLOAD_FAILED, HINT_CHECK_NETWORK
            )

        with response:
            status = response.status_code
            if not 200 <= status < 300:
                raise SkillFetchError(
                    f"Download failed for {repo.full_name}: HTTP {status}",
                    SkillErrorCode.DOWNLOAD_FAILED,
                    hint_for_status(status),
                    status=status,
                )

            buffer = io.BytesIO()
            try:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        buffer.write(chunk)
                    if time.monotonic() > deadline:
                        raise self._timeout_error(repo)
            except requests.exceptions.Timeout:
                raise self._timeout_error(repo)
            except requests.exceptions.RequestException as e:
                raise SkillFetchError(
                    f"Failed to read download: {e}",
                    SkillErrorCode.DOWNLOAD_FAILED,
                    HINT_CHECK_NETWORK,
                )

        return buffer.getvalue()

    def _timeout_error(self, repo: SkillRepo) -> SkillFetchError:
        return SkillFetchError(
            f"Download of {repo.full_name} timed out after {self.timeout:g}s",
            SkillErrorCode.DOWNLOAD_TIMEOUT,
            HINT_CHECK_NETWORK,
        )

    def fetch_repo_skills(self, repo: SkillRepo) -> List[DiscoverableSkill]:
        """Download a repository and describe every skill root in it."""
        temp_dir = self.download_repo(repo)
        try:
            skills = []
            for path in scan_skill_dirs(temp_dir):
                directory = path.name
                if not directory:
                    continue

                meta = parse_skill_metadata(path / MANIFEST_FILENAME)
                relative = path.relative_to(temp_dir).as_posix() or directory

                skills.append(DiscoverableSkill(
                    key=f"{repo.owner}/{repo.name}:{directory}",
                    name=meta.name or directory,
                    description=meta.description or "",
                    directory=directory,
                    readme_url=self.readme_url(repo, relative),
                    repo_owner=repo.owner,
                    repo_name=repo.name,
                    repo_branch=repo.branch,
                ))
            return skills
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

    def discover_available(self, repos: Iterable[SkillRepo]) -> List[DiscoverableSkill]:
        """
        Fetch every enabled repository concurrently and merge the results.

        A repository that fails is logged and skipped.
        """
        enabled = [r for r in repos if r.enabled]
        if not enabled:
            return []

        skills: List[DiscoverableSkill] = []
        with ThreadPoolExecutor(max_workers=len(enabled)) as executor:
            futures = [(repo, executor.submit(self.fetch_repo_skills, repo)) for repo in enabled]
            for repo, future in futures:
                try:
                    skills.extend(future.result())
                except Exception as e:
                    logger.warning(f"Failed to fetch skills from {repo.full_name}: {e}")

        skills = deduplicate_discoverable(skills)
        skills.sort(key=lambda s: s.name.lower())
        return skills


def deduplicate_discoverable(skills: List[DiscoverableSkill]) -> List[DiscoverableSkill]:
    seen = set()
    unique = []
    for skill in skills:
        marker = (skill.repo_owner.lower(), skill.key.lower())
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(skill)
    return unique


__all__ = [
    "GitHubFetcher",
    "candidate_branches",
    "extract_archive",
    "deduplicate_discoverable",
]
