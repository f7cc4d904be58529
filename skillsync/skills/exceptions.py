"""Exception classes for the skill sync engine"""

from enum import Enum
from pathlib import Path
from typing import Optional


class SkillErrorCode(str, Enum):
    """Standardized error codes for skill operations"""
    EMPTY_SPEC = "EMPTY_SPEC"
    AMBIGUOUS_SPEC = "AMBIGUOUS_SPEC"
    SKILL_NOT_FOUND = "SKILL_NOT_FOUND"
    SKILL_NOT_INSTALLED = "SKILL_NOT_INSTALLED"
    SKILL_NOT_IN_SSOT = "SKILL_NOT_IN_SSOT"
    SKILL_DIRECTORY_CONFLICT = "SKILL_DIRECTORY_CONFLICT"
    DOWNLOAD_FAILED = "DOWNLOAD_FAILED"
    DOWNLOAD_TIMEOUT = "DOWNLOAD_TIMEOUT"
    ZIP_INVALID = "ZIP_INVALID"
    EMPTY_ARCHIVE = "EMPTY_ARCHIVE"
    SKILL_DIR_NOT_FOUND = "SKILL_DIR_NOT_FOUND"
    IO_ERROR = "IO_ERROR"
    STORE_ERROR = "STORE_ERROR"
    UNKNOWN = "UNKNOWN"


# Hint tags attached to errors; the presentation layer renders them.
HINT_CHECK_NETWORK = "checkNetwork"
HINT_HTTP_403 = "http403"
HINT_HTTP_404 = "http404"
HINT_HTTP_429 = "http429"
HINT_CHECK_REPO_URL = "checkRepoUrl"
HINT_UNINSTALL_FIRST = "uninstallFirst"
HINT_CHECK_PERMISSION = "checkPermission"
HINT_FULL_KEY = "fullKey"

HINT_MESSAGES = {
    HINT_CHECK_NETWORK: "Check your network connection and try again.",
    HINT_HTTP_403: "Access denied (HTTP 403). The repository may be private, or the GitHub rate limit was hit.",
    HINT_HTTP_404: "Not found (HTTP 404). Check the repository owner, name and branch.",
    HINT_HTTP_429: "Too many requests (HTTP 429). Wait a while before retrying.",
    HINT_CHECK_REPO_URL: "Check that the repository exists and contains the skill directory.",
    HINT_UNINSTALL_FIRST: "Uninstall the existing skill first, then install the new one.",
    HINT_CHECK_PERMISSION: "Check file and directory permissions.",
    HINT_FULL_KEY: "Use the full key (owner/name:directory) to pick one.",
}


def hint_text(hint: Optional[str]) -> Optional[str]:
    """Return the user-facing text for a hint tag."""
    if hint is None:
        return None
    return HINT_MESSAGES.get(hint, hint)


def hint_for_status(status: int) -> str:
    """Map an HTTP status to a hint tag."""
    return {
        403: HINT_HTTP_403,
        404: HINT_HTTP_404,
        429: HINT_HTTP_429,
    }.get(status, HINT_CHECK_NETWORK)


class SkillError(Exception):
    """Base exception for all skill errors, with structured information"""

    default_code = SkillErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        error_code: Optional[SkillErrorCode] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"[{self.error_code.value}] {self.message} (hint: {self.hint})"
        return f"[{self.error_code.value}] {self.message}"


class SkillInputError(SkillError):
    """Raised for invalid user input (empty or ambiguous spec)"""
    default_code = SkillErrorCode.EMPTY_SPEC


class SkillNotFoundError(SkillError):
    """Raised when a skill cannot be resolved"""
    default_code = SkillErrorCode.SKILL_NOT_FOUND


class SkillConflictError(SkillError):
    """Raised when a directory is already claimed by a different repository"""
    default_code = SkillErrorCode.SKILL_DIRECTORY_CONFLICT


class SkillFetchError(SkillError):
    """Raised when a repository download fails"""
    default_code = SkillErrorCode.DOWNLOAD_FAILED

    def __init__(
        self,
        message: str,
        error_code: Optional[SkillErrorCode] = None,
        hint: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, error_code, hint)
        self.status = status


class SkillArchiveError(SkillError):
    """Raised when an archive is invalid or lacks the expected skill"""
    default_code = SkillErrorCode.ZIP_INVALID


class SkillFilesystemError(SkillError):
    """Raised when a filesystem operation fails; carries the offending path"""
    default_code = SkillErrorCode.IO_ERROR

    def __init__(self, path: Path, cause: Exception, action: str = "I/O error"):
        super().__init__(
            f"{action}: {path}: {cause}",
            SkillErrorCode.IO_ERROR,
            HINT_CHECK_PERMISSION,
        )
        self.path = Path(path)
        self.cause = cause


class SkillStoreError(SkillError):
    """Raised when the persistence layer fails"""
    default_code = SkillErrorCode.STORE_ERROR


__all__ = [
    "SkillErrorCode",
    "SkillError",
    "SkillInputError",
    "SkillNotFoundError",
    "SkillConflictError",
    "SkillFetchError",
    "SkillArchiveError",
    "SkillFilesystemError",
    "SkillStoreError",
    "hint_text",
    "hint_for_status",
]
