"""
Centralized Configuration Management for SkillSync

Provides pydantic-based configuration with:
- Environment variable loading (.env support)
- Type validation
- Default values

Usage:
    from skillsync.core.config import get_config

    config = get_config()
    print(config.home)
    print(config.download_timeout)
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SkillSyncConfig(BaseSettings):
    """
    Central configuration for SkillSync

    All settings can be overridden via environment variables with SKILLSYNC_ prefix.
    For example: SKILLSYNC_HOME, SKILLSYNC_CLAUDE_DIR, etc.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SKILLSYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================
    # Storage Configuration
    # ============================================

    home: Path = Field(
        default_factory=lambda: Path.home() / ".skillsync",
        description="SkillSync home directory (database, SSOT skills, legacy files)"
    )

    # ============================================
    # Application Directories
    # ============================================

    claude_dir: Optional[Path] = Field(
        default=None,
        description="Override for the Claude config directory (skills live in <dir>/skills)"
    )

    codex_dir: Optional[Path] = Field(
        default=None,
        description="Override for the Codex config directory (skills live in <dir>/skills)"
    )

    gemini_dir: Optional[Path] = Field(
        default=None,
        description="Override for the Gemini config directory (skills live in <dir>/skills)"
    )

    # ============================================
    # Network Configuration
    # ============================================

    github_host: str = Field(
        default="github.com",
        description="Host serving repository archives"
    )

    download_timeout: float = Field(
        default=60.0,
        description="Overall timeout in seconds for a single branch download attempt"
    )

    http_timeout: float = Field(
        default=10.0,
        description="Connect timeout in seconds for HTTP requests"
    )

    user_agent: str = Field(
        default="skillsync",
        description="User-Agent header sent with archive downloads"
    )

    # ============================================
    # Application Configuration
    # ============================================

    default_sync_method: str = Field(
        default="auto",
        description="Sync method used until one is stored: auto, symlink or copy"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    # ============================================
    # Validators
    # ============================================

    @field_validator("home", "claude_dir", "codex_dir", "gemini_dir")
    @classmethod
    def expand_user(cls, v: Optional[Path]) -> Optional[Path]:
        """Expand ~ and make configured paths absolute"""
        if v is None:
            return v
        return Path(v).expanduser().resolve()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(
                f"log_level must be one of: {', '.join(valid_levels)}"
            )
        return v.upper()

    @field_validator("default_sync_method")
    @classmethod
    def validate_sync_method(cls, v: str) -> str:
        """Validate default sync method"""
        valid_methods = ["auto", "symlink", "copy"]
        if v.lower() not in valid_methods:
            raise ValueError(
                f"default_sync_method must be one of: {', '.join(valid_methods)}"
            )
        return v.lower()

    @field_validator("download_timeout", "http_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Timeouts must be positive"""
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v


# Global config instance
_config: Optional[SkillSyncConfig] = None


def get_config(force_reload: bool = False) -> SkillSyncConfig:
    """
    Get the global configuration instance

    Args:
        force_reload: Force reload configuration from environment

    Returns:
        SkillSyncConfig instance
    """
    global _config

    if _config is None or force_reload:
        _config = SkillSyncConfig()

    return _config
