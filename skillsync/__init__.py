"""SkillSync - skill package sync engine for Claude, Codex and Gemini."""

__version__ = "0.3.0"
