"""
Skill Importers: remote repository snapshots.

This module provides:
- GitHubFetcher: Download snapshots and discover skills in them
"""

from .github_importer import GitHubFetcher, candidate_branches, extract_archive

__all__ = [
    "GitHubFetcher",
    "candidate_branches",
    "extract_archive",
]
