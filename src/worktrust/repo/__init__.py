"""
Repository identification for trust decisions.

Maps an absolute file path to the repository that owns it, so the same
configuration file is recognised across clones, remotes, and relocations.
"""

from .git import current_repo_root, resolve_remote_url, resolve_repo_root
from .identity import normalize_remote_url, path_is_within, resolve_repo_identity
from .types import RepoIdentity

__all__ = [
    "RepoIdentity",
    "current_repo_root",
    "normalize_remote_url",
    "path_is_within",
    "resolve_remote_url",
    "resolve_repo_identity",
    "resolve_repo_root",
]
