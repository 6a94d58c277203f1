"""Utilities package for upgit."""

from .git import (
    GitClient,
    GitError,
    NotARepositoryError,
    BareRepositoryError,
    recover_remote_name,
)

__all__ = [
    'GitClient',
    'GitError',
    'NotARepositoryError',
    'BareRepositoryError',
    'recover_remote_name',
]
