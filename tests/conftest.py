"""Shared fixtures for upgit tests."""

import os
import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from upgit.utils.git import (
    GitClient,
    Repository,
    Remote,
    Worktree,
    WorktreeStatus,
    PullResult,
    PullStatus,
)

requires_git = pytest.mark.skipif(shutil.which('git') is None, reason="git is not installed")


def run_git(cwd, *args) -> str:
    """Run a git command in a test repository and return stdout."""
    result = subprocess.run(
        ['git', '-c', 'commit.gpgsign=false', *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=True
    )
    return result.stdout


def commit_file(repo: Path, name: str, content: str, message: str = None) -> str:
    """Write a file, commit it and return the new HEAD."""
    (repo / name).write_text(content)
    run_git(repo, 'add', name)
    run_git(repo, 'commit', '-q', '-m', message or f"Update {name}")
    return run_git(repo, 'rev-parse', 'HEAD').strip()


def init_repo(path: Path, bare: bool = False) -> Path:
    """Create a repository whose branch is "main"."""
    path.mkdir(parents=True, exist_ok=True)
    run_git(path, 'init', '-q', *(['--bare'] if bare else []))
    run_git(path, 'symbolic-ref', 'HEAD', 'refs/heads/main')
    return path


def clone_repo(source: Path, dest: Path) -> Path:
    """Clone source into dest."""
    run_git(dest.parent, 'clone', '-q', str(source), dest.name)
    return dest


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Isolate git from the user's configuration."""
    home = tmp_path / 'home'
    home.mkdir()
    monkeypatch.setenv('HOME', str(home))
    monkeypatch.setenv('GIT_CONFIG_NOSYSTEM', '1')
    monkeypatch.setenv('GIT_AUTHOR_NAME', 'Test Author')
    monkeypatch.setenv('GIT_AUTHOR_EMAIL', 'author@example.com')
    monkeypatch.setenv('GIT_COMMITTER_NAME', 'Test Author')
    monkeypatch.setenv('GIT_COMMITTER_EMAIL', 'author@example.com')
    for name in ('GIT_DIR', 'GIT_WORK_TREE', 'GIT_INDEX_FILE'):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def upstream(tmp_path, git_env) -> Path:
    """A repository with one commit on main, used as the origin of clones."""
    repo = init_repo(tmp_path / 'upstream')
    commit_file(repo, 'README.md', '# upstream\n', 'Initial commit')
    return repo


@pytest.fixture
def container(tmp_path) -> Path:
    """An empty container directory."""
    path = tmp_path / 'container'
    path.mkdir()
    return path


@pytest.fixture
def mock_git_client():
    """A mocked GitClient describing a clean, up to date repository at /repos/app."""
    client = MagicMock(spec=GitClient)
    repo = Repository(path='/repos/app', git_dir='/repos/app/.git', worktree_path='/repos/app')
    client.open_repository.return_value = repo
    client.list_remotes.return_value = [
        Remote(name='origin', description='origin\thttps://example.com/app.git (fetch)')
    ]
    client.open_worktree.return_value = Worktree(repository=repo, path='/repos/app')
    client.status.return_value = WorktreeStatus(entries=[])
    client.submodules.return_value = []
    client.pull.return_value = PullResult(
        status=PullStatus.ALREADY_UP_TO_DATE,
        previous_head='a' * 40,
        current_head='a' * 40
    )
    return client


@pytest.fixture(autouse=True)
def clean_upgit_env(monkeypatch):
    """Keep UPGIT_* variables from the developer's shell out of the tests."""
    for name in list(os.environ):
        if name.startswith('UPGIT_'):
            monkeypatch.delenv(name)
