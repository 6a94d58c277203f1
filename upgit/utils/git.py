"""Git operations used to classify and update repositories.

Everything here shells out to the ``git`` executable. Two failures are
expected and get their own exception types (``NotARepositoryError`` and
``BareRepositoryError``); every other failure is a ``GitError``.
"""

import os
import re
import subprocess
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

logger = logging.getLogger('upgit')

# First leading run of identifier characters, e.g. "origin" in
# "origin\thttps://github.com/user/repo.git (fetch)"
REMOTE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]+')

# Variables that would point git at another repository than the one in cwd
_REPOSITORY_ENV_VARS = ('GIT_DIR', 'GIT_WORK_TREE', 'GIT_INDEX_FILE', 'GIT_COMMON_DIR')


class GitError(Exception):
    """A git command failed in a way that is not a classification signal."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = ''
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr:
            return f"{message}: {self.stderr}"
        return message


class NotARepositoryError(GitError):
    """The path is not the root of a git repository."""


class BareRepositoryError(GitError):
    """The repository has no working tree."""


@dataclass(frozen=True)
class Repository:
    """An opened repository."""
    path: str
    git_dir: str
    worktree_path: Optional[str] = None

    @property
    def is_bare(self) -> bool:
        return self.worktree_path is None


@dataclass(frozen=True)
class Remote:
    """A configured remote and its textual description."""
    name: str
    description: str


@dataclass(frozen=True)
class Worktree:
    """The checked-out file tree of a repository."""
    repository: Repository
    path: str


@dataclass
class WorktreeStatus:
    """Porcelain status entries of a worktree."""
    entries: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """Check if there are no modified, staged or untracked entries."""
        return not self.entries


class PullStatus(Enum):
    """What a pull did to the current branch."""
    UPDATED = "updated"
    ALREADY_UP_TO_DATE = "already-up-to-date"


@dataclass(frozen=True)
class PullResult:
    """Result of a fast-forward pull."""
    status: PullStatus
    previous_head: Optional[str] = None
    current_head: Optional[str] = None


@dataclass(frozen=True)
class Commit:
    """A commit object."""
    sha: str
    author: str
    summary: str

    def __str__(self) -> str:
        return f"{self.sha[:7]} {self.summary} ({self.author})"


def recover_remote_name(description: str) -> Optional[str]:
    """Recover a remote name from its textual description.

    The name is the first leading run of letters, digits, ``_`` or ``-``.
    ``"origin\\thttps://host/repo.git (fetch)"`` gives ``"origin"``.

    Args:
        description: Remote description as printed by ``git remote -v``

    Returns:
        Remote name, or None if the description does not start with one
    """
    match = REMOTE_NAME_PATTERN.match(description or '')
    return match.group(0) if match else None


class GitClient:
    """Thin wrapper around the git executable.

    Instances hold no per-repository state and are safe to share between
    threads.
    """

    def __init__(self, timeout: Optional[float] = None, git_binary: str = 'git'):
        """Initialize git client.

        Args:
            timeout: Timeout in seconds for each git command (None = no timeout)
            git_binary: Git executable to run
        """
        self.timeout = timeout
        self.git_binary = git_binary

    def _env(self) -> dict:
        env = {k: v for k, v in os.environ.items() if k not in _REPOSITORY_ENV_VARS}
        env['GIT_TERMINAL_PROMPT'] = '0'
        env['LC_ALL'] = 'C'
        return env

    def _run(self, args: List[str], cwd: str, check: bool = True) -> subprocess.CompletedProcess:
        """Run a git command.

        Args:
            args: Arguments after the git executable
            cwd: Working directory
            check: Raise GitError on non-zero exit

        Returns:
            Completed process with text stdout/stderr

        Raises:
            GitError: If git cannot be run, times out, or fails with check=True
        """
        command = [self.git_binary, *args]
        logger.debug(f"Running {' '.join(command)} in {cwd}")
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                capture_output=True,
                text=True,
                env=self._env(),
                timeout=self.timeout,
                check=False
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(
                f"'{' '.join(command)}' timed out after {self.timeout}s in {cwd}",
                command=command
            ) from e
        except OSError as e:
            raise GitError(f"Could not run '{' '.join(command)}' in {cwd}: {e}", command=command) from e

        if check and result.returncode != 0:
            raise GitError(
                f"'{' '.join(command)}' failed in {cwd} with exit code {result.returncode}",
                command=command,
                returncode=result.returncode,
                stderr=result.stderr.strip()
            )
        return result

    def open_repository(self, path: str) -> Repository:
        """Open the repository rooted at a path.

        A directory nested inside another repository is not a repository
        of its own.

        Args:
            path: Directory to open

        Returns:
            Opened repository

        Raises:
            NotARepositoryError: If path is not the root of a repository
            GitError: For any other failure
        """
        if not os.path.isdir(path):
            raise NotARepositoryError(f"Not a directory: {path}")

        result = self._run(
            ['rev-parse', '--absolute-git-dir', '--is-bare-repository', '--is-inside-work-tree'],
            cwd=path,
            check=False
        )
        if result.returncode != 0:
            if 'not a git repository' in result.stderr.lower():
                raise NotARepositoryError(f"Not a git repository: {path}")
            raise GitError(
                f"Could not open repository {path}",
                returncode=result.returncode,
                stderr=result.stderr.strip()
            )

        lines = result.stdout.splitlines()
        if len(lines) < 3:
            raise GitError(f"Unexpected rev-parse output for {path}: {result.stdout!r}")
        git_dir, is_bare, inside_work_tree = (line.strip() for line in lines[:3])
        real_path = os.path.realpath(path)

        if inside_work_tree == 'true':
            toplevel = self._run(['rev-parse', '--show-toplevel'], cwd=path).stdout.strip()
            if os.path.realpath(toplevel) != real_path:
                raise NotARepositoryError(f"{path} is inside the repository at {toplevel}")
            return Repository(path=path, git_dir=git_dir, worktree_path=toplevel)

        if is_bare == 'true' and os.path.realpath(git_dir) == real_path:
            return Repository(path=path, git_dir=git_dir)

        raise NotARepositoryError(f"{path} is inside the git directory {git_dir}")

    def list_remotes(self, repo: Repository) -> List[Remote]:
        """List the configured remotes of a repository.

        Args:
            repo: Opened repository

        Returns:
            Remotes sorted by name
        """
        names = self._run(['remote'], cwd=repo.path).stdout.split()
        lines = self._run(['remote', '-v'], cwd=repo.path).stdout.splitlines()

        remotes = []
        for name in names:
            description = next(
                (line for line in lines if line.split('\t', 1)[0] == name),
                name
            )
            remotes.append(Remote(name=name, description=description))
        return remotes

    def open_worktree(self, repo: Repository) -> Worktree:
        """Get the worktree of a repository.

        Raises:
            BareRepositoryError: If the repository is bare
        """
        if repo.is_bare:
            raise BareRepositoryError(f"Bare repository: {repo.path}")
        return Worktree(repository=repo, path=repo.worktree_path)

    def status(self, worktree: Worktree) -> WorktreeStatus:
        """Get the status of a worktree, including untracked files and submodules."""
        output = self._run(
            ['status', '--porcelain', '--untracked-files=normal', '--ignore-submodules=none'],
            cwd=worktree.path
        ).stdout
        return WorktreeStatus(entries=[line for line in output.splitlines() if line.strip()])

    def submodules(self, worktree: Worktree) -> List[str]:
        """List submodule paths of a worktree."""
        output = self._run(['submodule', 'status'], cwd=worktree.path).stdout
        paths = []
        for line in output.splitlines():
            parts = line[1:].split()
            if len(parts) >= 2:
                paths.append(parts[1])
        return paths

    def current_branch(self, worktree: Worktree) -> Optional[str]:
        """Get the current branch, or None if HEAD is detached."""
        result = self._run(['symbolic-ref', '--quiet', '--short', 'HEAD'], cwd=worktree.path, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def _config_value(self, path: str, key: str) -> Optional[str]:
        result = self._run(['config', '--get', key], cwd=path, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def upstream_ref(self, worktree: Worktree, branch: str, remote_name: str) -> Optional[str]:
        """Get the upstream ref a branch tracks on a remote.

        Args:
            worktree: Worktree whose configuration to read
            branch: Local branch name
            remote_name: Remote the pull will use

        Returns:
            Remote ref such as "refs/heads/main", or None if the branch
            tracks nothing on that remote
        """
        if self._config_value(worktree.path, f'branch.{branch}.remote') != remote_name:
            return None
        return self._config_value(worktree.path, f'branch.{branch}.merge')

    def _head_or_none(self, path: str) -> Optional[str]:
        result = self._run(['rev-parse', '--verify', '--quiet', 'HEAD'], cwd=path, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def pull(self, worktree: Worktree, remote_name: str) -> PullResult:
        """Fast-forward the current branch from a remote.

        The branch's upstream is pulled when it lives on ``remote_name``;
        otherwise the remote branch of the same name.

        Args:
            worktree: Clean worktree to update
            remote_name: Remote to pull from

        Returns:
            PullResult telling whether HEAD moved

        Raises:
            GitError: If HEAD is detached or the pull fails
        """
        branch = self.current_branch(worktree)
        if branch is None:
            raise GitError(f"Cannot pull {worktree.path}: HEAD is detached")

        merge_ref = self.upstream_ref(worktree, branch, remote_name) or branch

        previous_head = self._head_or_none(worktree.path)
        logger.debug(f"Pulling {remote_name} {merge_ref} into {branch} in {worktree.path}")
        self._run(
            ['pull', '--ff-only', '--no-rebase', '--quiet', remote_name, merge_ref],
            cwd=worktree.path
        )
        current_head = self._head_or_none(worktree.path)

        if current_head == previous_head:
            status = PullStatus.ALREADY_UP_TO_DATE
        else:
            status = PullStatus.UPDATED
        return PullResult(status=status, previous_head=previous_head, current_head=current_head)

    def head(self, repo: Repository) -> str:
        """Resolve HEAD to a commit hash."""
        return self._run(['rev-parse', '--verify', 'HEAD^{commit}'], cwd=repo.path).stdout.strip()

    def commit_object(self, repo: Repository, sha: str) -> Commit:
        """Read a commit object."""
        output = self._run(['log', '-1', '--format=%H%x00%an%x00%s', sha, '--'], cwd=repo.path).stdout
        parts = output.rstrip('\n').split('\x00')
        if len(parts) != 3:
            raise GitError(f"Unexpected commit format for {sha} in {repo.path}: {output!r}")
        return Commit(sha=parts[0], author=parts[1], summary=parts[2])

    def changed_files(self, repo: Repository, old: Optional[str], new: str) -> List[str]:
        """List files changed between two commits as "<status>\\t<path>" lines.

        With no old commit every file in new is reported as added.
        """
        if old is None:
            output = self._run(['ls-tree', '-r', '--name-only', new], cwd=repo.path).stdout
            return [f"A\t{line}" for line in output.splitlines() if line]
        output = self._run(['diff', '--name-status', old, new], cwd=repo.path).stdout
        return [line for line in output.splitlines() if line]
