"""Tests for GitClient and the classifier against real repositories."""

import pytest

from upgit.core.classifier import RepositoryClassifier
from upgit.core.types import RepositoryTarget, OutcomeKind
from upgit.utils.git import (
    GitClient,
    GitError,
    NotARepositoryError,
    BareRepositoryError,
    PullStatus,
)

from conftest import requires_git, run_git, commit_file, init_repo, clone_repo

pytestmark = requires_git


@pytest.fixture
def client():
    return GitClient(timeout=60)


@pytest.fixture
def classify(client):
    return RepositoryClassifier(client).classify


def head_of(repo) -> str:
    return run_git(repo, 'rev-parse', 'HEAD').strip()


class TestOpenRepository:
    """Tests for GitClient.open_repository."""

    def test_worktree_repository(self, client, upstream):
        repo = client.open_repository(str(upstream))

        assert not repo.is_bare
        assert repo.git_dir.endswith('.git')

    def test_empty_directory(self, client, container):
        (container / 'empty').mkdir()

        with pytest.raises(NotARepositoryError):
            client.open_repository(str(container / 'empty'))

    def test_missing_directory(self, client, tmp_path):
        with pytest.raises(NotARepositoryError):
            client.open_repository(str(tmp_path / 'missing'))

    def test_nested_directory_is_not_a_repository(self, client, upstream):
        (upstream / 'docs').mkdir()

        with pytest.raises(NotARepositoryError, match="inside the repository"):
            client.open_repository(str(upstream / 'docs'))

    def test_bare_repository(self, client, tmp_path, git_env):
        bare = init_repo(tmp_path / 'bare.git', bare=True)

        repo = client.open_repository(str(bare))

        assert repo.is_bare
        with pytest.raises(BareRepositoryError):
            client.open_worktree(repo)


class TestListRemotes:
    """Tests for GitClient.list_remotes."""

    def test_no_remotes(self, client, upstream):
        repo = client.open_repository(str(upstream))

        assert client.list_remotes(repo) == []

    def test_descriptions_start_with_the_name(self, client, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'remote', 'add', 'fork', 'https://example.com/fork.git')
        repo = client.open_repository(str(clone))

        remotes = client.list_remotes(repo)

        assert [r.name for r in remotes] == ['fork', 'origin']
        assert remotes[0].description.startswith('fork\thttps://example.com/fork.git')


class TestStatusAndPull:
    """Tests for status, pull and commit inspection."""

    def test_status_reports_untracked_files(self, client, upstream):
        (upstream / 'notes.txt').write_text('todo')
        worktree = client.open_worktree(client.open_repository(str(upstream)))

        status = client.status(worktree)

        assert not status.is_clean
        assert status.entries == ['?? notes.txt']

    def test_pull_fast_forwards(self, client, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        new_head = commit_file(upstream, 'app.py', 'print(1)\n', 'Add app')
        repo = client.open_repository(str(clone))

        pull = client.pull(client.open_worktree(repo), 'origin')

        assert pull.status == PullStatus.UPDATED
        assert pull.current_head == new_head
        assert client.changed_files(repo, pull.previous_head, pull.current_head) == ['A\tapp.py']

    def test_pull_with_detached_head_fails(self, client, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'checkout', '-q', '--detach')
        worktree = client.open_worktree(client.open_repository(str(clone)))

        with pytest.raises(GitError, match="detached"):
            client.pull(worktree, 'origin')

    def test_upstream_ref(self, client, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'branch', '-q', '--track', 'dev', 'origin/main')
        run_git(clone, 'branch', '-q', 'scratch')
        worktree = client.open_worktree(client.open_repository(str(clone)))

        assert client.upstream_ref(worktree, 'main', 'origin') == 'refs/heads/main'
        assert client.upstream_ref(worktree, 'dev', 'origin') == 'refs/heads/main'
        assert client.upstream_ref(worktree, 'main', 'fork') is None
        assert client.upstream_ref(worktree, 'scratch', 'origin') is None

    def test_pull_without_upstream_uses_same_branch_name(self, client, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'branch', '-q', '--unset-upstream')
        new_head = commit_file(upstream, 'app.py', 'print(1)\n')
        worktree = client.open_worktree(client.open_repository(str(clone)))

        pull = client.pull(worktree, 'origin')

        assert pull.status == PullStatus.UPDATED
        assert pull.current_head == new_head

    def test_commit_object(self, client, upstream):
        repo = client.open_repository(str(upstream))

        commit = client.commit_object(repo, client.head(repo))

        assert commit.summary == 'Initial commit'
        assert commit.author == 'Test Author'
        assert str(commit) == f"{commit.sha[:7]} Initial commit (Test Author)"

    def test_files_of_a_root_commit(self, client, upstream):
        repo = client.open_repository(str(upstream))

        assert client.changed_files(repo, None, client.head(repo)) == ['A\tREADME.md']


class TestClassifyRealRepositories:
    """End to end classification of on-disk repositories."""

    def test_plain_directory(self, classify, container, git_env):
        (container / 'empty').mkdir()

        result = classify(RepositoryTarget(path=str(container / 'empty')))

        assert result.kind == OutcomeKind.NOT_A_REPOSITORY

    def test_local_only_repository(self, classify, upstream):
        result = classify(RepositoryTarget(path=str(upstream)))

        assert result.kind == OutcomeKind.NO_REMOTES

    def test_clone_already_up_to_date(self, classify, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        before = head_of(clone)

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.ALREADY_UP_TO_DATE
        assert head_of(clone) == before

    def test_clone_behind_is_updated(self, client, classify, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        commit_file(upstream, 'one.txt', '1', 'First change')
        commit_file(upstream, 'two.txt', '2', 'Second change')
        new_head = head_of(upstream)

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.UPDATED
        lines = result.detail.splitlines()
        assert lines[0] == f"{new_head[:7]} Second change (Test Author)"
        assert sorted(lines[1:]) == ['A\tone.txt', 'A\ttwo.txt']
        assert head_of(clone) == new_head
        worktree = client.open_worktree(client.open_repository(str(clone)))
        assert client.status(worktree).is_clean

    def test_dirty_clone_is_not_pulled(self, classify, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        before = head_of(clone)
        commit_file(upstream, 'app.py', 'print(1)\n')
        (clone / 'README.md').write_text('local edit\n')

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.DIRTY
        assert 'README.md' in result.detail
        assert head_of(clone) == before
        assert (clone / 'README.md').read_text() == 'local edit\n'

    def test_pulls_from_origin_among_several_remotes(self, classify, upstream, container, tmp_path):
        fork = clone_repo(upstream, tmp_path / 'fork')
        commit_file(fork, 'fork.txt', 'fork only', 'Fork change')
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'remote', 'add', 'fork', str(fork))
        new_head = commit_file(upstream, 'origin.txt', 'origin', 'Origin change')

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.UPDATED
        assert head_of(clone) == new_head
        assert not (clone / 'fork.txt').exists()

    def test_several_remotes_without_origin(self, classify, upstream, container, tmp_path):
        fork = clone_repo(upstream, tmp_path / 'fork')
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'remote', 'rename', 'origin', 'upstream')
        run_git(clone, 'remote', 'add', 'fork', str(fork))
        before = head_of(clone)
        commit_file(upstream, 'app.py', 'print(1)\n')

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.AMBIGUOUS_ORIGIN
        assert head_of(clone) == before

    def test_single_renamed_remote_is_used(self, classify, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'remote', 'rename', 'origin', 'upstream')
        new_head = commit_file(upstream, 'app.py', 'print(1)\n')

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.UPDATED
        assert head_of(clone) == new_head

    def test_remote_name_with_a_dot_is_ambiguous(self, classify, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'remote', 'rename', 'origin', 'my.fork')
        before = head_of(clone)
        commit_file(upstream, 'app.py', 'print(1)\n')

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.AMBIGUOUS_ORIGIN
        assert head_of(clone) == before

    def test_branch_tracking_a_differently_named_branch(self, classify, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        run_git(clone, 'checkout', '-q', '-b', 'dev', '--track', 'origin/main')
        new_head = commit_file(upstream, 'app.py', 'print(1)\n', 'Add app')

        result = classify(RepositoryTarget(path=str(clone)))

        assert result.kind == OutcomeKind.UPDATED
        assert head_of(clone) == new_head
        assert run_git(clone, 'symbolic-ref', '--short', 'HEAD').strip() == 'dev'

    def test_bare_repository(self, classify, upstream, tmp_path):
        bare = tmp_path / 'mirror.git'
        run_git(tmp_path, 'clone', '-q', '--bare', str(upstream), bare.name)

        result = classify(RepositoryTarget(path=str(bare)))

        assert result.kind == OutcomeKind.BARE_REPOSITORY

    def test_diverged_clone_raises(self, classify, upstream, container):
        clone = clone_repo(upstream, container / 'app')
        commit_file(clone, 'local.txt', 'local', 'Local change')
        commit_file(upstream, 'remote.txt', 'remote', 'Remote change')

        with pytest.raises(GitError):
            classify(RepositoryTarget(path=str(clone)))
