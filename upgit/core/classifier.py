"""Repository classifier: reduce one repository to a single outcome."""

import logging
from typing import Optional

from .types import RepositoryTarget, ClassificationResult, OutcomeKind
from ..utils.git import (
    GitClient,
    GitError,
    NotARepositoryError,
    BareRepositoryError,
    PullStatus,
    recover_remote_name,
)

logger = logging.getLogger('upgit')

DEFAULT_REMOTE_NAME = 'origin'


class RepositoryClassifier:
    """Classify a repository and pull it when it is safe to do so.

    The steps run in order and stop at the first one that decides the
    outcome. The worktree status is always read before pulling; a dirty
    worktree is never pulled into.

    Expected conditions (not a repository, no remotes, ambiguous origin,
    bare, dirty, up to date) become outcome kinds. Any other ``GitError``
    is raised to the caller.
    """

    def __init__(self, git_client: GitClient, remote_name: str = DEFAULT_REMOTE_NAME):
        """Initialize classifier.

        Args:
            git_client: Git collaborator used for all repository access
            remote_name: Preferred remote to pull from
        """
        self.git_client = git_client
        self.remote_name = remote_name

    def classify(self, target: RepositoryTarget) -> ClassificationResult:
        """Classify a single target.

        Args:
            target: Repository target

        Returns:
            ClassificationResult for the target

        Raises:
            GitError: On any unexpected git failure
        """
        def result(kind: OutcomeKind, detail: Optional[str] = None) -> ClassificationResult:
            logger.debug(f"{target.path}: {kind.value}")
            return ClassificationResult(target=target, kind=kind, detail=detail)

        try:
            repo = self.git_client.open_repository(target.path)
        except NotARepositoryError as e:
            return result(OutcomeKind.NOT_A_REPOSITORY, str(e))

        remotes = self.git_client.list_remotes(repo)
        if not remotes:
            return result(OutcomeKind.NO_REMOTES)

        remote_name = self.resolve_remote_name(remotes)
        if remote_name is None:
            names = ', '.join(r.name for r in remotes)
            return result(
                OutcomeKind.AMBIGUOUS_ORIGIN,
                f"No remote named \"{self.remote_name}\" among: {names}"
            )

        try:
            worktree = self.git_client.open_worktree(repo)
        except BareRepositoryError:
            return result(OutcomeKind.BARE_REPOSITORY)

        status = self.git_client.status(worktree)
        if not status.is_clean:
            logger.info(f"Repository is dirty, not pulling: {target.path}")
            return result(OutcomeKind.DIRTY, self._dirty_report(worktree, status.entries))

        logger.info(f"Pulling {remote_name} into {target.path}")
        pull = self.git_client.pull(worktree, remote_name)

        if pull.status == PullStatus.ALREADY_UP_TO_DATE:
            return result(OutcomeKind.ALREADY_UP_TO_DATE)

        if pull.status == PullStatus.UPDATED:
            try:
                head = self.git_client.head(repo)
                commit = self.git_client.commit_object(repo, head)
                changed = self.git_client.changed_files(repo, pull.previous_head, head)
            except GitError as e:
                logger.error(f"Pulled {target.path} but could not read the new HEAD: {e}")
                return result(OutcomeKind.UNCLASSIFIED, f"Pulled, but could not read the new HEAD: {e}")
            return result(OutcomeKind.UPDATED, '\n'.join([str(commit)] + changed))

        logger.error(f"Unhandled pull status {pull.status!r} for {target.path}")
        return result(OutcomeKind.UNCLASSIFIED, f"Unhandled pull status: {pull.status!r}")

    def resolve_remote_name(self, remotes) -> Optional[str]:
        """Pick the remote to pull from.

        The preferred remote wins when it exists. Otherwise the names
        recovered from the remote descriptions, restricted to names of
        existing remotes, must agree on exactly one candidate.

        Args:
            remotes: Non-empty list of remotes

        Returns:
            Remote name, or None if there is no unambiguous candidate
        """
        for remote in remotes:
            if remote.name == self.remote_name:
                return remote.name

        # A recovered name only counts if a remote really has that name;
        # "my.fork" recovers to "my", which git cannot pull from.
        names = {r.name for r in remotes}
        candidates = {recover_remote_name(r.description) for r in remotes} & names
        if len(candidates) != 1:
            return None

        name = candidates.pop()
        logger.info(f"No \"{self.remote_name}\" remote, using \"{name}\"")
        return name

    def _dirty_report(self, worktree, entries) -> str:
        """Build the detail listing for a dirty worktree."""
        lines = list(entries)
        try:
            lines.extend(f"submodule: {path}" for path in self.git_client.submodules(worktree))
        except GitError as e:
            logger.warning(f"Could not list submodules of {worktree.path}: {e}")
        return '\n'.join(lines)
