"""Discover repository targets inside container directories."""

import os
import logging
from typing import List, Optional, Sequence

from .types import RepositoryTarget
from ..utils.filters import RepoFilter

logger = logging.getLogger('upgit')


def discover_targets(
    containers: Sequence[str],
    repo_filter: Optional[RepoFilter] = None
) -> List[RepositoryTarget]:
    """List the immediate sub-directories of each container.

    Plain files are ignored; symlinks to directories are followed. A
    directory reachable from two containers is only listed once.

    Args:
        containers: Directories holding repositories
        repo_filter: Optional filter applied to the discovered targets

    Returns:
        Targets, sorted by name within each container

    Raises:
        ValueError: If a container is missing, not a directory or unreadable
    """
    targets = []
    seen = set()

    for container in containers:
        if not os.path.isdir(container):
            raise ValueError(f"Repository container '{container}' does not exist or is not a directory")

        try:
            names = sorted(os.listdir(container))
        except OSError as e:
            raise ValueError(f"Cannot read repository container '{container}': {e}") from e

        for name in names:
            path = os.path.join(container, name)
            if not os.path.isdir(path):
                continue

            real_path = os.path.realpath(path)
            if real_path in seen:
                logger.debug(f"Skipping duplicate {path}")
                continue
            seen.add(real_path)
            targets.append(RepositoryTarget(path=path))

    logger.info(f"Discovered {len(targets)} directories in {len(containers)} containers")

    if repo_filter and repo_filter.has_filters:
        targets = repo_filter.filter(targets)

    return targets
