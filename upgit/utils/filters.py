"""Repository filtering utilities."""

import fnmatch
import logging
from typing import List, Optional

from ..core.types import RepositoryTarget

logger = logging.getLogger('upgit')


class RepoFilter:
    """Filter for selecting repository targets by directory name."""

    def __init__(
        self,
        patterns: Optional[List[str]] = None,
        excludes: Optional[List[str]] = None
    ):
        """Initialize repository filter.

        Args:
            patterns: Glob patterns a directory name must match (any of them)
            excludes: Glob patterns that drop a directory name
        """
        self.patterns = patterns or []
        self.excludes = excludes or []

    def filter(self, targets: List[RepositoryTarget]) -> List[RepositoryTarget]:
        """Filter targets based on criteria.

        Args:
            targets: Discovered targets

        Returns:
            Filtered list of targets
        """
        filtered = [target for target in targets if self._should_include(target)]
        logger.info(f"Filtered {len(targets)} repositories to {len(filtered)}")
        return filtered

    def _should_include(self, target: RepositoryTarget) -> bool:
        name = target.name

        if self.patterns and not any(fnmatch.fnmatch(name, p) for p in self.patterns):
            return False

        if any(fnmatch.fnmatch(name, p) for p in self.excludes):
            return False

        return True

    @property
    def has_filters(self) -> bool:
        """Check if any filters are active."""
        return bool(self.patterns or self.excludes)
