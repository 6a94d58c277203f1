"""Progress tracking utilities."""

import sys
import logging
from typing import Optional, TextIO

from ..core.types import ClassificationResult, OutcomeKind

logger = logging.getLogger('upgit')

BAR_WIDTH = 40

_SKIPPED = {
    OutcomeKind.NOT_A_REPOSITORY,
    OutcomeKind.NO_REMOTES,
    OutcomeKind.AMBIGUOUS_ORIGIN,
    OutcomeKind.BARE_REPOSITORY,
    OutcomeKind.DIRTY,
}


class ProgressTracker:
    """Track and display progress while repositories are classified.

    Advances once per completed classification, whatever its outcome.
    """

    def __init__(self, total: int, enabled: bool = True, stream: Optional[TextIO] = None):
        """Initialize progress tracker.

        Args:
            total: Total number of repositories to process
            enabled: If False, only count and never draw
            stream: Where to draw the bar (default: stderr)
        """
        self.total = total
        self.enabled = enabled
        self.stream = stream or sys.stderr
        self.completed = 0
        self.updated_count = 0
        self.up_to_date_count = 0
        self.skipped_count = 0
        self.failed_count = 0

    def update(self, result: ClassificationResult) -> None:
        """Update progress with a new result."""
        self.completed += 1

        if result.kind == OutcomeKind.UPDATED:
            self.updated_count += 1
        elif result.kind == OutcomeKind.ALREADY_UP_TO_DATE:
            self.up_to_date_count += 1
        elif result.kind in _SKIPPED:
            self.skipped_count += 1
        else:
            self.failed_count += 1

        self.display()

    def display(self) -> None:
        """Display current progress."""
        if not self.enabled:
            return

        percentage = (self.completed / self.total * 100) if self.total > 0 else 0
        filled = int(BAR_WIDTH * self.completed / self.total) if self.total > 0 else 0
        bar = '█' * filled + '░' * (BAR_WIDTH - filled)

        status = (
            f"\r[{bar}] {percentage:.0f}% ({self.completed}/{self.total}) "
            f"↓{self.updated_count} ={self.up_to_date_count} "
            f"⊘{self.skipped_count} ✗{self.failed_count}"
        )

        # stderr keeps the bar out of the report on stdout
        self.stream.write(status)
        self.stream.flush()

    def finish(self) -> None:
        """Finish progress tracking."""
        if self.enabled:
            self.stream.write("\n")
            self.stream.flush()

        logger.info(f"Processed {self.completed}/{self.total} repositories: "
                    f"Updated: {self.updated_count}, Up to date: {self.up_to_date_count}, "
                    f"Skipped: {self.skipped_count}, Failed: {self.failed_count}")
