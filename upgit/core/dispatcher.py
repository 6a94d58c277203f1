"""Task dispatcher for classifying many repositories in parallel."""

import queue
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, List, Sequence
from concurrent.futures import ThreadPoolExecutor

from .types import RepositoryTarget, ClassificationResult, OutcomeKind

logger = logging.getLogger('upgit')

# Each repository holds a few file descriptors open while it is classified,
# so keep well below typical open file limits.
DEFAULT_MAX_CONCURRENT = 20

# How often a worker blocked on a full channel checks whether the run was aborted
_PUT_POLL_SECONDS = 0.1


class FatalRepositoryError(Exception):
    """An unexpected error while classifying a repository aborted the run."""

    def __init__(self, target: RepositoryTarget, error: BaseException):
        super().__init__(f"Unexpected error in {target.path}: {error}")
        self.target = target
        self.error = error


@dataclass
class _TaskFailure:
    target: RepositoryTarget
    error: Exception


class TaskDispatcher:
    """Run one classification task per target under a concurrency ceiling.

    Every task pushes its result into a bounded completion channel that
    holds at most ``min(len(targets), max_concurrent)`` items, and the
    pool never runs more tasks than that at once. ``run`` is the single
    consumer of the channel.
    """

    def __init__(
        self,
        classify: Callable[[RepositoryTarget], ClassificationResult],
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        keep_going: bool = False
    ):
        """Initialize dispatcher.

        Args:
            classify: Function classifying a single target
            max_concurrent: Maximum number of concurrent classifications
            keep_going: Classify unexpected errors as FAILED instead of aborting

        Raises:
            ValueError: If max_concurrent is less than 1
        """
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {max_concurrent}")
        self.classify = classify
        self.max_concurrent = max_concurrent
        self.keep_going = keep_going

    def run(self, targets: Sequence[RepositoryTarget]) -> Iterator[ClassificationResult]:
        """Classify targets, yielding results in completion order.

        Yields exactly ``len(targets)`` results and then stops.

        Args:
            targets: Targets to classify

        Yields:
            ClassificationResult per target

        Raises:
            FatalRepositoryError: On the first unexpected error, unless keep_going
        """
        targets: List[RepositoryTarget] = list(targets)
        if not targets:
            return

        capacity = min(len(targets), self.max_concurrent)
        channel: queue.Queue = queue.Queue(maxsize=capacity)
        aborted = threading.Event()

        logger.info(f"Dispatching {len(targets)} repositories with {capacity} workers")

        executor = ThreadPoolExecutor(max_workers=capacity, thread_name_prefix='upgit')
        try:
            for target in targets:
                executor.submit(self._process_target, target, channel, aborted)

            for _ in range(len(targets)):
                item = channel.get()
                if isinstance(item, _TaskFailure):
                    raise FatalRepositoryError(item.target, item.error) from item.error
                yield item
        finally:
            aborted.set()
            executor.shutdown(wait=False, cancel_futures=True)

    def _process_target(
        self,
        target: RepositoryTarget,
        channel: queue.Queue,
        aborted: threading.Event
    ) -> None:
        """Classify one target and push the outcome into the channel."""
        if aborted.is_set():
            return

        try:
            item = self.classify(target)
        except Exception as e:
            if self.keep_going:
                logger.error(f"Unexpected error processing {target.path}: {e}")
                item = ClassificationResult(target=target, kind=OutcomeKind.FAILED, detail=str(e))
            else:
                logger.error(f"Unexpected error processing {target.path}: {e}", exc_info=True)
                item = _TaskFailure(target=target, error=e)

        while True:
            try:
                channel.put(item, timeout=_PUT_POLL_SECONDS)
                return
            except queue.Full:
                if aborted.is_set():
                    return
