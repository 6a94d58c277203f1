"""Result aggregator: group classification results by outcome kind."""

import logging
from typing import Callable, Iterable, Optional

from .types import AggregateReport, ClassificationResult

logger = logging.getLogger('upgit')


class IncompleteRunError(Exception):
    """The result stream ended before every target reported back."""


class ResultAggregator:
    """Consume a completion stream into an AggregateReport.

    The number of expected results, not the end of the stream, decides
    when aggregation is complete.
    """

    def __init__(self, expected: int):
        """Initialize aggregator.

        Args:
            expected: Number of results to wait for (one per target)
        """
        self.expected = expected
        self.completed = 0
        self.report = AggregateReport()

    def consume(
        self,
        stream: Iterable[ClassificationResult],
        on_result: Optional[Callable[[ClassificationResult], None]] = None
    ) -> AggregateReport:
        """Read results until the expected count has been received.

        Args:
            stream: Results in completion order
            on_result: Optional callback invoked once per result (e.g. progress)

        Returns:
            The aggregate report

        Raises:
            IncompleteRunError: If the stream ends early
        """
        if self.completed >= self.expected:
            return self.report

        for result in stream:
            self.report.add(result)
            self.completed += 1
            if on_result:
                on_result(result)
            if self.completed >= self.expected:
                break

        if self.completed < self.expected:
            raise IncompleteRunError(
                f"Result stream ended after {self.completed} of {self.expected} repositories"
            )

        logger.info(f"Aggregated {self.completed} results: " + ', '.join(
            f"{kind.value}={count}" for kind, count in self.report.counts().items()
        ))
        return self.report
