"""Core types shared by the classifier, dispatcher, aggregator and reporter."""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from enum import Enum


class OutcomeKind(Enum):
    """Terminal classification of a single repository."""
    NOT_A_REPOSITORY = "not-a-repository"
    NO_REMOTES = "no-remotes"
    AMBIGUOUS_ORIGIN = "ambiguous-origin"
    BARE_REPOSITORY = "bare-repository"
    DIRTY = "dirty"
    ALREADY_UP_TO_DATE = "already-up-to-date"
    UPDATED = "updated"
    FAILED = "failed"
    UNCLASSIFIED = "unclassified"  # Reaching this is a logic error


@dataclass(frozen=True)
class RepositoryTarget:
    """A directory believed to hold a repository."""
    path: str

    @property
    def name(self) -> str:
        """Get the directory name of the target."""
        return os.path.basename(os.path.normpath(self.path))


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one target."""
    target: RepositoryTarget
    kind: OutcomeKind
    detail: Optional[str] = None

    @property
    def path(self) -> str:
        return self.target.path

    @property
    def anomalous(self) -> bool:
        """Check if the result needs investigation."""
        return self.kind in (OutcomeKind.FAILED, OutcomeKind.UNCLASSIFIED)


@dataclass
class AggregateReport:
    """Results grouped by outcome kind, in completion order.

    Results are only ever appended; the report is built by a single
    consumer and read once, in full, by the reporter.
    """
    groups: Dict[OutcomeKind, List[ClassificationResult]] = field(default_factory=dict)

    def add(self, result: ClassificationResult) -> None:
        """Append a result to the group for its kind."""
        self.groups.setdefault(result.kind, []).append(result)

    def get(self, kind: OutcomeKind) -> List[ClassificationResult]:
        """Get the results for a kind (empty if none)."""
        return list(self.groups.get(kind, []))

    def kinds(self) -> List[OutcomeKind]:
        """Get the kinds with at least one result, in enum order."""
        return [kind for kind in OutcomeKind if self.groups.get(kind)]

    def counts(self) -> Dict[OutcomeKind, int]:
        return {kind: len(self.groups[kind]) for kind in self.kinds()}

    @property
    def total(self) -> int:
        """Total number of results across all kinds."""
        return sum(len(results) for results in self.groups.values())

    @property
    def has_anomalies(self) -> bool:
        """Check if any result failed or could not be classified."""
        return any(result.anomalous for results in self.groups.values() for result in results)

    def __len__(self) -> int:
        return self.total
