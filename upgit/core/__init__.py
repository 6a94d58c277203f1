"""Core package for upgit."""

from .types import (
    OutcomeKind,
    RepositoryTarget,
    ClassificationResult,
    AggregateReport,
)

from .classifier import RepositoryClassifier
from .dispatcher import TaskDispatcher, FatalRepositoryError
from .aggregator import ResultAggregator, IncompleteRunError
from .reporter import Reporter
from .logger import setup_logging

__all__ = [
    # Types
    'OutcomeKind',
    'RepositoryTarget',
    'ClassificationResult',
    'AggregateReport',
    # Pipeline
    'RepositoryClassifier',
    'TaskDispatcher',
    'FatalRepositoryError',
    'ResultAggregator',
    'IncompleteRunError',
    'Reporter',
    'setup_logging',
]
