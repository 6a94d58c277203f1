"""Render an aggregate report as a categorized summary."""

from dataclasses import dataclass
from typing import Dict, List

from .types import AggregateReport, ClassificationResult, OutcomeKind

RULE_WIDTH = 60

# How much of each section is shown
PATHS = 'paths'
COUNT = 'count'
DETAILS = 'details'


@dataclass(frozen=True)
class Section:
    label: str
    style: str


# Every OutcomeKind needs an entry; order is the order of the report
SECTIONS: Dict[OutcomeKind, Section] = {
    OutcomeKind.NOT_A_REPOSITORY: Section("Not a repository", PATHS),
    OutcomeKind.NO_REMOTES: Section("Local-only repositories with no remotes", COUNT),
    OutcomeKind.BARE_REPOSITORY: Section("Bare repositories without a worktree", COUNT),
    OutcomeKind.AMBIGUOUS_ORIGIN: Section("Multiple remotes but no clear origin, not updated", PATHS),
    OutcomeKind.DIRTY: Section("Dirty, not updated", DETAILS),
    OutcomeKind.ALREADY_UP_TO_DATE: Section("Up to date", COUNT),
    OutcomeKind.UPDATED: Section("Updated", DETAILS),
    OutcomeKind.FAILED: Section("Failed", DETAILS),
    OutcomeKind.UNCLASSIFIED: Section(
        "UNKNOWN OUTCOME - this should never happen and is probably a logic error in upgit",
        DETAILS
    ),
}


class Reporter:
    """Render grouped results, one section per non-empty outcome kind."""

    def render(self, report: AggregateReport) -> str:
        """Render a report.

        Args:
            report: Aggregate report

        Returns:
            Summary text
        """
        # Kinds missing from SECTIONS would otherwise vanish from the summary
        missing = [kind for kind in report.kinds() if kind not in SECTIONS]
        if missing:
            raise KeyError(f"No report section for outcome kinds: {missing}")

        lines = [
            "=" * RULE_WIDTH,
            f"SUMMARY: {report.total} {'repository' if report.total == 1 else 'repositories'}",
            "=" * RULE_WIDTH,
        ]

        for kind, section in SECTIONS.items():
            results = report.get(kind)
            if not results:
                continue
            if kind == OutcomeKind.UNCLASSIFIED:
                lines.extend(self._anomaly(section, results))
            else:
                lines.extend(self._section(section, results))

        lines.append("=" * RULE_WIDTH)
        return '\n'.join(lines)

    def print(self, report: AggregateReport) -> None:
        """Print a report to stdout."""
        print("\n" + self.render(report))

    def _section(self, section: Section, results: List[ClassificationResult]) -> List[str]:
        if section.style == COUNT:
            return [f"{section.label} ({len(results)})"]

        lines = [f"{section.label} ({len(results)}):"]
        for result in results:
            lines.append(f"  - {result.path}")
            if section.style == DETAILS and result.detail:
                lines.extend(f"      {line}" for line in result.detail.splitlines())
        return lines

    def _anomaly(self, section: Section, results: List[ClassificationResult]) -> List[str]:
        return (
            ["!" * RULE_WIDTH]
            + self._section(section, results)
            + ["Please investigate and report these repositories.", "!" * RULE_WIDTH]
        )
