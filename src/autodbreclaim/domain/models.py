"""
Domain models for capacity reclaim runs.

Pure data structures with no infrastructure dependencies:
- DatabaseRecord: one row of the administrative catalog snapshot
- CapacityFact: maximum configured size of a database
- Decision: threshold comparison for one database
- DatabaseOutcome / ReclaimReport: results of a run
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

BYTES_PER_MB = 1_048_576

# Sizes are compared and reported at this many decimals
SIZE_PRECISION = 2


class ReclaimAction(Enum):
    """What happened to a single database during a run."""

    REMEDIATED = "remediated"
    NO_ACTION = "no_action"
    WOULD_REMEDIATE = "would_remediate"  # dry run
    SKIPPED = "skipped"
    FAILED = "failed"


def format_mb(value: float) -> str:
    """Render a megabyte figure with at most two decimals, no trailing zeros."""
    text = f"{value:.{SIZE_PRECISION}f}".rstrip("0").rstrip(".")
    return text or "0"


@dataclass(frozen=True)
class DatabaseRecord:
    """Database name and its latest recorded storage usage."""

    name: str
    current_size_mb: float


@dataclass(frozen=True)
class CapacityFact:
    """Maximum configured size of a database."""

    max_size_mb: float

    @classmethod
    def from_bytes(cls, max_size_bytes: int | float) -> CapacityFact:
        return cls(max_size_mb=float(max_size_bytes) / BYTES_PER_MB)


@dataclass(frozen=True)
class Decision:
    """Result of comparing current size against the threshold-adjusted maximum."""

    database: str
    current_size_mb: float
    target_size_mb: float

    @property
    def perform_action(self) -> bool:
        # Compare at display precision: 100 * 0.29 is 28.999999999999996
        return (round(self.current_size_mb, SIZE_PRECISION)
                > round(self.target_size_mb, SIZE_PRECISION))

    @classmethod
    def evaluate(
        cls, record: DatabaseRecord, capacity: CapacityFact, threshold: float
    ) -> Decision:
        """
        Build the decision for one database.

        Args:
            record: Catalog row for the database
            capacity: Maximum size fetched from the database
            threshold: Fraction of capacity above which remediation triggers
        """
        return cls(
            database=record.name,
            current_size_mb=record.current_size_mb,
            target_size_mb=capacity.max_size_mb * threshold,
        )

    def describe(self) -> str:
        current = format_mb(self.current_size_mb)
        target = format_mb(self.target_size_mb)
        if self.perform_action:
            return f"Perform action on {self.database} ({current} MB > {target} MB)"
        return f"Do not perform action on {self.database} ({current} MB <= {target} MB)"


@dataclass
class DatabaseOutcome:
    """Outcome of processing a single database."""

    database: str
    action: ReclaimAction
    decision: Decision | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.action is ReclaimAction.FAILED

    def describe(self) -> str:
        """One human-readable report line for this database."""
        if self.action is ReclaimAction.FAILED:
            return f"Failed {self.database}: {self.error}"
        if self.action is ReclaimAction.SKIPPED:
            return f"Skipped {self.database}: {self.error}"
        line = self.decision.describe() if self.decision else self.database
        if self.action is ReclaimAction.WOULD_REMEDIATE:
            return f"[DRY RUN] {line}"
        return line


@dataclass
class ReclaimReport:
    """Aggregate result of one reclaim run against one server."""

    server: str
    threshold: float
    dry_run: bool = False
    outcomes: list[DatabaseOutcome] = field(default_factory=list)

    def count(self, action: ReclaimAction) -> int:
        return sum(1 for o in self.outcomes if o.action is action)

    @property
    def remediated(self) -> int:
        return self.count(ReclaimAction.REMEDIATED)

    @property
    def failed(self) -> int:
        return self.count(ReclaimAction.FAILED)

    @property
    def success(self) -> bool:
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def lines(self) -> list[str]:
        return [o.describe() for o in self.outcomes]
