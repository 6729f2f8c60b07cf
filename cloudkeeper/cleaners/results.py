"""
Result types shared by the lifecycle cleaners.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MutationStatus(Enum):
    """Status of one mutating operation, or of the decision not to run it."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    RETAINED = "retained"
    DRY_RUN = "dry_run"


@dataclass
class MutationResult:
    """
    Result of a single mutation attempt.

    Attributes:
        resource_id: Image, snapshot or instance ID
        action: Mutating action (e.g. 'deregister', 'delete-snapshot')
        region: AWS region
        status: Result status
        error_message: Error message if failed
        detail: Extra information (new image ID, state change, reason)
        timestamp: When the operation was attempted
        response: Raw API response, not serialized
    """

    resource_id: str
    action: str
    region: str
    status: MutationStatus
    error_message: Optional[str] = None
    detail: Optional[str] = None
    timestamp: datetime = field(default_factory=_utcnow)
    response: Optional[Dict[str, Any]] = field(default=None, repr=False)

    @property
    def succeeded(self) -> bool:
        """True for a real success or its dry-run stand-in."""
        return self.status in (MutationStatus.SUCCESS, MutationStatus.DRY_RUN)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "resource_id": self.resource_id,
            "action": self.action,
            "region": self.region,
            "status": self.status.value,
            "error_message": self.error_message,
            "detail": self.detail,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class MutationSummary:
    """
    Summary of a batch run.

    Attributes:
        total: Number of results recorded
        succeeded: Mutations that completed
        failed: Mutations that returned an error
        skipped: Resources without the sentinel tag or otherwise ineligible
        retained: Tagged resources younger than the threshold
        dry_run: Mutations replaced by a logged no-op
        results: Individual results
        start_time: When the run started
        end_time: When the run completed
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    retained: int = 0
    dry_run: int = 0
    results: List[MutationResult] = field(default_factory=list)
    start_time: datetime = field(default_factory=_utcnow)
    end_time: Optional[datetime] = None

    def add_result(self, result: MutationResult) -> None:
        """Add a result and update counts."""
        self.results.append(result)
        self.total += 1

        if result.status == MutationStatus.SUCCESS:
            self.succeeded += 1
        elif result.status == MutationStatus.FAILED:
            self.failed += 1
        elif result.status == MutationStatus.SKIPPED:
            self.skipped += 1
        elif result.status == MutationStatus.RETAINED:
            self.retained += 1
        elif result.status == MutationStatus.DRY_RUN:
            self.dry_run += 1

    @property
    def mutation_count(self) -> int:
        """Mutations issued, or that would have been issued in dry-run."""
        return self.succeeded + self.failed + self.dry_run

    def for_action(self, action: str) -> List[MutationResult]:
        """Results recorded for one action, in arrival order."""
        return [r for r in self.results if r.action == action]

    def complete(self) -> None:
        """Mark the operation as complete."""
        self.end_time = _utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "retained": self.retained,
            "dry_run": self.dry_run,
            "results": [r.to_dict() for r in self.results],
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
        }
