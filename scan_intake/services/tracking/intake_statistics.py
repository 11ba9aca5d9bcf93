"""
Intake statistics - cumulative counters for the status API.

Only the dispatcher writes here, from results the workers return, so the
counters are touched from the event loop alone.
"""

from collections import Counter
from datetime import datetime
from typing import Optional

from scan_intake.models import IntakeOutcome, IntakeResult, IntakeStatisticsSnapshot


class IntakeStatistics:
    def __init__(self) -> None:
        self.started_at: Optional[datetime] = None
        self.last_activity_at: Optional[datetime] = None
        self.total_submitted = 0
        self.total_duplicates_ignored = 0
        self._outcomes: Counter[IntakeOutcome] = Counter()
        self._failures_by_reason: Counter[str] = Counter()
        self.watching = False
        self.last_error: Optional[str] = None

    def mark_started(self) -> None:
        self.started_at = datetime.now()

    def record_submitted(self) -> None:
        self.total_submitted += 1
        self.last_activity_at = datetime.now()

    def record_duplicate(self) -> None:
        self.total_duplicates_ignored += 1

    def record_result(self, result: IntakeResult) -> None:
        self._outcomes[result.outcome] += 1
        if result.outcome == IntakeOutcome.FAILED and result.reason is not None:
            self._failures_by_reason[result.reason.value] += 1
        self.last_activity_at = result.completed_at

    def record_error(self, message: str) -> None:
        self.last_error = message

    def count(self, outcome: IntakeOutcome) -> int:
        return self._outcomes[outcome]

    def failures_for(self, reason: str) -> int:
        return self._failures_by_reason[reason]

    def snapshot(
        self,
        queue_size: int = 0,
        queue_capacity: int = 0,
        in_flight: int = 0,
        worker_count: int = 0,
    ) -> IntakeStatisticsSnapshot:
        return IntakeStatisticsSnapshot(
            total_submitted=self.total_submitted,
            total_finished=self._outcomes[IntakeOutcome.FINISHED],
            total_failed=self._outcomes[IntakeOutcome.FAILED],
            total_vanished=self._outcomes[IntakeOutcome.VANISHED],
            total_duplicates_ignored=self.total_duplicates_ignored,
            failures_by_reason=dict(self._failures_by_reason),
            queue_size=queue_size,
            queue_capacity=queue_capacity,
            in_flight=in_flight,
            worker_count=worker_count,
            started_at=self.started_at,
            last_activity_at=self.last_activity_at,
            watching=self.watching,
            last_error=self.last_error,
        )
