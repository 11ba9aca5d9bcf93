from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class FailureReason(str, Enum):
    """
    Reason tag appended to a file name when it is routed to the failed directory.

    failed/<stem>_<reason>[_N].pdf
    """

    UNSTABLE = "unstable"  # File never stopped growing
    EMPTY_BARCODE = "empty_barcode"  # Code found, but nothing left after sanitizing
    NO_BARCODE = "no_barcode"  # No code on any page or orientation
    EXCEPTION = "exception"  # Unexpected error during processing
    QUEUE_FULL = "queue_full"  # Worker pool saturated at submission time


class IntakeOutcome(str, Enum):
    FINISHED = "Finished"  # Renamed into the finished directory
    FAILED = "Failed"  # Routed to the failed directory
    VANISHED = "Vanished"  # Disappeared before the task could claim it


class IntakeResult(BaseModel):
    """Terminal outcome of one intake task."""

    source_path: str
    outcome: IntakeOutcome
    code: Optional[str] = None
    reason: Optional[FailureReason] = None
    final_path: Optional[str] = None
    error_message: Optional[str] = None
    processing_time_seconds: float = 0.0
    completed_at: datetime = Field(default_factory=datetime.now)

    @classmethod
    def finished(cls, source_path: str, code: str, final_path: str) -> "IntakeResult":
        return cls(
            source_path=source_path,
            outcome=IntakeOutcome.FINISHED,
            code=code,
            final_path=final_path,
        )

    @classmethod
    def failed(
        cls,
        source_path: str,
        reason: FailureReason,
        final_path: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> "IntakeResult":
        return cls(
            source_path=source_path,
            outcome=IntakeOutcome.FAILED,
            reason=reason,
            final_path=final_path,
            error_message=error_message,
        )

    @classmethod
    def vanished(cls, source_path: str) -> "IntakeResult":
        return cls(source_path=source_path, outcome=IntakeOutcome.VANISHED)

    @property
    def success(self) -> bool:
        return self.outcome == IntakeOutcome.FINISHED


class IntakeStatisticsSnapshot(BaseModel):
    """Read-only view of the intake counters for the status API."""

    total_submitted: int = 0
    total_finished: int = 0
    total_failed: int = 0
    total_vanished: int = 0
    total_duplicates_ignored: int = 0
    failures_by_reason: dict[str, int] = Field(default_factory=dict)
    queue_size: int = 0
    queue_capacity: int = 0
    in_flight: int = 0
    worker_count: int = 0
    started_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    watching: bool = False
    last_error: Optional[str] = None
