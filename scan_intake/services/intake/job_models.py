"""
Job Models for the intake pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional


@dataclass
class IntakeJob:
    """One accepted candidate file waiting for (or owned by) a worker."""

    source_path: Path
    added_to_queue_at: datetime = field(default_factory=datetime.now)
    on_claimed: Optional[Callable[["IntakeJob"], None]] = field(default=None, repr=False)

    @property
    def file_name(self) -> str:
        return self.source_path.name

    @property
    def queue_wait_seconds(self) -> float:
        return (datetime.now() - self.added_to_queue_at).total_seconds()

    def mark_claimed(self) -> None:
        """Called once the file has left incoming; its name there is free again."""
        if self.on_claimed is not None:
            self.on_claimed(self)

    def __str__(self) -> str:
        return f"IntakeJob(path={self.source_path}, queued={self.added_to_queue_at:%H:%M:%S})"
