"""
Intake Configuration Objects
Immutable configuration values built once at startup and passed to every component.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class IntakeDirectories:
    """The four directories a file moves through. Never overlapping."""

    incoming: Path
    processing: Path
    finished: Path
    failed: Path

    @classmethod
    def from_paths(
        cls,
        incoming: Union[str, Path],
        processing: Union[str, Path],
        finished: Union[str, Path],
        failed: Union[str, Path],
    ) -> "IntakeDirectories":
        directories = cls(
            incoming=Path(incoming).absolute(),
            processing=Path(processing).absolute(),
            finished=Path(finished).absolute(),
            failed=Path(failed).absolute(),
        )
        directories.validate()
        return directories

    def __iter__(self) -> Iterator[tuple[str, Path]]:
        yield "incoming", self.incoming
        yield "processing", self.processing
        yield "finished", self.finished
        yield "failed", self.failed

    def validate(self) -> None:
        seen: dict[Path, str] = {}
        for role, path in self:
            resolved = path.resolve()
            if resolved in seen:
                raise ConfigurationError(
                    f"Directory for '{role}' resolves to the same location as "
                    f"'{seen[resolved]}': {resolved}"
                )
            seen[resolved] = role

    def ensure_exist(self) -> None:
        for _, path in self:
            path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class StabilityConfiguration:
    interval_seconds: float = 0.75
    min_idle_seconds: float = 2.0
    max_attempts: int = 15
    consecutive_matches: int = 2


@dataclass(frozen=True)
class IntakeConfiguration:
    """Configuration object to eliminate long parameter lists."""

    directories: IntakeDirectories
    stability: StabilityConfiguration = StabilityConfiguration()
    accepted_extensions: tuple[str, ...] = (".pdf",)
    poll_timeout_ms: int = 1000
    reconcile_interval_seconds: float = 30
    worker_count: int = 2
    queue_capacity: int = 200
    shutdown_grace_seconds: float = 10.0
    render_dpi: int = 200
