import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

import aiofiles.os

from scan_intake.core.domain_objects import StabilityConfiguration

SizeSampler = Callable[[Path], Awaitable[Optional[int]]]
Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class StabilityPhase(str, Enum):
    """
    Unstable -> Sampling -> Stable | GaveUp | Vanished
    """

    UNSTABLE = "Unstable"  # Nothing sampled yet
    SAMPLING = "Sampling"  # Size observed, not settled yet
    STABLE = "Stable"  # Writer is done
    GAVE_UP = "GaveUp"  # Max attempts used without settling
    VANISHED = "Vanished"  # File disappeared while sampling


TERMINAL_PHASES = {StabilityPhase.STABLE, StabilityPhase.GAVE_UP, StabilityPhase.VANISHED}


@dataclass
class StabilityState:
    """Per-file sampling state. Owned by the task checking that file, never shared."""

    config: StabilityConfiguration
    phase: StabilityPhase = StabilityPhase.UNSTABLE
    last_size: int = -1
    consecutive_matches: int = 0
    last_change_at: Optional[float] = None
    attempts: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    @property
    def is_stable(self) -> bool:
        return self.phase == StabilityPhase.STABLE

    def idle_seconds(self, now: float) -> float:
        if self.last_change_at is None:
            return 0.0
        return now - self.last_change_at

    def observe(self, size: Optional[int], now: float) -> StabilityPhase:
        """
        Feed one size sample taken at `now`. size=None means the file is gone.

        A sample equal to the previous positive size counts as a match; any
        other sample (including zero) resets the match counter and the idle
        timer.
        """
        if self.is_terminal:
            return self.phase

        self.attempts += 1

        if size is None:
            self.phase = StabilityPhase.VANISHED
            return self.phase

        if size == self.last_size and size > 0:
            self.consecutive_matches += 1
            if (
                self.consecutive_matches >= self.config.consecutive_matches
                and self.idle_seconds(now) >= self.config.min_idle_seconds
            ):
                self.phase = StabilityPhase.STABLE
                return self.phase
        else:
            self.consecutive_matches = 0
            self.last_change_at = now
            self.last_size = size

        if self.attempts >= self.config.max_attempts:
            self.phase = StabilityPhase.GAVE_UP
        else:
            self.phase = StabilityPhase.SAMPLING
        return self.phase


async def sample_file_size(path: Path) -> Optional[int]:
    try:
        stat_result = await aiofiles.os.stat(path)
    except FileNotFoundError:
        return None
    return stat_result.st_size


class StabilityDetector:
    """Decides whether an external writer has finished writing a file."""

    def __init__(
        self,
        config: StabilityConfiguration,
        sampler: SizeSampler = sample_file_size,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.config = config
        self._sampler = sampler
        self._clock = clock
        self._sleep = sleep

    async def wait_until_stable(self, path: Path) -> StabilityState:
        """Sample until the state machine reaches Stable, GaveUp or Vanished."""
        state = StabilityState(self.config)

        while True:
            size = await self._sampler(path)
            state.observe(size, self._clock())

            if state.is_terminal:
                break

            await self._sleep(self.config.interval_seconds)

        if state.is_stable:
            logging.debug(
                f"File is stable: {path.name} ({state.last_size} bytes, "
                f"{state.attempts} samples)"
            )
        elif state.phase == StabilityPhase.VANISHED:
            logging.warning(f"File disappeared while waiting for stability: {path.name}")
        else:
            logging.warning(
                f"File never became stable after {state.attempts} samples: {path.name} "
                f"(last size {state.last_size} bytes)"
            )
        return state
