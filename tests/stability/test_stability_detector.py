"""
Tests for StabilityDetector and the StabilityState machine.

A fake clock advanced by the injected sleep keeps these tests free of real waiting.
"""

from itertools import count
from pathlib import Path
from typing import Iterable, Optional

import pytest

from scan_intake.core.domain_objects import StabilityConfiguration
from scan_intake.services.stability.stability_detector import (
    StabilityDetector,
    StabilityPhase,
    StabilityState,
    sample_file_size,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = 0

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps += 1
        self.now += seconds


def sizes_sampler(sizes: Iterable[Optional[int]]):
    """Yield the given sizes, repeating the last one forever."""
    sizes = list(sizes)

    async def sampler(path):
        if len(sizes) > 1:
            return sizes.pop(0)
        return sizes[0]

    return sampler


@pytest.fixture
def default_config() -> StabilityConfiguration:
    return StabilityConfiguration(
        interval_seconds=0.75, min_idle_seconds=2.0, max_attempts=15, consecutive_matches=2
    )


def make_detector(config, sampler, clock):
    return StabilityDetector(config, sampler=sampler, clock=clock, sleep=clock.sleep)


class TestStabilityState:
    """Pure transitions, no sampling loop."""

    def test_first_sample_moves_to_sampling(self, default_config):
        state = StabilityState(default_config)
        assert state.phase == StabilityPhase.UNSTABLE

        assert state.observe(100, now=0.0) == StabilityPhase.SAMPLING
        assert state.last_size == 100
        assert state.consecutive_matches == 0

    def test_size_change_resets_counter_and_idle_timer(self, default_config):
        state = StabilityState(default_config)
        state.observe(100, now=0.0)
        state.observe(100, now=0.75)
        assert state.consecutive_matches == 1

        state.observe(150, now=1.5)

        assert state.consecutive_matches == 0
        assert state.last_change_at == 1.5
        assert state.last_size == 150

    def test_matches_alone_are_not_enough_without_idle_time(self, default_config):
        state = StabilityState(default_config)
        state.observe(100, now=0.0)
        state.observe(100, now=0.1)
        state.observe(100, now=0.2)

        assert state.consecutive_matches == 2
        assert state.phase == StabilityPhase.SAMPLING

        assert state.observe(100, now=2.0) == StabilityPhase.STABLE

    def test_missing_file_is_terminal(self, default_config):
        state = StabilityState(default_config)
        state.observe(100, now=0.0)

        assert state.observe(None, now=0.75) == StabilityPhase.VANISHED
        assert state.is_terminal
        assert not state.is_stable
        # Terminal states ignore further samples
        assert state.observe(100, now=5.0) == StabilityPhase.VANISHED


@pytest.mark.asyncio
class TestStabilityDetector:
    async def test_constant_size_becomes_stable_within_bounded_cycles(self, default_config):
        clock = FakeClock()
        detector = make_detector(default_config, sizes_sampler([4096]), clock)

        state = await detector.wait_until_stable(Path("scan.pdf"))

        assert state.phase == StabilityPhase.STABLE
        # t=0 first sight, 0.75 and 1.5 match, 2.25 passes the 2 s idle requirement
        assert state.attempts == 4
        assert clock.now == pytest.approx(2.25)

    async def test_file_that_stops_growing_is_stable_after_idle_period(self, default_config):
        clock = FakeClock()
        detector = make_detector(default_config, sizes_sampler([10, 20, 30, 30]), clock)

        state = await detector.wait_until_stable(Path("scan.pdf"))

        assert state.is_stable
        assert state.last_size == 30
        assert state.attempts == 6

    async def test_always_changing_size_gives_up_at_max_attempts(self, default_config):
        clock = FakeClock()
        sizes = count(1)

        async def growing(path):
            return next(sizes)

        detector = make_detector(default_config, growing, clock)

        state = await detector.wait_until_stable(Path("scan.pdf"))

        assert state.phase == StabilityPhase.GAVE_UP
        assert state.attempts == default_config.max_attempts

    async def test_zero_size_file_is_never_stable(self, default_config):
        clock = FakeClock()
        detector = make_detector(default_config, sizes_sampler([0]), clock)

        state = await detector.wait_until_stable(Path("empty.pdf"))

        assert state.phase == StabilityPhase.GAVE_UP

    async def test_disappearing_file_reports_immediately(self, default_config):
        clock = FakeClock()
        detector = make_detector(default_config, sizes_sampler([100, None]), clock)

        state = await detector.wait_until_stable(Path("scan.pdf"))

        assert state.phase == StabilityPhase.VANISHED
        assert state.attempts == 2
        assert clock.sleeps == 1

    async def test_real_file_with_default_sampler(self, tmp_path, fast_stability):
        path = tmp_path / "scan.pdf"
        path.write_bytes(b"x" * 128)

        state = await StabilityDetector(fast_stability).wait_until_stable(path)

        assert state.is_stable
        assert state.last_size == 128

    async def test_sample_file_size_missing_file(self, tmp_path):
        assert await sample_file_size(tmp_path / "missing.pdf") is None
