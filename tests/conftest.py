"""
Pytest configuration and shared fixtures.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from scan_intake.core.domain_objects import (
    IntakeConfiguration,
    IntakeDirectories,
    StabilityConfiguration,
)
from scan_intake.dependencies import reset_singletons


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before each test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def directories(tmp_path) -> IntakeDirectories:
    dirs = IntakeDirectories.from_paths(
        incoming=tmp_path / "incoming",
        processing=tmp_path / "processing",
        finished=tmp_path / "finished",
        failed=tmp_path / "failed",
    )
    dirs.ensure_exist()
    return dirs


@pytest.fixture
def fast_stability() -> StabilityConfiguration:
    """Stable after three equal samples, 10 ms apart."""
    return StabilityConfiguration(
        interval_seconds=0.01,
        min_idle_seconds=0.0,
        max_attempts=10,
        consecutive_matches=2,
    )


@pytest.fixture
def intake_config(directories, fast_stability) -> IntakeConfiguration:
    return IntakeConfiguration(
        directories=directories,
        stability=fast_stability,
        poll_timeout_ms=50,
        reconcile_interval_seconds=0,
        worker_count=2,
        queue_capacity=3,
        shutdown_grace_seconds=2.0,
    )


def drop_file(directory: Path, name: str, content: bytes = b"%PDF-1.4 scanned page") -> Path:
    path = directory / name
    path.write_bytes(content)
    return path


@pytest.fixture
def make_file():
    return drop_file


@dataclass(frozen=True)
class FakePage:
    """Stand-in for a rendered page image; rotate() mimics Pillow's signature."""

    document: str
    number: int
    angle: int = 0

    def rotate(self, angle: int, expand: bool = False) -> "FakePage":
        return FakePage(self.document, self.number, (self.angle + angle) % 360)


class FakeRenderer:
    def __init__(self, page_count: int = 1, error: Optional[Exception] = None):
        self.page_count = page_count
        self.error = error
        self.rendered: List[Tuple[Path, int]] = []

    def render(self, document: Path, dpi: int):
        if self.error is not None:
            raise self.error
        self.rendered.append((document, dpi))
        return (FakePage(document.name, n) for n in range(1, self.page_count + 1))


class FakeIdentifier:
    """Returns a code for (page number, angle) pairs listed in codes, None otherwise."""

    def __init__(self, codes: Optional[Dict[Tuple[int, int], str]] = None):
        self.codes = codes or {}
        self.calls: List[Tuple[int, int]] = []
        self._lock = threading.Lock()

    def identify(self, image: FakePage) -> Optional[str]:
        with self._lock:
            self.calls.append((image.number, image.angle))
        return self.codes.get((image.number, image.angle))


class BlockingExtractor:
    """Code extractor that holds its worker thread until released."""

    def __init__(self, code: Optional[str] = "CODE"):
        self.code = code
        self.release = threading.Event()
        self.started = threading.Semaphore(0)

    def extract_first_code(self, document: Path) -> Optional[str]:
        self.started.release()
        self.release.wait(timeout=10)
        return self.code


@pytest.fixture
def fake_renderer_cls():
    return FakeRenderer


@pytest.fixture
def fake_identifier_cls():
    return FakeIdentifier


@pytest.fixture
def blocking_extractor():
    extractor = BlockingExtractor()
    yield extractor
    extractor.release.set()
