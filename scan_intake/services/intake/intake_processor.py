"""
Intake Processor - runs one detected file through the whole pipeline.

stability -> claim into processing -> barcode extraction -> finished | failed
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import aiofiles.os

from scan_intake.core.domain_objects import IntakeConfiguration
from scan_intake.models import FailureReason, IntakeResult
from scan_intake.services.barcode.code_extractor import CodeExtractor
from scan_intake.services.stability.stability_detector import StabilityDetector
from scan_intake.utils.file_operations import (
    file_extension,
    move_to_unique_path,
    sanitize_code,
    strip_extension,
)

from .failure_routing import route_to_failed
from .job_models import IntakeJob


class IntakeProcessor:
    """Pure orchestrator for a single intake job. Holds no per-file state between calls."""

    def __init__(
        self,
        config: IntakeConfiguration,
        stability_detector: StabilityDetector,
        code_extractor: CodeExtractor,
    ):
        self.config = config
        self.directories = config.directories
        self.stability_detector = stability_detector
        self.code_extractor = code_extractor

    async def process(self, job: IntakeJob) -> IntakeResult:
        """
        Process one file to a terminal outcome.

        Every per-file error ends here as a relocation to the failed directory.
        Cancellation is not caught: an interrupted job may leave its file in
        the processing directory.
        """
        source = job.source_path
        claimed: Optional[Path] = None
        started = time.monotonic()

        logging.info(f"Detected new file: {source.name}")

        try:
            stability = await self.stability_detector.wait_until_stable(source)
            if not stability.is_stable:
                result = await self._fail(source, FailureReason.UNSTABLE, source)
            elif not await aiofiles.os.path.exists(source):
                logging.warning(f"Source disappeared before move: {source}")
                result = IntakeResult.vanished(str(source))
            else:
                claimed = await self._claim(source)
                job.mark_claimed()
                result = await self._identify_and_file(source, claimed)

        except Exception as e:
            logging.error(f"Error processing {source.name}: {e}", exc_info=True)
            current = claimed if claimed is not None else source
            result = await self._fail(
                current, FailureReason.EXCEPTION, source, error_message=str(e)
            )

        result.processing_time_seconds = time.monotonic() - started
        return result

    async def _claim(self, source: Path) -> Path:
        """Move the file out of incoming. Whoever wins this move owns the file."""
        claimed = await asyncio.to_thread(
            move_to_unique_path,
            source,
            self.directories.processing,
            strip_extension(source.name),
            file_extension(source),
        )
        logging.debug(f"Claimed {source.name} as {claimed}")
        return claimed

    async def _identify_and_file(self, source: Path, claimed: Path) -> IntakeResult:
        t0 = time.monotonic()
        raw_code = await asyncio.to_thread(self.code_extractor.extract_first_code, claimed)
        elapsed_ms = (time.monotonic() - t0) * 1000
        logging.info(f"Barcode extraction took {elapsed_ms:.0f} ms for {claimed.name}")

        if raw_code is None:
            logging.warning(f"No barcode detected in {claimed.name}")
            return await self._fail(claimed, FailureReason.NO_BARCODE, source)

        code = sanitize_code(raw_code)
        if not code:
            logging.warning(f"Empty barcode after sanitization: {raw_code!r} in {claimed.name}")
            return await self._fail(claimed, FailureReason.EMPTY_BARCODE, source)

        target = await asyncio.to_thread(
            move_to_unique_path,
            claimed,
            self.directories.finished,
            code,
            file_extension(claimed),
        )
        logging.info(f"Moved to finished: {source.name} -> {target.name}")
        return IntakeResult.finished(str(source), code, str(target))

    async def _fail(
        self,
        path: Path,
        reason: FailureReason,
        source: Path,
        error_message: Optional[str] = None,
    ) -> IntakeResult:
        return await route_to_failed(
            path,
            self.directories.failed,
            reason,
            source_path=source,
            error_message=error_message,
        )
