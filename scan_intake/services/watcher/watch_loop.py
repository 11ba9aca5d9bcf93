import logging
import time
from pathlib import Path
from typing import AsyncIterator, Callable

import aiofiles.os
from watchfiles import Change, awatch

from scan_intake.core.cancellation import CancellationContext
from scan_intake.core.domain_objects import IntakeConfiguration
from scan_intake.core.exceptions import WatchRegistrationError
from scan_intake.services.intake.intake_dispatcher import IntakeDispatcher
from scan_intake.utils.file_operations import is_candidate_file

WatchFactory = Callable[..., AsyncIterator[set[tuple[Change, str]]]]


class WatchLoop:
    """
    Turns creation events in the incoming directory into dispatcher submissions.

    Polls the change notifications with a bounded timeout so shutdown is seen
    even when nothing arrives, and sweeps the directory periodically to pick
    up files whose events were missed (startup backlog, dropped events).
    """

    def __init__(
        self,
        config: IntakeConfiguration,
        dispatcher: IntakeDispatcher,
        cancellation: CancellationContext,
        watch: WatchFactory = awatch,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.incoming = config.directories.incoming
        self.dispatcher = dispatcher
        self.cancellation = cancellation
        self._watch = watch
        self._clock = clock

    async def run(self) -> None:
        """
        Run until the cancellation context is set.

        Raises:
            WatchRegistrationError: the incoming directory vanished or the
                notification backend could not watch it.
        """
        await self._ensure_watchable()
        logging.info(f"Watching directory: {self.incoming}")

        await self.reconcile()
        last_sweep = self._clock()

        try:
            async for changes in self._watch(
                self.incoming,
                watch_filter=None,
                stop_event=self.cancellation.event,
                rust_timeout=self.config.poll_timeout_ms,
                yield_on_timeout=True,
                debounce=self.config.poll_timeout_ms,
                recursive=False,
            ):
                await self._ensure_watchable()

                for change, raw_path in sorted(changes, key=lambda c: c[1]):
                    if change != Change.added:
                        continue
                    await self.handle_created(Path(raw_path))

                if self._sweep_due(last_sweep):
                    await self.reconcile()
                    last_sweep = self._clock()

                if self.cancellation.is_cancelled():
                    break

        except WatchRegistrationError:
            raise
        except (OSError, RuntimeError) as e:
            raise WatchRegistrationError(str(self.incoming), str(e)) from e

        logging.info("Watch loop stopped")

    async def handle_created(self, path: Path) -> bool:
        """Filter one creation event and submit it. Returns True if a job was queued."""
        if path.absolute().parent.resolve() != self.incoming.resolve():
            logging.debug(f"Ignoring event outside incoming: {path}")
            return False
        path = self.incoming / path.name

        if await aiofiles.os.path.isdir(path):
            return False

        if not is_candidate_file(path, self.config.accepted_extensions):
            logging.debug(f"Skipping non-candidate file: {path.name}")
            return False

        return await self.dispatcher.submit(path)

    async def reconcile(self) -> int:
        """Submit every candidate already sitting in incoming. Returns the number queued."""
        try:
            names = await aiofiles.os.listdir(self.incoming)
        except FileNotFoundError as e:
            raise WatchRegistrationError(str(self.incoming), "directory no longer exists") from e

        queued = 0
        for name in sorted(names):
            path = self.incoming / name
            if not await aiofiles.os.path.isfile(path):
                continue
            if await self.handle_created(path):
                queued += 1

        if queued:
            logging.info(f"Reconciliation sweep queued {queued} file(s) from {self.incoming}")
        return queued

    def _sweep_due(self, last_sweep: float) -> bool:
        interval = self.config.reconcile_interval_seconds
        return interval > 0 and self._clock() - last_sweep >= interval

    async def _ensure_watchable(self) -> None:
        if not await aiofiles.os.path.isdir(self.incoming):
            raise WatchRegistrationError(str(self.incoming), "directory no longer exists")
