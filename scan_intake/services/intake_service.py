import asyncio
import logging
from typing import Callable, Optional

from scan_intake.core.cancellation import CancellationContext
from scan_intake.core.domain_objects import IntakeConfiguration
from scan_intake.models import IntakeStatisticsSnapshot
from scan_intake.services.intake.intake_dispatcher import IntakeDispatcher
from scan_intake.services.watcher.watch_loop import WatchLoop

FatalHandler = Callable[[BaseException], None]


class IntakeService:
    """
    Owns the lifecycle of the watch loop and the worker pool.

    run() returns once the watch loop has stopped (shutdown requested or a
    systemic error) and the pool has drained within its grace period.
    """

    def __init__(
        self,
        config: IntakeConfiguration,
        dispatcher: IntakeDispatcher,
        watch_loop: WatchLoop,
        cancellation: CancellationContext,
        on_fatal: Optional[FatalHandler] = None,
    ):
        self.config = config
        self.dispatcher = dispatcher
        self.watch_loop = watch_loop
        self.cancellation = cancellation
        self._on_fatal = on_fatal
        self.fatal_error: Optional[BaseException] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_healthy(self) -> bool:
        return self.fatal_error is None

    async def run(self) -> None:
        if self._running:
            logging.warning("Intake service is already running")
            return

        self._running = True
        statistics = self.dispatcher.statistics

        try:
            await asyncio.to_thread(self.config.directories.ensure_exist)
            await self.dispatcher.start()
            statistics.watching = True
            await self.watch_loop.run()
        except asyncio.CancelledError:
            logging.info("Intake service was cancelled")
            raise
        except Exception as e:
            self.fatal_error = e
            statistics.record_error(str(e))
            logging.error(f"Intake stopped on systemic error: {e}", exc_info=True)
            self.cancellation.cancel(f"systemic error: {e}")
        finally:
            statistics.watching = False
            await self.dispatcher.shutdown()
            self._running = False
            logging.info("Intake service stopped")

        if self.fatal_error is not None and self._on_fatal is not None:
            self._on_fatal(self.fatal_error)

    def stop(self, reason: str = "shutdown requested") -> None:
        self.cancellation.cancel(reason)

    def snapshot(self) -> IntakeStatisticsSnapshot:
        return self.dispatcher.snapshot()
