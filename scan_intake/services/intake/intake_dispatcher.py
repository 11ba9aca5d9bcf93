import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

from scan_intake.core.domain_objects import IntakeConfiguration
from scan_intake.models import FailureReason, IntakeStatisticsSnapshot
from scan_intake.services.tracking.intake_statistics import IntakeStatistics

from .failure_routing import route_to_failed
from .intake_processor import IntakeProcessor
from .job_models import IntakeJob


class IntakeDispatcher:
    """
    Fixed pool of workers draining a bounded job queue.

    Submission never waits for a free slot: when the queue is full the file
    goes straight to the failed directory (queue_full) so the watch loop
    never stalls on a saturated pool.
    """

    def __init__(
        self,
        config: IntakeConfiguration,
        processor: IntakeProcessor,
        statistics: Optional[IntakeStatistics] = None,
    ):
        self.config = config
        self.processor = processor
        self.statistics = statistics or IntakeStatistics()

        self._queue: Optional[asyncio.Queue[IntakeJob]] = None
        self._workers: List[asyncio.Task] = []
        # Paths still sitting in incoming that a queued or running job will pick up
        self._claimed: Dict[Path, IntakeJob] = {}
        self._active = 0
        self._accepting = False

        logging.info(
            f"IntakeDispatcher initialized: {config.worker_count} workers, "
            f"queue capacity {config.queue_capacity}"
        )

    @property
    def is_running(self) -> bool:
        return bool(self._workers)

    @property
    def is_accepting(self) -> bool:
        return self._accepting

    @property
    def queue_size(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    @property
    def in_flight(self) -> int:
        return self._active

    async def start(self) -> None:
        if self._workers:
            logging.warning("Intake workers are already running")
            return

        self._queue = asyncio.Queue(maxsize=self.config.queue_capacity)
        for i in range(self.config.worker_count):
            worker_task = asyncio.create_task(
                self._worker_loop(f"worker-{i + 1}"), name=f"intake-worker-{i + 1}"
            )
            self._workers.append(worker_task)

        self._accepting = True
        self.statistics.mark_started()
        logging.info(f"Started {len(self._workers)} intake workers")

    async def submit(self, path: Path) -> bool:
        """
        Hand a candidate file to the pool. Returns True if a job was queued.

        Paths whose job has not yet moved the file out of incoming are ignored,
        so repeated events for the same file never create two jobs. Once the
        file is claimed into processing, a new file dropped under the same name
        is accepted.
        """
        if not self._accepting or self._queue is None:
            logging.warning(f"Dispatcher not accepting work, leaving {path.name} in place")
            return False

        if path in self._claimed:
            logging.debug(f"Ignoring duplicate submission for {path.name}")
            self.statistics.record_duplicate()
            return False

        job = IntakeJob(source_path=path, on_claimed=self._release)
        try:
            self._queue.put_nowait(job)
        except asyncio.QueueFull:
            logging.error(
                f"Rejected {path.name} (system busy, {self._queue.qsize()} jobs queued). "
                f"Increase WATCH_QUEUE_CAPACITY or WATCH_WORKERS."
            )
            self._claimed[path] = job
            try:
                result = await route_to_failed(
                    path, self.config.directories.failed, FailureReason.QUEUE_FULL
                )
            finally:
                self._release(job)
            self.statistics.record_result(result)
            return False

        self._claimed[path] = job
        self.statistics.record_submitted()
        logging.debug(f"Queued {job} (queue size {self._queue.qsize()})")
        return True

    async def shutdown(self, grace_seconds: Optional[float] = None) -> bool:
        """
        Stop accepting work, let queued and running jobs finish within the grace
        period, then cancel whatever is left. Returns True if everything drained.

        Jobs cancelled mid-way may leave their file in the processing directory;
        jobs never started leave theirs in incoming.
        """
        self._accepting = False
        if not self._workers:
            return True

        grace = self.config.shutdown_grace_seconds if grace_seconds is None else grace_seconds
        drained = True
        logging.info(
            f"Draining intake workers ({self.queue_size} queued, {self.in_flight} running, "
            f"grace {grace:.1f}s)"
        )

        try:
            await asyncio.wait_for(self._queue.join(), timeout=grace)
        except asyncio.TimeoutError:
            drained = False
            logging.warning(
                f"Forcing worker shutdown: {self.queue_size} queued and "
                f"{self.in_flight} running job(s) interrupted"
            )

        for worker in self._workers:
            if not worker.done():
                worker.cancel()

        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers.clear()
        self._claimed.clear()
        logging.info("Intake worker shutdown complete")
        return drained

    def snapshot(self) -> IntakeStatisticsSnapshot:
        return self.statistics.snapshot(
            queue_size=self.queue_size,
            queue_capacity=self.config.queue_capacity,
            in_flight=self.in_flight,
            worker_count=len(self._workers),
        )

    async def _worker_loop(self, worker_id: str) -> None:
        while True:
            job = await self._queue.get()
            self._active += 1
            try:
                logging.debug(f"[{worker_id}] Picked up {job} after {job.queue_wait_seconds:.1f}s")
                result = await self.processor.process(job)
                self.statistics.record_result(result)
            except asyncio.CancelledError:
                logging.warning(f"[{worker_id}] Interrupted while processing {job.file_name}")
                raise
            except Exception as e:
                logging.error(f"[{worker_id}] Unhandled error for {job.file_name}: {e}", exc_info=True)
            finally:
                self._active -= 1
                self._release(job)
                self._queue.task_done()

    def _release(self, job: IntakeJob) -> None:
        # A newer job may already own the same name in incoming
        if self._claimed.get(job.source_path) is job:
            del self._claimed[job.source_path]
