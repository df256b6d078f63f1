"""
Event Dispatcher

Runs named background jobs ("code-agent/run", "sandbox/recreate") as asyncio
tasks that outlive the HTTP request that triggered them.

Key Features:
- Handlers registered per event name
- send() returns immediately; the job runs in its own task
- Optional per-event retries with exponential backoff
- Concurrency limit across all running jobs
- Periodic cleanup of finished job records
- Graceful shutdown that cancels running jobs before pools close

Usage:
    dispatcher = EventDispatcher.get_instance()
    dispatcher.register("sandbox/recreate", run_recreation_job, retries=1)

    job = await dispatcher.send("sandbox/recreate", {"artifact_id": "..."})
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import uuid4

from vibe_server.config.settings import (
    get_cleanup_interval,
    get_event_retries,
    get_job_result_ttl,
    get_max_concurrent_jobs,
)

logger = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], Awaitable[Any]]


class DispatcherBusyError(RuntimeError):
    """Raised by send() when the concurrent job limit is reached."""


class JobStatus(str, Enum):
    """Background job execution status."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES = (JobStatus.QUEUED, JobStatus.RUNNING)


@dataclass
class JobInfo:
    """Information about one dispatched event."""

    job_id: str
    event: str
    payload: Dict[str, Any]
    status: JobStatus
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    attempts: int = 0
    error: Optional[str] = None
    result: Optional[Any] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False)


class EventDispatcher:
    """
    In-process event bus with background execution.

    Jobs share nothing but the payload they are sent with.
    """

    # Singleton instance
    _instance: Optional['EventDispatcher'] = None

    def __init__(
        self,
        max_concurrent: Optional[int] = None,
        cleanup_interval: Optional[int] = None,
        result_ttl: Optional[int] = None,
        retry_delay: float = 1.0,
    ):
        self.handlers: Dict[str, EventHandler] = {}
        self.retries: Dict[str, int] = {}
        self.jobs: Dict[str, JobInfo] = {}
        self.job_lock = asyncio.Lock()

        self.max_concurrent = max_concurrent or get_max_concurrent_jobs()
        self.cleanup_interval = cleanup_interval or get_cleanup_interval()
        self.result_ttl = result_ttl if result_ttl is not None else get_job_result_ttl()
        self.retry_delay = retry_delay

        self.cleanup_task: Optional[asyncio.Task] = None

    @classmethod
    def get_instance(cls) -> 'EventDispatcher':
        """Get singleton instance of EventDispatcher."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton (useful for testing)."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Registration and dispatch
    # ------------------------------------------------------------------

    def register(self, event: str, handler: EventHandler, retries: Optional[int] = None) -> None:
        """
        Register the handler for an event name.

        Args:
            event: Event name, e.g. "code-agent/run"
            handler: Coroutine function receiving the payload
            retries: Extra attempts after a failure (default from config.yaml)
        """
        self.handlers[event] = handler
        self.retries[event] = retries if retries is not None else get_event_retries(event)
        logger.debug(f"[EventDispatcher] Registered handler for {event} (retries={self.retries[event]})")

    async def send(self, event: str, payload: Dict[str, Any]) -> JobInfo:
        """
        Dispatch an event to its handler as a background task.

        Returns:
            JobInfo tracking the background job

        Raises:
            KeyError: If no handler is registered for the event
            DispatcherBusyError: If the concurrent job limit is reached
        """
        handler = self.handlers.get(event)
        if handler is None:
            raise KeyError(f"No handler registered for event '{event}'")

        async with self.job_lock:
            running_count = sum(1 for j in self.jobs.values() if j.status in ACTIVE_STATUSES)
            if running_count >= self.max_concurrent:
                raise DispatcherBusyError(
                    f"Max concurrent jobs reached ({self.max_concurrent}). "
                    f"Currently running: {running_count}"
                )

            job = JobInfo(
                job_id=str(uuid4()),
                event=event,
                payload=dict(payload),
                status=JobStatus.QUEUED,
                created_at=datetime.now(),
            )
            self.jobs[job.job_id] = job
            job.task = asyncio.create_task(self._run_job(job, handler))

        logger.info(
            f"[EventDispatcher] Dispatched {event} as job {job.job_id} "
            f"(running: {running_count + 1}/{self.max_concurrent})"
        )
        return job

    async def _run_job(self, job: JobInfo, handler: EventHandler) -> None:
        """Run a job with retries and record its final status."""
        max_attempts = 1 + self.retries.get(job.event, 0)
        delay = self.retry_delay

        job.status = JobStatus.RUNNING
        job.started_at = datetime.now()

        while True:
            job.attempts += 1
            try:
                job.result = await handler(job.payload)
            except asyncio.CancelledError:
                job.status = JobStatus.CANCELLED
                job.completed_at = datetime.now()
                logger.info(f"[EventDispatcher] Job {job.job_id} ({job.event}) cancelled")
                raise
            except Exception as e:
                if job.attempts < max_attempts:
                    logger.warning(
                        f"[EventDispatcher] Job {job.job_id} ({job.event}) attempt "
                        f"{job.attempts}/{max_attempts} failed: {e}. Retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    delay *= 2
                    continue

                job.status = JobStatus.FAILED
                job.error = str(e)
                job.completed_at = datetime.now()
                logger.error(
                    f"[EventDispatcher] Job {job.job_id} ({job.event}) failed: {e}",
                    exc_info=True,
                )
                return

            job.status = JobStatus.COMPLETED
            job.completed_at = datetime.now()
            logger.info(
                f"[EventDispatcher] Job {job.job_id} ({job.event}) completed "
                f"after {job.attempts} attempt(s)"
            )
            return

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def get_job(self, job_id: str) -> Optional[JobInfo]:
        async with self.job_lock:
            return self.jobs.get(job_id)

    async def wait_for_all(self, timeout: Optional[float] = None) -> None:
        """Wait until every running job has finished."""
        async with self.job_lock:
            tasks = [j.task for j in self.jobs.values() if j.task and not j.task.done()]
        if tasks:
            await asyncio.wait(tasks, timeout=timeout)

    async def get_stats(self) -> Dict[str, Any]:
        async with self.job_lock:
            by_status: Dict[str, int] = {}
            for job in self.jobs.values():
                by_status[job.status.value] = by_status.get(job.status.value, 0) + 1
        return {
            "total_jobs": sum(by_status.values()),
            "by_status": by_status,
            "max_concurrent": self.max_concurrent,
        }

    # ------------------------------------------------------------------
    # Cleanup and shutdown
    # ------------------------------------------------------------------

    async def start_cleanup_task(self):
        """Start periodic cleanup background task."""
        if self.cleanup_task is None or self.cleanup_task.done():
            self.cleanup_task = asyncio.create_task(self._cleanup_loop())
            logger.info(
                f"[EventDispatcher] Cleanup task started "
                f"(max_concurrent={self.max_concurrent}, result_ttl={self.result_ttl}s)"
            )

    async def stop_cleanup_task(self):
        """Stop periodic cleanup background task."""
        if self.cleanup_task and not self.cleanup_task.done():
            self.cleanup_task.cancel()
            try:
                await self.cleanup_task
            except asyncio.CancelledError:
                pass
            logger.info("[EventDispatcher] Stopped cleanup task")

    async def _cleanup_loop(self):
        """Periodic cleanup loop for finished jobs."""
        while True:
            try:
                await asyncio.sleep(self.cleanup_interval)
                await self._cleanup_finished_jobs()
            except asyncio.CancelledError:
                logger.info("[EventDispatcher] Cleanup loop cancelled")
                break
            except Exception as e:
                logger.error(f"[EventDispatcher] Error in cleanup loop: {e}")

    async def _cleanup_finished_jobs(self) -> int:
        """Remove finished job records older than the result TTL."""
        threshold = datetime.now() - timedelta(seconds=self.result_ttl)

        async with self.job_lock:
            to_remove = [
                job_id
                for job_id, job in self.jobs.items()
                if job.status not in ACTIVE_STATUSES
                and job.completed_at is not None
                and job.completed_at < threshold
            ]
            for job_id in to_remove:
                del self.jobs[job_id]

        if to_remove:
            logger.info(f"[EventDispatcher] Cleanup: removed {len(to_remove)} finished jobs")
        return len(to_remove)

    async def shutdown(self, timeout: float = 25.0):
        """
        Gracefully shut down: cancel running jobs and wait for them.

        Args:
            timeout: Maximum time to wait for tasks to complete (seconds)
        """
        logger.info("[EventDispatcher] Starting graceful shutdown...")
        await self.stop_cleanup_task()

        async with self.job_lock:
            running = [j for j in self.jobs.values() if j.task and not j.task.done()]

        if not running:
            logger.info("[EventDispatcher] No running jobs to cancel")
            return

        logger.info(f"[EventDispatcher] Cancelling {len(running)} running jobs")
        for job in running:
            job.task.cancel()

        done, pending = await asyncio.wait([j.task for j in running], timeout=timeout)
        if pending:
            logger.warning(
                f"[EventDispatcher] {len(pending)} jobs did not stop within {timeout}s"
            )
        logger.info("[EventDispatcher] Shutdown complete")
