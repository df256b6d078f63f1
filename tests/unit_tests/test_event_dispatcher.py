"""Tests for the in-process EventDispatcher."""

import asyncio
from datetime import datetime, timedelta

import pytest

from vibe_server.services.event_dispatcher import DispatcherBusyError, EventDispatcher, JobStatus


@pytest.fixture
def dispatcher():
    return EventDispatcher(max_concurrent=2, cleanup_interval=60, result_ttl=10, retry_delay=0.0)


class TestEventDispatcher:
    """Tests for EventDispatcher."""

    @pytest.mark.asyncio
    async def test_send_runs_handler_in_background(self, dispatcher):
        received = []

        async def handler(payload):
            received.append(payload)
            return {"ok": True}

        dispatcher.register("code-agent/run", handler, retries=0)
        job = await dispatcher.send("code-agent/run", {"content": "hi"})
        await dispatcher.wait_for_all(timeout=1)

        assert received == [{"content": "hi"}]
        assert job.status == JobStatus.COMPLETED
        assert job.result == {"ok": True}
        assert job.attempts == 1

    @pytest.mark.asyncio
    async def test_unknown_event_raises(self, dispatcher):
        with pytest.raises(KeyError):
            await dispatcher.send("nope", {})

    @pytest.mark.asyncio
    async def test_failed_job_is_recorded(self, dispatcher):
        async def handler(payload):
            raise ValueError("broken")

        dispatcher.register("sandbox/recreate", handler, retries=0)
        job = await dispatcher.send("sandbox/recreate", {"artifact_id": "a"})
        await dispatcher.wait_for_all(timeout=1)

        assert job.status == JobStatus.FAILED
        assert job.error == "broken"

    @pytest.mark.asyncio
    async def test_retries_until_success(self, dispatcher):
        attempts = []

        async def handler(payload):
            attempts.append(1)
            if len(attempts) < 3:
                raise RuntimeError("transient")
            return "done"

        dispatcher.register("sandbox/recreate", handler, retries=2)
        job = await dispatcher.send("sandbox/recreate", {})
        await dispatcher.wait_for_all(timeout=1)

        assert job.status == JobStatus.COMPLETED
        assert job.attempts == 3

    @pytest.mark.asyncio
    async def test_concurrency_limit(self, dispatcher):
        release = asyncio.Event()

        async def handler(payload):
            await release.wait()

        dispatcher.register("code-agent/run", handler, retries=0)
        await dispatcher.send("code-agent/run", {})
        await dispatcher.send("code-agent/run", {})

        with pytest.raises(DispatcherBusyError):
            await dispatcher.send("code-agent/run", {})

        release.set()
        await dispatcher.wait_for_all(timeout=1)

    @pytest.mark.asyncio
    async def test_cleanup_removes_old_finished_jobs(self, dispatcher):
        async def handler(payload):
            return None

        dispatcher.register("code-agent/run", handler, retries=0)
        job = await dispatcher.send("code-agent/run", {})
        await dispatcher.wait_for_all(timeout=1)
        job.completed_at = datetime.now() - timedelta(seconds=60)

        removed = await dispatcher._cleanup_finished_jobs()

        assert removed == 1
        assert await dispatcher.get_job(job.job_id) is None

    @pytest.mark.asyncio
    async def test_shutdown_cancels_running_jobs(self, dispatcher):
        async def handler(payload):
            await asyncio.sleep(60)

        dispatcher.register("code-agent/run", handler, retries=0)
        job = await dispatcher.send("code-agent/run", {})
        await asyncio.sleep(0)

        await dispatcher.shutdown(timeout=1)

        assert job.status == JobStatus.CANCELLED
        stats = await dispatcher.get_stats()
        assert stats["by_status"] == {"cancelled": 1}
