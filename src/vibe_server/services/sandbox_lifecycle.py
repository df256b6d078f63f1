"""
Sandbox Lifecycle Manager

Keeps an artifact's preview sandbox reachable. Sandboxes stop after a period
of inactivity; when that happens the artifact's files are replayed into a
fresh sandbox by a background RecreationJob.

Status is derived on every call, never stored:
- RECREATING while an unexpired recreation claim is held
- READY(url) when the stored URL answers the health probe
- FAILED otherwise

Only one recreation per artifact can be in flight. The claim is a single
conditional UPDATE (see database.artifacts.claim_recreation), so concurrent
validity checks dispatch at most one "sandbox/recreate" event. Claims carry
a lease so a job that died without clearing the flag is eventually taken over.
A job only completes or releases the claim it was dispatched with, so a job
whose lease was taken over cannot clear the newer job's flag.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from vibe_agent.config import CoreConfig
from vibe_agent.core import SandboxHandle, check_sandbox_health
from vibe_server.config.settings import get_probe_timeout, get_recreation_lease
from vibe_server.database.artifacts import (
    claim_recreation,
    complete_recreation,
    get_artifact,
    release_recreation,
)
from vibe_server.models.events import SANDBOX_RECREATE, SandboxRecreatePayload
from vibe_server.models.sandbox import SandboxStatus
from vibe_server.services.errors import ArtifactNotFoundError, RecreationError
from vibe_server.services.event_dispatcher import EventDispatcher

logger = logging.getLogger(__name__)

HealthProbe = Callable[..., Awaitable[bool]]
SandboxFactory = Callable[[CoreConfig], Awaitable[SandboxHandle]]


class SandboxLifecycleManager:
    """Answers validity checks for artifact sandboxes and triggers recreation."""

    def __init__(
        self,
        dispatcher: Optional[EventDispatcher] = None,
        *,
        probe: HealthProbe = check_sandbox_health,
        probe_timeout: Optional[float] = None,
        lease_seconds: Optional[int] = None,
    ):
        self.dispatcher = dispatcher or EventDispatcher.get_instance()
        self.probe = probe
        self.probe_timeout = probe_timeout or get_probe_timeout()
        self.lease_seconds = lease_seconds or get_recreation_lease()

    async def _load(self, artifact_id: str) -> Dict[str, Any]:
        artifact = await get_artifact(artifact_id)
        if artifact is None:
            raise ArtifactNotFoundError(artifact_id)
        return artifact

    def _lease_active(self, artifact: Dict[str, Any]) -> bool:
        if not artifact.get("is_recreating"):
            return False
        started_at = artifact.get("recreation_started_at")
        if started_at is None:
            return True
        if started_at.tzinfo is None:
            started_at = started_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - started_at < timedelta(seconds=self.lease_seconds)

    async def _probe(self, url: Optional[str]) -> bool:
        return await self.probe(url, timeout=self.probe_timeout)

    async def get_status(self, artifact_id: str) -> SandboxStatus:
        """
        Pure query: RECREATING while a claim is held, else probe the stored URL.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist
        """
        artifact = await self._load(artifact_id)

        if self._lease_active(artifact):
            return SandboxStatus.recreating()

        url = artifact.get("sandbox_url")
        if await self._probe(url):
            return SandboxStatus.ready(url)
        return SandboxStatus.failed()

    async def ensure_recreation(self, artifact_id: str) -> bool:
        """
        Claim the artifact for recreation and dispatch the job if the claim was won.

        Idempotent: while a claim is held, further calls return False and
        dispatch nothing. The dispatched job carries the claim's timestamp so
        it can only clear its own claim. If dispatching raises, the claim is
        released and the error propagates.

        Returns:
            True if this call dispatched a recreation
        """
        claimed_at = await claim_recreation(artifact_id, lease_seconds=self.lease_seconds)
        if claimed_at is None:
            logger.debug(f"Recreation already in flight for artifact {artifact_id}")
            return False

        try:
            job = await self.dispatcher.send(
                SANDBOX_RECREATE,
                {"artifact_id": artifact_id, "claimed_at": claimed_at},
            )
        except Exception:
            logger.error(f"Failed to dispatch recreation for artifact {artifact_id}", exc_info=True)
            await release_recreation(artifact_id, claimed_at=claimed_at)
            raise

        logger.info(f"Dispatched sandbox recreation for artifact {artifact_id} (job {job.job_id})")
        return True

    async def check_validity(self, artifact_id: str) -> SandboxStatus:
        """
        Probe the artifact's sandbox; start recreation when it is unreachable.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist
        """
        artifact = await self._load(artifact_id)
        url = artifact.get("sandbox_url")

        if await self._probe(url):
            return SandboxStatus.ready(url)

        logger.info(f"Sandbox for artifact {artifact_id} is unreachable")
        await self.ensure_recreation(artifact_id)
        return SandboxStatus.recreating()

    async def poll_status(self, artifact_id: str) -> SandboxStatus:
        """Status for clients polling while a recreation runs."""
        return await self.get_status(artifact_id)


class RecreationJob:
    """Handler for "sandbox/recreate": rebuild an artifact's sandbox from its files."""

    def __init__(
        self,
        config: CoreConfig,
        *,
        sandbox_factory: Optional[SandboxFactory] = None,
    ):
        self.config = config
        self.sandbox_factory = sandbox_factory or SandboxHandle.create

    async def __call__(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = SandboxRecreatePayload.model_validate(payload)
        return await self.run(data.artifact_id, claimed_at=data.claimed_at)

    async def _discard(
        self,
        artifact_id: str,
        sandbox: Optional[SandboxHandle],
        claimed_at: Optional[datetime],
    ) -> None:
        if sandbox is not None:
            await sandbox.delete()
        try:
            await release_recreation(artifact_id, claimed_at=claimed_at)
        except Exception as e:
            logger.error(f"Could not clear recreation flag for artifact {artifact_id}: {e}")

    async def run(self, artifact_id: str, claimed_at: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Create a sandbox, write every file, store the new URL.

        Unless the new URL was stored, the sandbox is deleted and this job's
        claim released on the way out, cancellation included. A failure is
        raised as RecreationError. When the claim was taken over by a newer
        job, the result is discarded and reported as superseded.
        """
        sandbox: Optional[SandboxHandle] = None
        stored = False
        try:
            artifact = await get_artifact(artifact_id)
            if artifact is None:
                raise ArtifactNotFoundError(artifact_id)

            files = dict(artifact.get("files") or {})
            logger.info(f"Recreating sandbox for artifact {artifact_id} ({len(files)} files)")

            sandbox = await self.sandbox_factory(self.config)
            await sandbox.set_timeout(self.config.daytona.auto_stop_interval)
            await sandbox.write_files(files)
            sandbox_url = await sandbox.get_preview_url(self.config.daytona.preview_port)
            sandbox_id = sandbox.sandbox_id

            stored = await complete_recreation(
                artifact_id, sandbox_url, sandbox_id, claimed_at=claimed_at
            )

        except Exception as e:
            logger.error(f"Recreation failed for artifact {artifact_id}: {e}", exc_info=True)
            raise RecreationError(artifact_id, str(e)) from e

        finally:
            if not stored:
                await self._discard(artifact_id, sandbox, claimed_at)

        if not stored:
            return {"artifact_id": artifact_id, "superseded": True}

        logger.info(f"Sandbox for artifact {artifact_id} recreated at {sandbox_url}")
        return {
            "artifact_id": artifact_id,
            "sandbox_url": sandbox_url,
            "sandbox_id": sandbox_id,
        }
