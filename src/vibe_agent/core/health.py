"""Sandbox health probing."""

import httpx
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_PROBE_TIMEOUT_S = 5.0


async def check_sandbox_health(
    sandbox_url: str | None,
    *,
    timeout: float = DEFAULT_PROBE_TIMEOUT_S,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Probe a sandbox preview URL.

    A response with status < 400 means the sandbox is alive. Any status
    >= 400 (including the 502 Daytona returns for a stopped sandbox) or any
    transport error means it is unreachable.

    Args:
        sandbox_url: Public URL of the sandbox preview
        timeout: Probe timeout in seconds
        client: Optional shared httpx client

    Returns:
        True if the sandbox answered, False otherwise
    """
    if not sandbox_url:
        return False

    try:
        if client is not None:
            response = await client.get(sandbox_url, timeout=timeout)
        else:
            async with httpx.AsyncClient(follow_redirects=True) as owned_client:
                response = await owned_client.get(sandbox_url, timeout=timeout)
    except Exception as e:  # noqa: BLE001
        # Any transport error means the sandbox is unreachable
        logger.warning("Sandbox health check failed", url=sandbox_url, error=str(e))
        return False

    logger.debug("Sandbox health check", url=sandbox_url, status=response.status_code)
    return response.status_code < 400
