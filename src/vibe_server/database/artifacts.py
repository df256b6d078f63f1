"""
Database functions for artifacts.

An artifact is the file set and sandbox URL produced by one successful run.
The is_recreating flag is only ever set through claim_recreation(), a
conditional UPDATE, so concurrent validity checks cannot both win.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from psycopg.rows import dict_row
from psycopg.types.json import Json

from vibe_server.database.connection import get_db_connection

logger = logging.getLogger(__name__)

ARTIFACT_COLUMNS = (
    "a.id, a.message_id, a.sandbox_url, a.sandbox_id, a.title, a.files, "
    "a.is_recreating, a.recreation_started_at, a.created_at, a.updated_at"
)


async def create_artifact(
    message_id: str,
    sandbox_url: str,
    title: str,
    files: Dict[str, str],
    sandbox_id: Optional[str] = None,
    conn=None,
) -> Dict[str, Any]:
    """
    Attach an artifact to an assistant message.

    Returns:
        Created artifact record as dict
    """
    async def _execute(cur):
        await cur.execute(
            """
            INSERT INTO artifacts AS a (message_id, sandbox_url, sandbox_id, title, files)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING a.id, a.message_id, a.sandbox_url, a.sandbox_id, a.title, a.files,
                      a.is_recreating, a.recreation_started_at, a.created_at, a.updated_at
            """,
            (message_id, sandbox_url, sandbox_id, title, Json(files)),
        )
        return await cur.fetchone()

    try:
        if conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                result = await _execute(cur)
        else:
            async with get_db_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    result = await _execute(cur)

        logger.info(f"Created artifact {result['id']} for message {message_id} ({len(files)} files)")
        return dict(result)

    except Exception as e:
        logger.error(f"Error creating artifact for message {message_id}: {e}")
        raise


async def get_artifact(artifact_id: str, conn=None) -> Optional[Dict[str, Any]]:
    """
    Get an artifact by ID.

    Returns:
        Artifact record as dict, or None if not found
    """
    async def _execute(cur):
        await cur.execute(
            f"SELECT {ARTIFACT_COLUMNS} FROM artifacts a WHERE a.id = %s",
            (artifact_id,),
        )
        return await cur.fetchone()

    if conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            result = await _execute(cur)
    else:
        async with get_db_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                result = await _execute(cur)

    return dict(result) if result else None


async def get_latest_artifact_for_project(project_id: str, conn=None) -> Optional[Dict[str, Any]]:
    """
    Artifact of the most recent assistant RESULT message that carries one.
    """
    async def _execute(cur):
        await cur.execute(
            f"""
            SELECT {ARTIFACT_COLUMNS}
            FROM artifacts a
            JOIN messages m ON m.id = a.message_id
            WHERE m.project_id = %s
              AND m.role = 'ASSISTANT'
              AND m.type = 'RESULT'
            ORDER BY m.created_at DESC
            LIMIT 1
            """,
            (project_id,),
        )
        return await cur.fetchone()

    if conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            result = await _execute(cur)
    else:
        async with get_db_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                result = await _execute(cur)

    return dict(result) if result else None


async def claim_recreation(
    artifact_id: str,
    lease_seconds: int = 600,
    conn=None,
) -> Optional[datetime]:
    """
    Atomically set is_recreating for an artifact.

    Succeeds only when no recreation is in flight or the previous claim's
    lease has expired.

    Returns:
        The claim's recreation_started_at if this caller won the claim,
        None otherwise. complete_recreation() and release_recreation() only
        act on the claim carrying this timestamp.
    """
    async def _execute(cur):
        await cur.execute(
            """
            UPDATE artifacts
            SET is_recreating = TRUE,
                recreation_started_at = NOW(),
                updated_at = NOW()
            WHERE id = %s
              AND (
                is_recreating = FALSE
                OR recreation_started_at IS NULL
                OR recreation_started_at < NOW() - (%s * INTERVAL '1 second')
              )
            RETURNING recreation_started_at
            """,
            (artifact_id, lease_seconds),
        )
        return await cur.fetchone()

    if conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            result = await _execute(cur)
    else:
        async with get_db_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                result = await _execute(cur)

    claimed_at = result["recreation_started_at"] if result else None
    logger.debug(f"Recreation claim for artifact {artifact_id}: {'won' if claimed_at else 'lost'}")
    return claimed_at


def _claim_filter(claimed_at: Optional[datetime]) -> Tuple[str, tuple]:
    if claimed_at is None:
        return "", ()
    return " AND recreation_started_at = %s", (claimed_at,)


async def _update_claimed(query: str, params: tuple, conn=None) -> bool:
    if conn:
        cur = await conn.execute(query, params)
        return cur.rowcount > 0
    async with get_db_connection() as conn:
        cur = await conn.execute(query, params)
        return cur.rowcount > 0


async def complete_recreation(
    artifact_id: str,
    sandbox_url: str,
    sandbox_id: Optional[str],
    claimed_at: Optional[datetime] = None,
    conn=None,
) -> bool:
    """
    Store the new sandbox and clear the recreation flag.

    With claimed_at, the update only applies while that claim is still the
    current one; a job whose lease was taken over cannot overwrite the newer
    job's state.

    Returns:
        True if the artifact was updated
    """
    fence, fence_params = _claim_filter(claimed_at)
    query = f"""
        UPDATE artifacts
        SET sandbox_url = %s,
            sandbox_id = %s,
            is_recreating = FALSE,
            recreation_started_at = NULL,
            updated_at = NOW()
        WHERE id = %s{fence}
    """
    updated = await _update_claimed(query, (sandbox_url, sandbox_id, artifact_id, *fence_params), conn)
    if updated:
        logger.info(f"Artifact {artifact_id} now served by sandbox {sandbox_id}")
    else:
        logger.warning(f"Recreation claim for artifact {artifact_id} was superseded, result discarded")
    return updated


async def release_recreation(
    artifact_id: str,
    claimed_at: Optional[datetime] = None,
    conn=None,
) -> bool:
    """
    Clear the recreation flag.

    With claimed_at, only the claim carrying that timestamp is released.

    Returns:
        True if the flag was cleared
    """
    fence, fence_params = _claim_filter(claimed_at)
    query = f"""
        UPDATE artifacts
        SET is_recreating = FALSE,
            recreation_started_at = NULL,
            updated_at = NOW()
        WHERE id = %s{fence}
    """
    return await _update_claimed(query, (artifact_id, *fence_params), conn)
