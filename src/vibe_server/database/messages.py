"""
Database functions for project messages.

Roles are 'USER' / 'ASSISTANT'; types are 'RESULT' / 'ERROR'.
"""

import logging
from typing import Any, Dict, List

from psycopg.rows import dict_row

from vibe_server.database.connection import get_db_connection

logger = logging.getLogger(__name__)

MESSAGE_COLUMNS = "m.id, m.project_id, m.content, m.role, m.type, m.created_at, m.updated_at"


async def create_message(
    project_id: str,
    content: str,
    role: str,
    message_type: str,
    conn=None,
) -> Dict[str, Any]:
    """
    Insert a message into a project's conversation.

    Args:
        project_id: Owning project
        content: Message text
        role: 'USER' or 'ASSISTANT'
        message_type: 'RESULT' or 'ERROR'
        conn: Optional database connection to reuse

    Returns:
        Created message record as dict
    """
    async def _execute(cur):
        await cur.execute(
            """
            INSERT INTO messages (project_id, content, role, type)
            VALUES (%s, %s, %s, %s)
            RETURNING id, project_id, content, role, type, created_at, updated_at
            """,
            (project_id, content, role, message_type),
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

        logger.debug(f"Created {role} {message_type} message {result['id']} in project {project_id}")
        return dict(result)

    except Exception as e:
        logger.error(f"Error creating message in project {project_id}: {e}")
        raise


async def get_messages_with_artifacts(project_id: str, conn=None) -> List[Dict[str, Any]]:
    """
    All messages of a project in chronological order.

    Each row carries an 'artifact' key holding the attached artifact (or None).
    """
    async def _execute(cur):
        await cur.execute(
            f"""
            SELECT {MESSAGE_COLUMNS},
                   a.id AS artifact_id, a.sandbox_url, a.title, a.files,
                   a.created_at AS artifact_created_at
            FROM messages m
            LEFT JOIN artifacts a ON a.message_id = m.id
            WHERE m.project_id = %s
            ORDER BY m.created_at ASC
            """,
            (project_id,),
        )
        return await cur.fetchall()

    if conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            rows = await _execute(cur)
    else:
        async with get_db_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                rows = await _execute(cur)

    messages = []
    for row in rows:
        message = {
            key: row[key]
            for key in ("id", "project_id", "content", "role", "type", "created_at", "updated_at")
        }
        if row["artifact_id"] is not None:
            message["artifact"] = {
                "id": row["artifact_id"],
                "sandbox_url": row["sandbox_url"],
                "title": row["title"],
                "files": row["files"] or {},
                "created_at": row["artifact_created_at"],
            }
        else:
            message["artifact"] = None
        messages.append(message)
    return messages


async def get_recent_messages(project_id: str, limit: int = 3, conn=None) -> List[Dict[str, Any]]:
    """
    Most recent messages of a project, newest first.
    """
    async def _execute(cur):
        await cur.execute(
            f"""
            SELECT {MESSAGE_COLUMNS}
            FROM messages m
            WHERE m.project_id = %s
            ORDER BY m.created_at DESC
            LIMIT %s
            """,
            (project_id, limit),
        )
        return await cur.fetchall()

    if conn:
        async with conn.cursor(row_factory=dict_row) as cur:
            rows = await _execute(cur)
    else:
        async with get_db_connection() as conn:
            async with conn.cursor(row_factory=dict_row) as cur:
                rows = await _execute(cur)

    return [dict(row) for row in rows]
