"""
Database functions for projects.
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg.rows import dict_row

from vibe_server.database.connection import get_db_connection

logger = logging.getLogger(__name__)

PROJECT_COLUMNS = "id, name, created_at, updated_at"


async def create_project(name: str, conn=None) -> Dict[str, Any]:
    """
    Create a new project.

    Args:
        name: Display name (kebab-case slug)
        conn: Optional database connection to reuse

    Returns:
        Created project record as dict
    """
    async def _execute(cur):
        await cur.execute(
            f"""
            INSERT INTO projects (name)
            VALUES (%s)
            RETURNING {PROJECT_COLUMNS}
            """,
            (name,),
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

        logger.info(f"Created project: {result['id']} ({name})")
        return dict(result)

    except Exception as e:
        logger.error(f"Error creating project {name}: {e}")
        raise


async def get_project(project_id: str, conn=None) -> Optional[Dict[str, Any]]:
    """
    Get a project by ID.

    Returns:
        Project record as dict, or None if not found
    """
    async def _execute(cur):
        await cur.execute(
            f"SELECT {PROJECT_COLUMNS} FROM projects WHERE id = %s",
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


async def list_projects(limit: int = 50, offset: int = 0, conn=None) -> List[Dict[str, Any]]:
    """
    List projects, most recently updated first.
    """
    async def _execute(cur):
        await cur.execute(
            f"""
            SELECT {PROJECT_COLUMNS}
            FROM projects
            ORDER BY updated_at DESC
            LIMIT %s OFFSET %s
            """,
            (limit, offset),
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


async def touch_project(project_id: str, conn=None) -> None:
    """Bump a project's updated_at."""
    query = "UPDATE projects SET updated_at = NOW() WHERE id = %s"
    if conn:
        await conn.execute(query, (project_id,))
    else:
        async with get_db_connection() as conn:
            await conn.execute(query, (project_id,))
