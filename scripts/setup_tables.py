#!/usr/bin/env python3
"""
Setup script for initializing the Vibe Builder tables in PostgreSQL.

Tables created:
- projects: One row per app being built
- messages: Conversation turns (USER / ASSISTANT, RESULT / ERROR)
- artifacts: Generated file set + sandbox URL attached to an assistant message

Usage:
    python scripts/setup_tables.py
"""

import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

project_root = Path(__file__).parent.parent

# Load environment variables from .env file
load_dotenv(project_root / ".env")

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from vibe_server.config.settings import get_db_connection_string

SCHEMA_STATEMENTS = [
    (
        "projects",
        """
        CREATE TABLE IF NOT EXISTS projects (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """,
        [
            "CREATE INDEX IF NOT EXISTS idx_projects_updated_at ON projects(updated_at DESC);",
        ],
    ),
    (
        "messages",
        """
        CREATE TABLE IF NOT EXISTS messages (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            role VARCHAR(16) NOT NULL CHECK (role IN ('USER', 'ASSISTANT')),
            type VARCHAR(16) NOT NULL CHECK (type IN ('RESULT', 'ERROR')),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """,
        [
            "CREATE INDEX IF NOT EXISTS idx_messages_project_created ON messages(project_id, created_at DESC);",
        ],
    ),
    (
        "artifacts",
        """
        CREATE TABLE IF NOT EXISTS artifacts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            message_id UUID UNIQUE NOT NULL REFERENCES messages(id) ON DELETE CASCADE,
            sandbox_url TEXT NOT NULL,
            sandbox_id VARCHAR(255),
            title VARCHAR(255) NOT NULL,
            files JSONB NOT NULL DEFAULT '{}'::jsonb,
            is_recreating BOOLEAN NOT NULL DEFAULT FALSE,
            recreation_started_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        """,
        [],
    ),
]


async def setup_tables_async() -> bool:
    """Create the project, message and artifact tables."""

    print("🔧 Setting up Vibe Builder tables...")

    try:
        print("\n🔌 Connecting to database...")

        connection_kwargs = {
            "autocommit": True,
            "prepare_threshold": 0,  # Disable prepared statements for transaction pooler
            "row_factory": dict_row,
        }

        async with AsyncConnectionPool(
            conninfo=get_db_connection_string(),
            min_size=1,
            max_size=1,
            kwargs=connection_kwargs,
        ) as pool:
            await pool.wait()
            print("✅ Connected successfully!")

            async with pool.connection() as conn:
                async with conn.cursor() as cur:
                    for table, create_sql, index_statements in SCHEMA_STATEMENTS:
                        print(f"\n📝 Creating '{table}' table...")
                        await cur.execute(create_sql)
                        for statement in index_statements:
                            await cur.execute(statement)
                        print(f"✅ '{table}' table created!")

            print("\n🎉 Setup complete! Tables are ready.")
            return True

    except Exception as e:
        print(f"\n❌ Error during setup: {e}")
        print("\nPlease check:")
        print("  1. Database credentials (DB_*) in .env file are correct")
        print("  2. Database server is accessible")
        print("  3. User has permission to create tables")
        import traceback
        traceback.print_exc()
        return False


def setup_tables() -> bool:
    """Synchronous wrapper for async setup function."""
    return asyncio.run(setup_tables_async())


if __name__ == "__main__":
    success = setup_tables()
    sys.exit(0 if success else 1)
