"""PostgreSQL persistence for projects, messages and artifacts."""
