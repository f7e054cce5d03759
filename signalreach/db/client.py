"""
Supabase client construction and query execution.

Clients are built explicitly at application startup and passed into each
repository; nothing here is created at import time.
"""

import logging

from supabase import Client, create_client

from signalreach.errors import ConfigError, RepositoryError

logger = logging.getLogger("signalreach.db")


def create_supabase_client(url: str, key: str) -> Client:
    """Build a Supabase client from the project URL and a service-role key."""
    if not url or not key:
        raise ConfigError("Supabase is not configured.",
                          detail="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")
    return create_client(url, key)


def run_query(query, action: str):
    """Execute a PostgREST query builder, mapping failures to RepositoryError."""
    try:
        return query.execute()
    except Exception as e:
        logger.error("Supabase %s failed: %s", action, e)
        raise RepositoryError(detail=f"{action}: {e}") from e
