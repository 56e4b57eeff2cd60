"""Supabase client wrapper with async context manager support."""

import os
from typing import Any, Callable, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.errors import SupabaseError
import logging

logger = logging.getLogger(__name__)

# Global client instance (singleton pattern)
_client: Optional[Client] = None

# Table names
BOX_DROPS = "box_drops"
REALTORS = "realtors"
SUPPLY_ITEMS = "supply_items"
FOLLOW_UP_TEMPLATES = "follow_up_templates"
AUTOMATION_LOG = "automation_log"

# Rows requested per page; PostgREST also caps each response at its max_rows setting
PAGE_SIZE = 1000


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL", "").strip()
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "").strip()

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        # Serverless functions never hold a user session
        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        """Enter async context."""
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context."""
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


def first_row(result: Any) -> Optional[dict]:
    """Return the first row of a PostgREST response, or None."""
    return result.data[0] if result.data and len(result.data) > 0 else None


def all_rows(result: Any) -> list[dict]:
    return result.data if result.data else []


async def count_rows(table: str) -> int:
    """Exact row count for a table."""
    async with SupabaseClient() as client:
        try:
            result = client.table(table).select("id", count="exact").execute()
        except Exception as e:
            raise SupabaseError(f"Failed to count {table}: {e}")
        if result.count is not None:
            return result.count
        return len(all_rows(result))


def fetch_all_rows(build_query: Callable[[], Any], page_size: int = PAGE_SIZE) -> list[dict]:
    """
    Every row a select matches, read one page at a time.

    A single PostgREST response is truncated at the server's max_rows, so
    whole-table reads must page. build_query returns a fresh builder with
    select(..., count="exact") and a stable order each time it is called.
    """
    rows: list[dict] = []
    while True:
        result = build_query().range(len(rows), len(rows) + page_size - 1).execute()
        page = all_rows(result)
        rows.extend(page)
        if not page:
            return rows
        if result.count is not None:
            if len(rows) >= result.count:
                return rows
        elif len(page) < page_size:
            return rows
