"""
Supabase Database Client.

Provides a singleton instance of the Supabase client and typed helper methods
for the tables the call intake writes to (tenant projects, customers,
projects, calls, appointments, analytics events).
"""

from __future__ import annotations

from typing import Any, Optional

from supabase import Client, create_client

from src.config import get_settings
from src.logging_config import get_logger

logger = get_logger(__name__)


class DatabaseClient:
    """Wrapper around the official Supabase Python client."""

    _instance: Optional[DatabaseClient] = None
    _client: Client

    def __new__(cls) -> DatabaseClient:
        """Singleton pattern to ensure only one client instance."""
        if cls._instance is None:
            instance = super().__new__(cls)
            settings = get_settings()

            if not settings.supabase_url or not settings.supabase_service_key:
                logger.warning(
                    "supabase_credentials_missing",
                    url=bool(settings.supabase_url),
                    key=bool(settings.supabase_service_key),
                )

            try:
                instance._client = create_client(
                    settings.supabase_url,
                    settings.supabase_service_key,
                )
                logger.info("supabase_client_initialized", url=settings.supabase_url)
            except Exception as e:
                logger.error("supabase_client_init_failed", error=str(e))
                raise

            cls._instance = instance

        return cls._instance

    @property
    def client(self) -> Client:
        """Access the raw Supabase client."""
        return self._client

    async def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Insert one row and return it, or None if nothing came back."""
        try:
            response = self.client.table(table).insert(payload).execute()
            if response.data:
                return response.data[0]
            return None
        except Exception as e:
            logger.error("db_insert_error", table=table, error=str(e))
            return None

    async def update(self, table: str, row_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
        try:
            response = (
                self.client.table(table)
                .update(updates)
                .eq("id", row_id)
                .execute()
            )
            if response.data:
                return response.data[0]
            return None
        except Exception as e:
            logger.error("db_update_error", table=table, id=row_id, error=str(e))
            return None

    async def find_one(self, table: str, **filters: Any) -> dict[str, Any] | None:
        """Return the first row matching all equality filters."""
        try:
            query = self.client.table(table).select("*")
            for column, value in filters.items():
                query = query.eq(column, value)
            response = query.limit(1).execute()
            if response.data:
                return response.data[0]
            return None
        except Exception as e:
            logger.error("db_lookup_error", table=table, filters=list(filters), error=str(e))
            return None

    async def count_prefixed(self, table: str, column: str, prefix: str) -> int:
        """Count rows whose ``column`` starts with ``prefix``."""
        try:
            response = (
                self.client.table(table)
                .select("id", count="exact", head=True)
                .like(column, f"{prefix}%")
                .execute()
            )
            return response.count or 0
        except Exception as e:
            logger.error("db_count_error", table=table, column=column, error=str(e))
            return 0


# Global accessor
def get_db() -> DatabaseClient:
    return DatabaseClient()
