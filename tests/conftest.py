"""
Shared fixtures: an in-memory stand-in for the Supabase wrapper and a
fixed clock.
"""

from __future__ import annotations

import itertools
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

import pytest

from src.config import Settings


class FakeDatabase:
    """Implements the ``DatabaseClient`` helper methods over dicts."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.failing_tables: set[str] = set()
        self._ids = itertools.count(1)

    def seed(self, table: str, **row: Any) -> dict[str, Any]:
        row.setdefault("id", f"{table}-{next(self._ids)}")
        self.tables[table].append(row)
        return row

    async def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any] | None:
        if table in self.failing_tables:
            return None
        return self.seed(table, **payload)

    async def update(self, table: str, row_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
        for row in self.tables[table]:
            if row["id"] == row_id:
                row.update(updates)
                return row
        return None

    async def find_one(self, table: str, **filters: Any) -> dict[str, Any] | None:
        for row in self.tables[table]:
            if all(row.get(column) == value for column, value in filters.items()):
                return row
        return None

    async def count_prefixed(self, table: str, column: str, prefix: str) -> int:
        return sum(1 for row in self.tables[table] if str(row.get(column, "")).startswith(prefix))


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, tenant_project_id=None)


# Wednesday morning
FIXED_NOW = datetime(2026, 10, 14, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
