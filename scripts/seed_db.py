"""
Database Seeding Script.

Makes sure the tenant project row exists and prints its ID, so it can be
pinned via TENANT_PROJECT_ID.
"""

import asyncio
import os
import sys

# Add project root to path so we can import src
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from src.config import get_settings
from src.db import get_db
from src.logging_config import setup_logging, get_logger
from src.services.record_service import resolve_tenant_project_id

setup_logging()
logger = get_logger(__name__)


async def seed() -> None:
    settings = get_settings()
    db = get_db()

    logger.info("seeding_tenant_project", project_name=settings.tenant_project_name)
    tenant_project_id = await resolve_tenant_project_id(db, settings)
    logger.info("seeding_complete", tenant_project_id=tenant_project_id)
    print(tenant_project_id)


if __name__ == "__main__":
    asyncio.run(seed())
