"""
Database initialization script

Run once (or after changing index definitions) to create the users indexes:
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.db.mongo import connect_to_mongo, close_mongo_connection, get_users_collection
from app.db.indexes import create_indexes

logger = get_logger(__name__)


async def main():
    setup_logging()
    logger.info(f"Initializing database: {settings.MONGODB_DB_NAME}")

    await connect_to_mongo()
    try:
        await create_indexes()

        indexes = await get_users_collection().index_information()
        for name, index_info in indexes.items():
            logger.info(f"  users.{name}: {index_info.get('key')} unique={index_info.get('unique', False)}")
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
