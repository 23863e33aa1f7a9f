"""
app/db/indexes.py

Purpose: Database index management

- Unique email index (the store arbitrates email uniqueness)
- Lookup indexes for login and analytics
"""

from app.db.mongo import get_users_collection
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        users = get_users_collection()

        logger.info("Creating database indexes...")

        # Unique index on email (login lookup + duplicate signup rejection)
        await users.create_index("email", unique=True, name="email_unique")
        logger.debug("Created unique index on users.email")

        # Index on createdAt for analytics
        await users.create_index("createdAt", name="created_at_idx")
        logger.debug("Created index on users.createdAt")

        user_indexes = await users.index_information()
        logger.info(f"All database indexes created successfully (users={len(user_indexes)})")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise

