"""
app/services/user_store.py

Purpose: User persistence

- Create users and look them up by id or email
- Atomic append of receipt URLs ($push, no read-modify-write)
- Maps store-level rejections to ValidationError
"""

from typing import Optional, Dict, Any

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError, WriteError

from app.core.exceptions import ValidationError
from app.core.logging import get_logger
from app.models.user import User

logger = get_logger(__name__)


def _to_object_id(user_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


class UserStore:
    """Repository over the users collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create(self, document: Dict[str, Any]) -> User:
        """
        Inserts a new user document.

        Raises:
            ValidationError: Email already registered or document rejected by the store
        """
        document = dict(document)
        try:
            result = await self.collection.insert_one(document)
        except DuplicateKeyError as e:
            logger.info("Signup rejected: duplicate email", extra={"email": document.get("email")})
            raise ValidationError("An account with this email already exists") from e
        except WriteError as e:
            raise ValidationError("User record rejected by the store", details=e.details) from e

        document["_id"] = result.inserted_id
        return User.from_document(document)

    async def find_by_id(self, user_id: str) -> Optional[User]:
        """
        Returns the user with the given id, or None.
        Malformed ids resolve to None.
        """
        object_id = _to_object_id(user_id)
        if object_id is None:
            return None

        document = await self.collection.find_one({"_id": object_id})
        return User.from_document(document) if document else None

    async def find_by_email(self, email: str) -> Optional[User]:
        document = await self.collection.find_one({"email": email})
        return User.from_document(document) if document else None

    async def append_receipt_url(self, user_id: str, url: str) -> bool:
        """
        Appends url to the user's receipt list in a single atomic update.

        Returns:
            True if a user document was updated, False if none matched
        """
        object_id = _to_object_id(user_id)
        if object_id is None:
            return False

        result = await self.collection.update_one(
            {"_id": object_id},
            {"$push": {"receiptUrls": url}}
        )
        return result.matched_count > 0
