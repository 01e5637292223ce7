"""
User service for user record persistence.

Handles creation, retrieval, update and deletion of connector users.
The internalID uniqueness is enforced by a unique index, so creation
never depends on a separate existence check.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import ConflictException

logger = logging.getLogger(__name__)


def serialize_user(user: Optional[dict]) -> Optional[dict]:
    """Convert a user document into a JSON-friendly dict."""
    if user is None:
        return None
    serialized = dict(user)
    if "_id" in serialized:
        serialized["_id"] = str(serialized["_id"])
    return serialized


def _to_object_id(user_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


class UserService:
    """
    Manages connector user records.
    """

    PROTECTED_FIELDS = ("_id", "createdAt", "updatedAt")

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize UserService.

        Args:
            db: MongoDB database connection
        """
        self._db = db
        self._users_collection = db["users"]

    async def ensure_indexes(self) -> None:
        """Create the unique internalID index. Safe to call on every startup."""
        await self._users_collection.create_index("internalID", unique=True)
        logger.debug("User indexes ensured")

    async def create_user(self, data: dict) -> dict:
        """
        Insert a new user record.

        Args:
            data: User fields; internalID and email plus any extra fields

        Returns:
            Created user document

        Raises:
            ConflictException: internalID already exists
        """
        now = datetime.now(timezone.utc)
        user_doc = {
            **self._strip_protected(data),
            "userIdentifier": data.get("userIdentifier"),
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await self._users_collection.insert_one(user_doc)
        except DuplicateKeyError:
            raise ConflictException(
                message="Internal Id already exists.",
                code="INTERNAL_ID_EXISTS",
                details={"internalID": data.get("internalID")}
            )

        user_doc["_id"] = result.inserted_id
        logger.info(f"User created: {result.inserted_id}")
        return user_doc

    async def create_if_absent(self, data: dict) -> Optional[dict]:
        """
        Insert a user keyed by internalID unless one already exists.

        Existing records are left untouched.

        Args:
            data: User fields including internalID

        Returns:
            Created user document, or None if the internalID already existed
        """
        now = datetime.now(timezone.utc)
        fields = self._strip_protected(data)
        fields.pop("internalID", None)

        result = await self._users_collection.update_one(
            {"internalID": data["internalID"]},
            {
                "$setOnInsert": {
                    **fields,
                    "userIdentifier": data.get("userIdentifier"),
                    "createdAt": now,
                    "updatedAt": now,
                }
            },
            upsert=True
        )

        if result.upserted_id is None:
            return None

        logger.debug(f"User inserted from import: {result.upserted_id}")
        return {
            "_id": result.upserted_id,
            "internalID": data["internalID"],
            **fields,
            "userIdentifier": data.get("userIdentifier"),
            "createdAt": now,
            "updatedAt": now,
        }

    async def list_users(self) -> List[dict]:
        """Load every user record."""
        return await self._users_collection.find({}).to_list(length=None)

    async def get_user(self, user_id: str) -> Optional[dict]:
        """
        Load user by MongoDB ID.

        Args:
            user_id: MongoDB ObjectId as string

        Returns:
            User document or None if not found or malformed
        """
        object_id = _to_object_id(user_id)
        if object_id is None:
            return None
        return await self._users_collection.find_one({"_id": object_id})

    async def update_user(self, user_id: str, updates: dict) -> Optional[dict]:
        """
        Apply a partial update to a user.

        Args:
            user_id: MongoDB user ID
            updates: Fields to set

        Returns:
            Updated user document or None if not found

        Raises:
            ConflictException: The new internalID belongs to another user
        """
        object_id = _to_object_id(user_id)
        if object_id is None:
            return None

        fields = self._strip_protected(updates)
        fields["updatedAt"] = datetime.now(timezone.utc)

        try:
            user = await self._users_collection.find_one_and_update(
                {"_id": object_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise ConflictException(
                message="Internal Id already exists.",
                code="INTERNAL_ID_EXISTS",
                details={"internalID": updates.get("internalID")}
            )

        if user:
            logger.info(f"User updated: {user_id}")
        return user

    async def attach_user_identifier(self, user_id: ObjectId, user_identifier: str) -> Optional[dict]:
        """
        Store the consent manager identifier on a user.

        Args:
            user_id: MongoDB user ID
            user_identifier: Remote identifier returned on registration

        Returns:
            Updated user document
        """
        return await self._users_collection.find_one_and_update(
            {"_id": user_id},
            {
                "$set": {
                    "userIdentifier": user_identifier,
                    "updatedAt": datetime.now(timezone.utc)
                }
            },
            return_document=ReturnDocument.AFTER
        )

    async def delete_user(self, user_id: str) -> Optional[dict]:
        """
        Delete a user.

        Args:
            user_id: MongoDB user ID

        Returns:
            The deleted document or None if not found
        """
        object_id = _to_object_id(user_id)
        if object_id is None:
            return None

        user = await self._users_collection.find_one_and_delete({"_id": object_id})
        if user:
            logger.info(f"User deleted: {user_id}")
        return user

    def _strip_protected(self, data: dict) -> dict:
        return {k: v for k, v in data.items() if k not in self.PROTECTED_FIELDS}
