"""
Configuration service for the consent manager connection.

Resolves the consent URI, service key and secret key. A document stored
through the configuration route overrides the environment defaults.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


class ConfigurationService:
    """
    Stores and resolves consent manager configuration.
    """

    CONFIGURATION_KEY = "consent"
    FIELDS = ("consentURI", "serviceKey", "secretKey")

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        defaults: Optional[dict] = None
    ):
        """
        Initialize ConfigurationService.

        Args:
            db: MongoDB database connection
            defaults: Fallback values keyed like FIELDS (usually from settings)
        """
        self._db = db
        self._configurations_collection = db["configurations"]
        self._defaults = {
            field: (defaults or {}).get(field) for field in self.FIELDS
        }

    async def get_configuration(self) -> dict:
        """
        Get the effective configuration.

        Returns:
            dict with consentURI, serviceKey and secretKey; unset values are None
        """
        stored = await self._configurations_collection.find_one(
            {"key": self.CONFIGURATION_KEY}
        ) or {}

        configuration = {}
        for field in self.FIELDS:
            value = stored.get(field) or self._defaults.get(field)
            configuration[field] = value or None

        return configuration

    async def get_consent_uri(self) -> Optional[str]:
        """
        Get the consent manager base URI, always ending with a slash.

        Returns:
            Base URI or None when not configured
        """
        uri = (await self.get_configuration())["consentURI"]
        if not uri:
            return None
        return uri if uri.endswith("/") else f"{uri}/"

    async def get_service_key(self) -> Optional[str]:
        """Get the service key used as client ID on consent login."""
        return (await self.get_configuration())["serviceKey"]

    async def get_secret_key(self) -> Optional[str]:
        """Get the secret key used as client secret on consent login."""
        return (await self.get_configuration())["secretKey"]

    async def update_configuration(self, updates: dict) -> dict:
        """
        Store configuration values.

        Only provided fields are changed (partial update).

        Args:
            updates: Subset of consentURI, serviceKey, secretKey

        Returns:
            Effective configuration after the update
        """
        values = {k: v for k, v in updates.items() if k in self.FIELDS}

        if values:
            await self._configurations_collection.update_one(
                {"key": self.CONFIGURATION_KEY},
                {"$set": {**values, "updatedAt": datetime.now(timezone.utc)}},
                upsert=True
            )
            logger.info(f"Consent configuration updated: {sorted(values)}")

        return await self.get_configuration()
