"""
Connector application settings.

Extends the base settings with consent-manager configuration.
"""

from typing import Optional
from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """Connector-specific settings."""

    # ==========================================================================
    # Consent Manager
    # ==========================================================================
    # Defaults only; values stored through the configuration route win.
    CONSENT_URI: Optional[str] = None
    SERVICE_KEY: Optional[str] = None
    SECRET_KEY: Optional[str] = None

    # Timeout for each outbound consent call, in seconds
    CONSENT_REQUEST_TIMEOUT: float = 30.0

    # ==========================================================================
    # Bulk Import
    # ==========================================================================
    # Rows registered with the consent manager at the same time
    IMPORT_CONCURRENCY: int = 4

    def get_consent_defaults(self) -> dict:
        """Consent configuration as read from the environment."""
        return {
            "consentURI": self.CONSENT_URI,
            "serviceKey": self.SERVICE_KEY,
            "secretKey": self.SECRET_KEY,
        }


# Global settings instance
settings = Settings()
