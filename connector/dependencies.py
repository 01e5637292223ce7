"""
FastAPI dependencies for the connector application.

Provides dependency injection for all services.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import AuthProvider, JWTAuth, create_auth_dependency
from connector.config import Settings
from connector.configuration.services.configuration_service import ConfigurationService
from connector.user.services.consent_client import ConsentClient
from connector.user.services.spreadsheet_service import UserSpreadsheetService
from connector.user.services.user_service import UserService


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

_auth_provider: Optional[AuthProvider] = None
_configuration_service: Optional[ConfigurationService] = None
_user_service: Optional[UserService] = None
_consent_client: Optional[ConsentClient] = None
_spreadsheet_service: Optional[UserSpreadsheetService] = None
_import_concurrency: int = 1


def init_all_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """
    Initialize all services with database connection and settings.

    Called once at application startup.

    Args:
        db: MongoDB database connection
        settings: Application settings
    """
    global _auth_provider, _configuration_service, _user_service
    global _consent_client, _spreadsheet_service, _import_concurrency

    _auth_provider = JWTAuth(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    _configuration_service = ConfigurationService(
        db=db,
        defaults=settings.get_consent_defaults()
    )
    _user_service = UserService(db=db)
    _consent_client = ConsentClient(
        configuration_service=_configuration_service,
        timeout=settings.CONSENT_REQUEST_TIMEOUT
    )
    _spreadsheet_service = UserSpreadsheetService()
    _import_concurrency = settings.IMPORT_CONCURRENCY


def get_auth_provider() -> AuthProvider:
    """Get auth provider instance."""
    if _auth_provider is None:
        raise RuntimeError("Services not initialized. Call init_all_services first.")
    return _auth_provider


def get_configuration_service() -> ConfigurationService:
    """Get configuration service instance."""
    if _configuration_service is None:
        raise RuntimeError("Services not initialized. Call init_all_services first.")
    return _configuration_service


def get_user_service() -> UserService:
    """Get user service instance."""
    if _user_service is None:
        raise RuntimeError("Services not initialized. Call init_all_services first.")
    return _user_service


def get_consent_client() -> ConsentClient:
    """Get consent client instance."""
    if _consent_client is None:
        raise RuntimeError("Services not initialized. Call init_all_services first.")
    return _consent_client


def get_spreadsheet_service() -> UserSpreadsheetService:
    """Get spreadsheet service instance."""
    if _spreadsheet_service is None:
        raise RuntimeError("Services not initialized. Call init_all_services first.")
    return _spreadsheet_service


def get_import_concurrency() -> int:
    """Get the number of import rows processed at the same time."""
    return _import_concurrency


# Bearer-token guard for every private route
require_auth = create_auth_dependency(get_auth_provider)
