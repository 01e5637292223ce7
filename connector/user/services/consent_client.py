"""
Consent manager client.

Logs the connector into the consent manager and registers users there.
Every call returns a ConsentCallResult instead of raising, so callers
decide whether a failure aborts their operation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from connector.configuration.services.configuration_service import ConfigurationService

logger = logging.getLogger(__name__)


@dataclass
class ConsentCallResult:
    """Outcome of a single consent manager call."""
    success: bool
    data: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ConsentCallResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, error: str) -> "ConsentCallResult":
        return cls(success=False, error=error)


class ConsentClient:
    """
    HTTP client for the consent manager participant and user APIs.
    """

    LOGIN_PATH = "participants/login"
    REGISTER_PATH = "users/register"

    def __init__(
        self,
        configuration_service: ConfigurationService,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize ConsentClient.

        Args:
            configuration_service: Resolves consent URI and credentials
            timeout: Timeout for each request, in seconds
            transport: Optional httpx transport (used to stub the remote service)
        """
        self._configuration_service = configuration_service
        self._timeout = timeout
        self._transport = transport

    async def login(self) -> ConsentCallResult:
        """
        Log the connector into the consent manager.

        Returns:
            Result whose data is the bearer token (jwt)
        """
        consent_uri = await self._configuration_service.get_consent_uri()
        if not consent_uri:
            return self._failure("login", "Consent URI not setup.")

        payload = {
            "clientID": await self._configuration_service.get_service_key(),
            "clientSecret": await self._configuration_service.get_secret_key(),
        }

        result = await self._post(f"{consent_uri}{self.LOGIN_PATH}", payload, operation="login")
        if not result.success:
            return result

        token = result.data.get("jwt") if isinstance(result.data, dict) else None
        if not token:
            return self._failure("login", "Consent login error: no token in response.")

        logger.debug("Logged into consent manager")
        return ConsentCallResult.ok(token)

    async def register_user(self, user: dict, token: str) -> ConsentCallResult:
        """
        Register a user with the consent manager.

        Args:
            user: User document (email and internalID are sent)
            token: Bearer token from login()

        Returns:
            Result whose data is the remote identifier payload (with _id)
        """
        consent_uri = await self._configuration_service.get_consent_uri()
        if not consent_uri:
            return self._failure("register", "Consent URI not setup.")

        payload = {
            "email": user.get("email"),
            "identifier": user.get("internalID"),
        }

        result = await self._post(
            f"{consent_uri}{self.REGISTER_PATH}",
            payload,
            operation="register",
            headers={"Authorization": f"Bearer {token}"},
        )
        if not result.success:
            return result

        if not isinstance(result.data, dict) or not result.data.get("_id"):
            return self._failure("register", "User registration error: no identifier in response.")

        logger.debug(f"Registered user {user.get('internalID')} with consent manager")
        return result

    async def _post(
        self,
        url: str,
        payload: dict,
        operation: str,
        headers: Optional[dict] = None
    ) -> ConsentCallResult:
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.RequestError as e:
            return self._failure(operation, f"Consent manager request error: {e}")

        if response.is_error:
            return self._failure(
                operation,
                f"Consent manager answered {response.status_code}"
            )

        try:
            return ConsentCallResult.ok(response.json())
        except ValueError:
            return self._failure(operation, "Consent manager answered with invalid JSON")

    def _failure(self, operation: str, error: str) -> ConsentCallResult:
        logger.error(f"Consent {operation} failed: {error}")
        return ConsentCallResult.failed(error)
