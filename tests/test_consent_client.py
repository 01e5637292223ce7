"""Tests for ConsentClient against a stubbed consent manager."""

import json

import httpx
import pytest
from unittest.mock import AsyncMock

from connector.user.services.consent_client import ConsentClient


def _client(configuration_service, handler):
    return ConsentClient(
        configuration_service=configuration_service,
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


class TestLogin:
    @pytest.mark.asyncio
    async def test_posts_credentials_and_returns_token(self, mock_configuration_service):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"jwt": "consent-jwt"})

        result = await _client(mock_configuration_service, handler).login()

        assert result.success is True
        assert result.data == "consent-jwt"
        assert seen["url"] == "https://consent.example.com/v1/participants/login"
        assert seen["body"] == {"clientID": "service-key", "clientSecret": "secret-key"}

    @pytest.mark.asyncio
    async def test_missing_uri_fails_without_request(self, mock_configuration_service):
        mock_configuration_service.get_consent_uri = AsyncMock(return_value=None)

        def handler(request):
            raise AssertionError("no request expected")

        result = await _client(mock_configuration_service, handler).login()

        assert result.success is False
        assert "Consent URI" in result.error

    @pytest.mark.asyncio
    async def test_error_status_is_a_failure(self, mock_configuration_service):
        result = await _client(
            mock_configuration_service,
            lambda request: httpx.Response(401, json={"error": "bad credentials"}),
        ).login()

        assert result.success is False
        assert "401" in result.error

    @pytest.mark.asyncio
    async def test_response_without_token_is_a_failure(self, mock_configuration_service):
        result = await _client(
            mock_configuration_service,
            lambda request: httpx.Response(200, json={}),
        ).login()

        assert result.success is False
        assert result.data is None

    @pytest.mark.asyncio
    async def test_transport_error_is_returned_not_raised(self, mock_configuration_service):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        result = await _client(mock_configuration_service, handler).login()

        assert result.success is False
        assert "connection refused" in result.error


class TestRegisterUser:
    @pytest.mark.asyncio
    async def test_registers_with_bearer_token(self, mock_configuration_service):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"_id": "remote-1", "identifier": "A1"})

        result = await _client(mock_configuration_service, handler).register_user(
            {"internalID": "A1", "email": "a@x.com"}, "consent-jwt"
        )

        assert result.success is True
        assert result.data["_id"] == "remote-1"
        assert seen["url"] == "https://consent.example.com/v1/users/register"
        assert seen["auth"] == "Bearer consent-jwt"
        assert seen["body"] == {"email": "a@x.com", "identifier": "A1"}

    @pytest.mark.asyncio
    async def test_payload_without_identifier_is_a_failure(self, mock_configuration_service):
        result = await _client(
            mock_configuration_service,
            lambda request: httpx.Response(200, json={"identifier": "A1"}),
        ).register_user({"internalID": "A1", "email": "a@x.com"}, "consent-jwt")

        assert result.success is False

    @pytest.mark.asyncio
    async def test_invalid_json_is_a_failure(self, mock_configuration_service):
        result = await _client(
            mock_configuration_service,
            lambda request: httpx.Response(200, content=b"<html>oops</html>"),
        ).register_user({"internalID": "A1", "email": "a@x.com"}, "consent-jwt")

        assert result.success is False
        assert "invalid JSON" in result.error
