"""HTTP-level tests for the private user and configuration routes."""

import asyncio
import io

import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from fastapi.testclient import TestClient
from openpyxl import load_workbook
from pydantic import ValidationError

from api import app
from common.auth import JWTAuth
from common.utils.exceptions import ConflictException
from connector.configuration.services.configuration_service import ConfigurationService
from connector.dependencies import (
    get_auth_provider,
    get_configuration_service,
    get_consent_client,
    get_import_concurrency,
    get_spreadsheet_service,
    get_user_service,
)
from connector.user.models import UserUpdateRequest
from connector.user.services.spreadsheet_service import UserSpreadsheetService

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def auth():
    return JWTAuth(secret="test-secret")


@pytest.fixture
def headers(auth):
    token = asyncio.run(auth.create_token("service-key"))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_service():
    service = MagicMock()

    async def create_if_absent(data):
        return {"_id": ObjectId(), **data, "userIdentifier": None}

    async def attach_user_identifier(user_id, user_identifier):
        return {"_id": user_id, "internalID": "A1", "email": "a@x.com", "userIdentifier": user_identifier}

    service.create_user = AsyncMock(
        side_effect=lambda data: {"_id": ObjectId(), **data, "userIdentifier": None}
    )
    service.create_if_absent = AsyncMock(side_effect=create_if_absent)
    service.attach_user_identifier = AsyncMock(side_effect=attach_user_identifier)
    service.delete_user = AsyncMock(return_value=None)
    service.get_user = AsyncMock(return_value=None)
    service.list_users = AsyncMock(return_value=[])
    return service


@pytest.fixture
def client(auth, user_service, mock_consent_client, mock_configuration_service, monkeypatch):
    # require_auth calls get_auth_provider directly, so the override alone is not seen
    monkeypatch.setattr("connector.dependencies._auth_provider", auth)
    app.dependency_overrides[get_auth_provider] = lambda: auth
    app.dependency_overrides[get_user_service] = lambda: user_service
    app.dependency_overrides[get_consent_client] = lambda: mock_consent_client
    app.dependency_overrides[get_configuration_service] = lambda: mock_configuration_service
    app.dependency_overrides[get_spreadsheet_service] = lambda: UserSpreadsheetService()
    app.dependency_overrides[get_import_concurrency] = lambda: 2
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestAuth:
    def test_missing_token_is_rejected(self, client):
        response = client.get("/private/users")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": {"message": "Missing authorization header", "code": "UNAUTHORIZED"},
        }

    def test_foreign_token_is_rejected(self, client):
        token = asyncio.run(JWTAuth(secret="other-secret").create_token("service-key"))

        response = client.get("/private/users", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_TOKEN"

    def test_health_is_public(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "ok"


class TestUserRoutes:
    def test_create_user(self, client, headers):
        response = client.post(
            "/private/users",
            json={"internalID": "A1", "email": "a@x.com"},
            headers=headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["userIdentifier"] == "remote-A1"

    def test_create_duplicate_returns_conflict(self, client, headers, user_service):
        user_service.create_user = AsyncMock(
            side_effect=ConflictException(message="Internal Id already exists.", code="INTERNAL_ID_EXISTS")
        )

        response = client.post(
            "/private/users",
            json={"internalID": "A1", "email": "a@x.com"},
            headers=headers,
        )

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INTERNAL_ID_EXISTS"

    def test_create_without_consent_uri(self, client, headers, mock_configuration_service):
        mock_configuration_service.get_consent_uri = AsyncMock(return_value=None)

        response = client.post(
            "/private/users",
            json={"internalID": "A1", "email": "a@x.com"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "CONSENT_URI_NOT_CONFIGURED"

    def test_list_users(self, client, headers):
        response = client.get("/private/users", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": [], "count": 0}

    def test_unknown_user_is_not_found(self, client, headers):
        response = client.get(f"/private/users/{ObjectId()}", headers=headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"

    def test_update_rejects_null_internal_id(self, client, headers, user_service):
        user_service.update_user = AsyncMock(return_value=None)

        response = client.put(
            f"/private/users/{ObjectId()}",
            json={"internalID": None},
            headers=headers,
        )

        assert response.status_code == 422
        user_service.update_user.assert_not_called()

    def test_update_passes_only_provided_fields(self, client, headers, user_service, sample_user_doc):
        user_service.update_user = AsyncMock(return_value={**sample_user_doc, "email": "new@x.com"})
        user_id = str(sample_user_doc["_id"])

        response = client.put(
            f"/private/users/{user_id}",
            json={"email": "new@x.com", "department": "ops"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "new@x.com"
        user_service.update_user.assert_awaited_once_with(user_id, {"email": "new@x.com", "department": "ops"})

    def test_delete_unknown_user_is_not_found(self, client, headers):
        response = client.delete(f"/private/users/{ObjectId()}", headers=headers)

        assert response.status_code == 404


class TestSpreadsheetRoutes:
    def test_export_template(self, client, headers):
        response = client.get("/private/users/excel/export", headers=headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX
        assert response.headers["content-disposition"] == "attachment; filename=example.xlsx"
        sheet = load_workbook(io.BytesIO(response.content)).active
        assert list(sheet.iter_rows(values_only=True)) == [("internalID", "email")]

    def test_import_users(self, client, headers, make_workbook):
        content = make_workbook([
            ("internalID", "email"),
            ("A1", "a@x.com"),
            ("A2", "b@x.com"),
        ])

        response = client.post(
            "/private/users/excel/import",
            files={"file": ("users.xlsx", content, XLSX)},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data["users"]) == 2
        assert all(user["userIdentifier"] for user in data["users"])
        assert data["skipped"] == []
        assert data["failed"] == []

    def test_import_without_file(self, client, headers):
        response = client.post("/private/users/excel/import", headers=headers)

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "NO_FILE_UPLOADED"

    def test_import_with_bad_columns(self, client, headers, make_workbook):
        content = make_workbook([("internalID", "name"), ("A1", "Anna")])

        response = client.post(
            "/private/users/excel/import",
            files={"file": ("users.xlsx", content, XLSX)},
            headers=headers,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "COLUMN_ERROR"


class TestConfigurationRoutes:
    def test_secret_key_is_masked(self, client, headers, mock_db, mock_collection):
        mock_collection.find_one.return_value = {
            "key": "consent",
            "consentURI": "https://consent.example.com/",
            "serviceKey": "svc",
            "secretKey": "very-secret",
        }
        app.dependency_overrides[get_configuration_service] = lambda: ConfigurationService(mock_db)

        response = client.get("/private/configuration", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"] == {
            "consentURI": "https://consent.example.com/",
            "serviceKey": "svc",
            "secretKey": "********",
        }

    def test_update_configuration(self, client, headers, mock_db, mock_collection):
        mock_collection.find_one.return_value = {"key": "consent", "consentURI": "https://new.example.com/"}
        app.dependency_overrides[get_configuration_service] = lambda: ConfigurationService(mock_db)

        response = client.put(
            "/private/configuration",
            json={"consentURI": "https://new.example.com/"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["consentURI"] == "https://new.example.com/"
        mock_collection.update_one.assert_awaited_once()


class TestUserUpdateRequest:
    @pytest.mark.parametrize("field", ["internalID", "email"])
    def test_null_is_rejected(self, field):
        with pytest.raises(ValidationError):
            UserUpdateRequest.model_validate({field: None})

    def test_omitted_fields_stay_unset(self):
        body = UserUpdateRequest.model_validate({"email": "new@x.com"})

        assert body.model_dump(exclude_unset=True) == {"email": "new@x.com"}
