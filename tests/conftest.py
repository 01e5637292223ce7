"""Shared test fixtures for connector backend tests."""

import io

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId
from openpyxl import Workbook

from connector.user.services.consent_client import ConsentCallResult


def _make_workbook(rows):
    """Build .xlsx bytes from a list of rows (first row is the header)."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Sheet1"
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_workbook():
    return _make_workbook


@pytest.fixture
def sample_user_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # update_one etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def sample_user_doc(sample_user_id):
    now = datetime.now(timezone.utc)
    return {
        "_id": ObjectId(sample_user_id),
        "internalID": "A1",
        "email": "a@x.com",
        "userIdentifier": None,
        "createdAt": now,
        "updatedAt": now,
    }


@pytest.fixture
def mock_configuration_service():
    service = MagicMock()
    service.get_consent_uri = AsyncMock(return_value="https://consent.example.com/v1/")
    service.get_service_key = AsyncMock(return_value="service-key")
    service.get_secret_key = AsyncMock(return_value="secret-key")
    return service


@pytest.fixture
def mock_consent_client():
    client = MagicMock()
    client.login = AsyncMock(return_value=ConsentCallResult.ok("consent-jwt"))
    client.register_user = AsyncMock(
        side_effect=lambda user, token: ConsentCallResult.ok(
            {"_id": f"remote-{user['internalID']}", "identifier": user["internalID"]}
        )
    )
    return client
