"""
User system pipeline functions.

Stateless orchestration logic for user operations: store writes,
consent manager registration, and bulk spreadsheet import.
"""

import asyncio
import logging
from typing import Optional, List

from common.utils.exceptions import (
    BadGatewayException,
    NotFoundException,
    ValidationException,
)
from connector.configuration.services.configuration_service import ConfigurationService
from connector.exceptions import ConsentNotConfiguredException
from connector.user.services.consent_client import ConsentClient
from connector.user.services.spreadsheet_service import UserSpreadsheetService
from connector.user.services.user_service import UserService, serialize_user

logger = logging.getLogger(__name__)


async def _require_consent_uri(configuration_service: ConfigurationService) -> None:
    if not await configuration_service.get_consent_uri():
        raise ConsentNotConfiguredException()


async def _consent_login(consent_client: ConsentClient) -> str:
    login = await consent_client.login()
    if not login.success:
        raise BadGatewayException(
            message="Could not log into the consent manager.",
            code="CONSENT_LOGIN_FAILED",
            details={"reason": login.error}
        )
    return login.data


async def _register_user(
    user_service: UserService,
    consent_client: ConsentClient,
    user: dict,
    token: str
) -> Optional[dict]:
    """
    Register a freshly stored user and attach its remote identifier.

    Returns:
        Updated user document, or None after removing the user when
        registration failed

    Raises:
        Exception: Storing the identifier failed; the user is removed first
    """
    registration = await consent_client.register_user(user, token)
    if not registration.success:
        await user_service.delete_user(str(user["_id"]))
        logger.warning(f"Removed user {user.get('internalID')} after failed consent registration")
        return None

    try:
        return await user_service.attach_user_identifier(
            user["_id"],
            str(registration.data["_id"])
        )
    except Exception:
        await user_service.delete_user(str(user["_id"]))
        logger.error(f"Removed user {user.get('internalID')} after failing to store its consent identifier")
        raise


async def create_user_pipeline(
    user_service: UserService,
    consent_client: ConsentClient,
    configuration_service: ConfigurationService,
    data: dict
) -> dict:
    """
    Create a user and register it with the consent manager.

    Args:
        user_service: For user persistence
        consent_client: For consent manager login and registration
        configuration_service: For the consent URI precondition
        data: User fields (internalID, email, extras)

    Returns:
        Stored user with its userIdentifier

    Raises:
        ConsentNotConfiguredException: No consent URI configured
        ConflictException: internalID already exists
        BadGatewayException: Consent login or registration failed (user removed)
    """
    await _require_consent_uri(configuration_service)

    user = await user_service.create_user(data)

    try:
        token = await _consent_login(consent_client)
    except BadGatewayException:
        await user_service.delete_user(str(user["_id"]))
        raise

    registered = await _register_user(user_service, consent_client, user, token)
    if registered is None:
        raise BadGatewayException(
            message="Could not register the user with the consent manager.",
            code="CONSENT_REGISTRATION_FAILED"
        )

    return serialize_user(registered)


async def list_users_pipeline(user_service: UserService) -> List[dict]:
    """Return every stored user."""
    users = await user_service.list_users()
    return [serialize_user(user) for user in users]


async def get_user_pipeline(user_service: UserService, user_id: str) -> dict:
    """
    Get one user.

    Raises:
        NotFoundException: Unknown or malformed user ID
    """
    user = await user_service.get_user(user_id)
    if not user:
        raise NotFoundException("User not found", code="USER_NOT_FOUND")
    return serialize_user(user)


async def update_user_pipeline(
    user_service: UserService,
    user_id: str,
    updates: dict
) -> dict:
    """
    Apply a partial update to a user.

    The consent manager record is not touched: a changed email or
    internalID is not propagated to the remote identifier.

    Raises:
        NotFoundException: Unknown or malformed user ID
        ConflictException: internalID taken by another user
    """
    user = await user_service.update_user(user_id, updates)
    if not user:
        raise NotFoundException("User not found", code="USER_NOT_FOUND")
    return serialize_user(user)


async def delete_user_pipeline(user_service: UserService, user_id: str) -> dict:
    """
    Delete a user and return the removed record.

    TODO: unregister the userIdentifier once the consent manager exposes a delete route.

    Raises:
        NotFoundException: Unknown or malformed user ID
    """
    user = await user_service.delete_user(user_id)
    if not user:
        raise NotFoundException("User not found", code="USER_NOT_FOUND")
    return serialize_user(user)


def export_template_pipeline(spreadsheet_service: UserSpreadsheetService) -> bytes:
    """Build the .xlsx import template."""
    return spreadsheet_service.build_template()


async def import_users_pipeline(
    user_service: UserService,
    consent_client: ConsentClient,
    configuration_service: ConfigurationService,
    spreadsheet_service: UserSpreadsheetService,
    content: Optional[bytes],
    concurrency: int = 1
) -> dict:
    """
    Import users from an uploaded spreadsheet.

    Rows whose internalID already exists are skipped untouched. New rows are
    stored and registered with the consent manager, at most `concurrency`
    at a time. A failing row is removed and reported without stopping the
    others.

    Args:
        user_service: For user persistence
        consent_client: For consent manager login and registration
        configuration_service: For the consent URI precondition
        spreadsheet_service: For parsing the upload
        content: Uploaded .xlsx content (None when no file was sent)
        concurrency: Maximum rows processed at the same time

    Returns:
        dict with:
            - users: newly created users, in row order
            - skipped: internalIDs that already existed
            - failed: list of {row, internalID, error}

    Raises:
        ConsentNotConfiguredException: No consent URI configured
        ValidationException: Missing file, unreadable file or missing columns
        BadGatewayException: Consent login failed (nothing imported)
    """
    await _require_consent_uri(configuration_service)

    if not content:
        raise ValidationException(message="No file uploaded", code="NO_FILE_UPLOADED")

    rows = spreadsheet_service.parse_users(content)

    token = await _consent_login(consent_client)

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def import_row(row_number: int, row: dict) -> dict:
        internal_id = row.get("internalID")
        if not internal_id:
            return {"status": "failed", "row": row_number, "internalID": None, "error": "Missing internalID"}

        async with semaphore:
            try:
                user = await user_service.create_if_absent(row)
                if user is None:
                    return {"status": "skipped", "internalID": internal_id}

                registered = await _register_user(user_service, consent_client, user, token)
                if registered is None:
                    return {
                        "status": "failed",
                        "row": row_number,
                        "internalID": internal_id,
                        "error": "Consent registration failed",
                    }
                return {"status": "created", "user": registered}
            except Exception as e:
                logger.error(f"Import of row {row_number} ({internal_id}) failed: {e}")
                return {"status": "failed", "row": row_number, "internalID": internal_id, "error": str(e)}

    outcomes = await asyncio.gather(
        *(import_row(number, row) for number, row in rows)
    )

    users = [serialize_user(o["user"]) for o in outcomes if o["status"] == "created"]
    skipped = [o["internalID"] for o in outcomes if o["status"] == "skipped"]
    failed = [
        {"row": o["row"], "internalID": o["internalID"], "error": o["error"]}
        for o in outcomes if o["status"] == "failed"
    ]

    logger.info(
        f"User import finished: {len(users)} created, {len(skipped)} skipped, {len(failed)} failed"
    )
    return {"users": users, "skipped": skipped, "failed": failed}
