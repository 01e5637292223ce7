"""
FastAPI router for User system endpoints.

Provides endpoints for user CRUD and bulk spreadsheet import/export.
"""

import io
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse

from common.utils import success_response, list_response
from connector.dependencies import (
    require_auth,
    get_user_service,
    get_consent_client,
    get_configuration_service,
    get_spreadsheet_service,
    get_import_concurrency,
)
from connector.configuration.services.configuration_service import ConfigurationService
from connector.user.services.user_service import UserService
from connector.user.services.consent_client import ConsentClient
from connector.user.services.spreadsheet_service import UserSpreadsheetService
from connector.user.models import UserCreateRequest, UserUpdateRequest
from connector.user import pipelines

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_auth)])


@router.post("")
async def create_user(
    body: UserCreateRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
    consent_client: Annotated[ConsentClient, Depends(get_consent_client)],
    configuration_service: Annotated[ConfigurationService, Depends(get_configuration_service)],
):
    """
    Create a user.

    The user is registered with the consent manager and returned
    with its userIdentifier.
    """
    user = await pipelines.create_user_pipeline(
        user_service=user_service,
        consent_client=consent_client,
        configuration_service=configuration_service,
        data=body.model_dump(exclude_none=True)
    )

    return success_response(user)


@router.get("")
async def list_users(
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """List all users."""
    users = await pipelines.list_users_pipeline(user_service=user_service)
    return list_response(users)


@router.get("/excel/export")
async def export_template(
    spreadsheet_service: Annotated[UserSpreadsheetService, Depends(get_spreadsheet_service)],
):
    """Download the .xlsx import template (header row only)."""
    content = pipelines.export_template_pipeline(spreadsheet_service)

    return StreamingResponse(
        io.BytesIO(content),
        media_type=spreadsheet_service.MEDIA_TYPE,
        headers={
            "Content-Disposition": f"attachment; filename={spreadsheet_service.TEMPLATE_FILENAME}"
        }
    )


@router.post("/excel/import")
async def import_users(
    user_service: Annotated[UserService, Depends(get_user_service)],
    consent_client: Annotated[ConsentClient, Depends(get_consent_client)],
    configuration_service: Annotated[ConfigurationService, Depends(get_configuration_service)],
    spreadsheet_service: Annotated[UserSpreadsheetService, Depends(get_spreadsheet_service)],
    concurrency: Annotated[int, Depends(get_import_concurrency)],
    file: Optional[UploadFile] = File(None),
):
    """
    Import users from an .xlsx file.

    Existing internalIDs are skipped; the response lists created,
    skipped and failed rows.
    """
    content = None
    if file is not None:
        try:
            content = await file.read()
        finally:
            await file.close()

    result = await pipelines.import_users_pipeline(
        user_service=user_service,
        consent_client=consent_client,
        configuration_service=configuration_service,
        spreadsheet_service=spreadsheet_service,
        content=content,
        concurrency=concurrency
    )

    return success_response(result)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Get a user by ID."""
    user = await pipelines.get_user_pipeline(user_service=user_service, user_id=user_id)
    return success_response(user)


@router.put("/{user_id}")
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """
    Update a user.

    Only provided fields will be updated (partial update).
    """
    user = await pipelines.update_user_pipeline(
        user_service=user_service,
        user_id=user_id,
        updates=body.model_dump(exclude_unset=True)
    )

    return success_response(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    user_service: Annotated[UserService, Depends(get_user_service)],
):
    """Delete a user and return the removed record."""
    user = await pipelines.delete_user_pipeline(user_service=user_service, user_id=user_id)
    return success_response(user)
