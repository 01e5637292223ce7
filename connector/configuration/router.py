"""
FastAPI router for consent configuration endpoints.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import success_response
from connector.dependencies import require_auth, get_configuration_service
from connector.configuration.services.configuration_service import ConfigurationService
from connector.configuration.models import ConfigurationResponse, ConfigurationUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/configuration", tags=["configuration"], dependencies=[Depends(require_auth)])

SECRET_MASK = "********"


def _masked(configuration: dict) -> dict:
    response = ConfigurationResponse(**configuration)
    if response.secretKey:
        response.secretKey = SECRET_MASK
    return response.model_dump()


@router.get("")
async def get_configuration(
    configuration_service: Annotated[ConfigurationService, Depends(get_configuration_service)],
):
    """Get the effective consent configuration (secret key masked)."""
    configuration = await configuration_service.get_configuration()
    return success_response(_masked(configuration))


@router.put("")
async def update_configuration(
    body: ConfigurationUpdateRequest,
    configuration_service: Annotated[ConfigurationService, Depends(get_configuration_service)],
):
    """
    Update the consent configuration.

    Only provided fields will be updated (partial update).
    """
    configuration = await configuration_service.update_configuration(
        body.model_dump(exclude_unset=True, exclude_none=True)
    )
    return success_response(_masked(configuration))
