"""
Pydantic models for the Configuration system.
"""

from typing import Optional
from pydantic import BaseModel, Field


class ConfigurationResponse(BaseModel):
    """Effective consent configuration; the secret key is masked."""
    consentURI: Optional[str] = None
    serviceKey: Optional[str] = None
    secretKey: Optional[str] = None


class ConfigurationUpdateRequest(BaseModel):
    """Request body for updating the consent configuration."""
    consentURI: Optional[str] = Field(None, min_length=1, description="Consent manager base URI")
    serviceKey: Optional[str] = Field(None, min_length=1)
    secretKey: Optional[str] = Field(None, min_length=1)
