"""
Pydantic models for User system request validation.

Extra fields are accepted and stored verbatim, like extra spreadsheet columns.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserCreateRequest(BaseModel):
    """Request body for creating a user."""
    model_config = ConfigDict(extra="allow")

    internalID: str = Field(..., min_length=1, description="Caller-supplied unique key")
    email: str = Field(..., min_length=3)


class UserUpdateRequest(BaseModel):
    """Request body for updating a user (partial update)."""
    model_config = ConfigDict(extra="allow")

    internalID: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3)

    @field_validator("internalID", "email", mode="before")
    @classmethod
    def reject_null(cls, v):
        """Omit a field to keep it; null may not clear a required field."""
        if v is None:
            raise ValueError("may not be null")
        return v
