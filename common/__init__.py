"""
Common library for reusable infrastructure components.

This package provides generic modules that can be used
across multiple projects:

- database: Async MongoDB connection with Motor
- auth: Pluggable bearer-token authentication (JWT)
- utils: Standard responses and exceptions
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import AuthProvider, JWTAuth, create_auth_dependency
from common.utils import (
    success_response,
    error_response,
    list_response,
    APIException,
    UnauthorizedException,
    NotFoundException,
    ConflictException,
    ValidationException,
    BadGatewayException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "AuthProvider",
    "JWTAuth",
    "create_auth_dependency",
    # Utils
    "success_response",
    "error_response",
    "list_response",
    "APIException",
    "UnauthorizedException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "BadGatewayException",
    # Config
    "BaseAppSettings",
]
