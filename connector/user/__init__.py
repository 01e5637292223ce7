"""
User System

Manages connector users, their consent manager registration,
and bulk spreadsheet import.
"""

from connector.user.services.user_service import UserService
from connector.user.services.consent_client import ConsentClient, ConsentCallResult
from connector.user.services.spreadsheet_service import UserSpreadsheetService

__all__ = [
    "UserService",
    "ConsentClient",
    "ConsentCallResult",
    "UserSpreadsheetService",
]
