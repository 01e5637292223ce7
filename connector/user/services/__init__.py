from connector.user.services.user_service import UserService, serialize_user
from connector.user.services.consent_client import ConsentClient, ConsentCallResult
from connector.user.services.spreadsheet_service import UserSpreadsheetService

__all__ = [
    "UserService",
    "serialize_user",
    "ConsentClient",
    "ConsentCallResult",
    "UserSpreadsheetService",
]
