"""
Connector API Routers.

All routers are imported here for easy access.
"""

from connector.user.router import router as user_router
from connector.configuration.router import router as configuration_router

__all__ = [
    "user_router",
    "configuration_router",
]
