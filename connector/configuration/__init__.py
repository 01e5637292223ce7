"""
Configuration System

Resolves and stores the consent manager connection settings.
"""

from connector.configuration.services.configuration_service import ConfigurationService

__all__ = [
    "ConfigurationService",
]
