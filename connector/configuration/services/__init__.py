from connector.configuration.services.configuration_service import ConfigurationService

__all__ = ["ConfigurationService"]
