"""
Connector-specific API exceptions.
"""

from common.utils.exceptions import BadRequestException


class ConsentNotConfiguredException(BadRequestException):
    """400 - No consent manager URI has been configured."""

    def __init__(self):
        super().__init__(
            message="Please add a consent URI with the environment or the configuration route.",
            code="CONSENT_URI_NOT_CONFIGURED",
        )
