"""Base domain exceptions.

All domain exceptions inherit from DomainException and may set the
http_status_code and error_code class attributes to control the HTTP response.
"""

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain errors.

    Subclasses customise the HTTP response through class attributes:
    - http_status_code: HTTP status (default 400)
    - error_code: error code string (default "DOMAIN_ERROR")
    """

    http_status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "A domain error occurred"):
        self.message = message
        super().__init__(self.message)
