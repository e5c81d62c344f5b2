"""
Exception hierarchy for the ThreatConnect client

ConfigurationError and InvalidQueryError are raised before any network
call. TransportError and APIFailure are carried inside a Failure result
by the connector, and only raised when the caller unwraps it.
"""
from typing import Optional


class TCClientError(Exception):
    """
    Base exception for the client

    All client errors inherit from this class so callers can catch them
    with a single except clause.
    """

    def __init__(self, message: str, safe_message: Optional[str] = None):
        """
        Initialize exception

        Args:
            message: Full error message (for logging)
            safe_message: Message safe to show to end users
        """
        super().__init__(message)
        self.safe_message = safe_message or message


class ConfigurationError(TCClientError):
    """
    Credentials or settings are missing or invalid

    Raised when:
    - Access ID or secret key is missing
    - Base URL is not an http(s) URL
    - Numeric settings cannot be parsed
    """
    pass


class InvalidQueryError(TCClientError):
    """
    Unsupported combination of resource family, filter and sub-resource

    Raised when:
    - No path template exists for (resource family, filter kind)
    - A sub-resource is requested for an incompatible family or filter
    - A write payload fails validation
    """
    pass


class TransportError(TCClientError):
    """Network, TLS or timeout failure reaching the API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message,
            safe_message="Unable to reach the ThreatConnect API"
        )
        self.status_code = status_code


class APIFailure(TCClientError):
    """
    The HTTP call succeeded but the envelope status is not "Success"

    Attributes:
        status: Status string exactly as returned by the platform
        message: Optional platform-provided detail message
    """

    def __init__(self, status: str, message: Optional[str] = None):
        detail = f"{status}: {message}" if message else status
        super().__init__(f"API request failed - {detail}")
        self.status = status
        self.message = message


class DateConversionError(TCClientError):
    """A date value cannot be converted to the platform timestamp format"""

    def __init__(self, value):
        super().__init__(f"Cannot convert {value!r} to a platform timestamp")
        self.value = value
