"""
Client configuration

Credentials are set once and captured by a connector instance; several
connectors with different credentials can coexist in one process.
"""
import os
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from tcrest.errors import ConfigurationError


DEFAULT_BASE_URL = "https://api.threatconnect.com"


class Credentials(BaseModel):
    """ThreatConnect API credentials and base URL"""

    access_id: str = Field(..., description="API user access ID")
    secret_key: SecretStr = Field(..., description="API user secret key")
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="API root, optionally with a path prefix such as /api",
        examples=["https://api.threatconnect.com", "https://app.threatconnect.com/api"]
    )

    model_config = ConfigDict(frozen=True)

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v):
        """Require an http(s) URL and strip the trailing slash"""
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f'base_url must start with http:// or https://, got {v!r}')
        return v.rstrip('/')

    @classmethod
    def from_env(cls) -> "Credentials":
        """
        Load credentials from environment variables

        Reads TC_ACCESS_ID, TC_SECRET_KEY and TC_API_BASE_URL (optional)

        Returns:
            Credentials instance

        Raises:
            ConfigurationError: If a required variable is missing or invalid
        """
        access_id = os.getenv('TC_ACCESS_ID')
        secret_key = os.getenv('TC_SECRET_KEY')

        if not access_id:
            raise ConfigurationError("TC_ACCESS_ID not configured")
        if not secret_key:
            raise ConfigurationError("TC_SECRET_KEY not configured")

        try:
            return cls(
                access_id=access_id,
                secret_key=secret_key,
                base_url=os.getenv('TC_API_BASE_URL', DEFAULT_BASE_URL)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid credentials configuration: {e}") from e


class ClientSettings(BaseModel):
    """Transport settings for a connector"""

    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    max_retries: int = Field(
        default=0,
        ge=0,
        le=10,
        description="Extra attempts on connection errors, timeouts and 5xx (0 disables)"
    )

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls, timeout: Optional[float] = None) -> "ClientSettings":
        """
        Load settings from TC_API_TIMEOUT and TC_API_MAX_RETRIES

        Args:
            timeout: Overrides TC_API_TIMEOUT when given

        Raises:
            ConfigurationError: If a value cannot be parsed
        """
        try:
            return cls(
                timeout=timeout if timeout is not None else os.getenv('TC_API_TIMEOUT', 30.0),
                max_retries=os.getenv('TC_API_MAX_RETRIES', 0)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid client settings: {e}") from e
