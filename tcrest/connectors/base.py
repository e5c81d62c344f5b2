"""
Base connector for signed REST APIs

This abstract base class provides common functionality for connectors:
- HTTP session management
- Per-attempt request signing through _get_auth_headers()
- Exact request targets (no re-escaping after signing)
- Optional retry logic for transient failures
- Structured logging
- Timeout handling
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential
)
import logging

from tcrest.config import ClientSettings
from tcrest.errors import TransportError
from tcrest.utils.url_canonicalizer import prepare_exact, request_target


def _should_retry_exception(exception):
    """
    Determine if exception should trigger a retry

    Retry on:
    - ConnectionError
    - Timeout
    - HTTPError with 5xx status (server errors)

    Do NOT retry on:
    - HTTPError with 4xx status (client errors)
    """
    if isinstance(exception, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return True

    if isinstance(exception, requests.exceptions.HTTPError):
        # Only retry if it's a server error (5xx)
        if exception.response is not None and exception.response.status_code >= 500:
            return True
        return False

    return False


class BaseConnector(ABC):
    """
    Abstract base class for signed API connectors

    Subclasses must implement:
    - _get_auth_headers(): Return authentication headers for one request
    """

    RETRY_MULTIPLIER = 1
    RETRY_MIN_WAIT = 1  # seconds
    RETRY_MAX_WAIT = 10  # seconds

    def __init__(self, base_url: str, settings: Optional[ClientSettings] = None):
        """
        Initialize connector

        Args:
            base_url: API root (trailing slash will be removed)
            settings: Timeout and retry settings
        """
        self.base_url = base_url.rstrip('/')
        self.settings = settings or ClientSettings()

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        # Configure structured logging
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def _get_auth_headers(self, method: str, target: str) -> Dict[str, str]:
        """
        Return authentication headers for one request

        Called once per attempt, so time-based signatures are always fresh.

        Args:
            method: HTTP method
            target: Request target exactly as sent (path and query string)

        Returns:
            Dictionary of HTTP headers
        """
        pass

    def close(self):
        """Close the HTTP session"""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _send(self, method: str, path: str, body: Optional[Any]) -> requests.Response:
        """
        Sign and send one attempt

        Raises:
            requests.RequestException: On connection errors, timeouts and 5xx
        """
        target = request_target(self.base_url, path)
        headers = self._get_auth_headers(method, target)
        prepared = prepare_exact(self.session, method, self.base_url, path, headers, body)

        self.logger.debug(f"Request: {method} {target}")

        response = self.session.send(prepared, timeout=self.settings.timeout)

        self.logger.debug(f"Response: {response.status_code} from {target}")

        # Server errors are raised so they can be retried; client errors
        # still carry a JSON envelope describing the failure
        if response.status_code >= 500:
            self.logger.warning(f"Server error: {method} {target} - {response.status_code}")
            response.raise_for_status()

        return response

    def _make_request(
        self,
        method: str,
        path: str,
        body: Optional[Any] = None,
        expect_json: bool = True
    ) -> Any:
        """
        Make a signed API request

        Retries (when settings.max_retries > 0) on:
        - Connection errors
        - Timeouts
        - HTTP 5xx errors

        Each attempt is signed again with a new timestamp.

        Args:
            method: HTTP method
            path: Built path with query string (appended to base_url)
            body: Optional JSON body
            expect_json: Parse the response as JSON (False returns the response)

        Returns:
            Parsed JSON response, or the requests.Response itself

        Raises:
            TransportError: On request failure after all attempts, or a
                non-JSON response where JSON was expected
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT
            ),
            retry=retry_if_exception(_should_retry_exception),
            reraise=True
        )

        try:
            response = retrying(self._send, method, path, body)

        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            self.logger.error(f"Server error: {method} {path} - {status_code}")
            raise TransportError(f"HTTP {status_code} from {method} {path}", status_code=status_code) from e

        except requests.exceptions.RequestException as e:
            self.logger.error(f"Request failed: {method} {path} - {str(e)}")
            raise TransportError(f"Request failed: {method} {path} - {e}") from e

        if not expect_json:
            return response

        try:
            return response.json()
        except ValueError as e:
            self.logger.error(f"Non-JSON response ({response.status_code}) from {method} {path}")
            raise TransportError(
                f"Non-JSON response ({response.status_code}) from {method} {path}",
                status_code=response.status_code
            ) from e
