"""
HMAC request signer for the ThreatConnect API

Message: {PATH}:{METHOD}:{TIMESTAMP}
Header:  Authorization: TC {ACCESS_ID}:{BASE64(HMAC-SHA256(secret, message))}
         Timestamp: {TIMESTAMP}
"""
import base64
import hashlib
import hmac
import time
from typing import Optional

from tcrest.config import Credentials
from tcrest.errors import ConfigurationError
from tcrest.models.envelope import SignedRequest


class Signer:
    """
    Signs (method, path) pairs with the API user's secret key

    The platform rejects stale timestamps, so a signature should be
    produced right before each send and never cached.
    """

    def __init__(self, credentials: Credentials):
        """
        Initialize signer

        Args:
            credentials: Credentials holding access ID and secret key

        Raises:
            ConfigurationError: If the access ID or secret key is empty
        """
        if credentials is None:
            raise ConfigurationError("Credentials not configured")
        if not credentials.access_id:
            raise ConfigurationError("Access ID not configured")
        if not credentials.secret_key.get_secret_value():
            raise ConfigurationError("Secret key not configured")

        self.access_id = credentials.access_id
        self._secret_key = credentials.secret_key.get_secret_value().encode('utf-8')

    def sign(self, method: str, path: str, timestamp: Optional[int] = None) -> SignedRequest:
        """
        Compute the authorization header for a request

        Args:
            method: HTTP method as sent (GET, POST, PUT, DELETE)
            path: Request target as sent, including any query string
            timestamp: Unix seconds; defaults to the current time

        Returns:
            SignedRequest with timestamp and authorization token
        """
        if timestamp is None:
            timestamp = int(time.time())

        message = f"{path}:{method}:{timestamp}"

        digest = hmac.new(
            self._secret_key,
            message.encode('utf-8'),
            hashlib.sha256
        ).digest()
        signature = base64.b64encode(digest).decode('ascii')

        return SignedRequest(
            method=method,
            path=path,
            timestamp=timestamp,
            authorization=f"TC {self.access_id}:{signature}"
        )
