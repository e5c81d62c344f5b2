"""
URL Canonicalizer

Pins the request URL to the exact string that was signed. requests
re-quotes URLs while preparing a request, which can rewrite escape
sequences inside already-escaped indicator values; the prepared URL is
therefore overwritten after preparation. urllib3 still percent-encodes
invalid characters when it writes the request line, so the target it
will send is checked against the signed request target.
"""
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import requests
from urllib3.util import parse_url

from tcrest.errors import TransportError


def base_path_prefix(base_url: str) -> str:
    """Path component of the base URL, e.g. '/api' for hosted instances"""
    return urlsplit(base_url).path.rstrip('/')


def request_target(base_url: str, path: str) -> str:
    """
    Request target as it appears on the HTTP request line

    This is the string the platform verifies the signature against, so it
    includes any path prefix of the base URL.
    """
    return base_path_prefix(base_url) + path


def canonicalize(base_url: str, path: str) -> str:
    """
    Compose the full URL without re-escaping anything in path

    Args:
        base_url: API root, e.g. "https://api.threatconnect.com"
        path: Built path with query string, already escaped

    Returns:
        Absolute URL
    """
    return base_url.rstrip('/') + path


def wire_target(url: str) -> str:
    """Path and query string of a URL as urllib3 will put them on the request line"""
    return parse_url(url).request_uri


def prepare_exact(
    session: requests.Session,
    method: str,
    base_url: str,
    path: str,
    headers: Dict[str, str],
    json_body: Optional[Any] = None
) -> requests.PreparedRequest:
    """
    Prepare a request whose URL is exactly canonicalize(base_url, path)

    Args:
        session: Session supplying default headers
        method: HTTP method
        base_url: API root
        path: Built path with query string
        headers: Signature headers
        json_body: Optional JSON body

    Returns:
        PreparedRequest ready for session.send()

    Raises:
        TransportError: If the target on the wire differs from the signed target
    """
    url = canonicalize(base_url, path)

    request = requests.Request(method, url, headers=headers, json=json_body)
    prepared = session.prepare_request(request)
    prepared.url = url

    signed = request_target(base_url, path)
    sent = wire_target(prepared.url)
    if sent != signed:
        raise TransportError(f"Request target {sent!r} does not match signed path {signed!r}")

    return prepared
