"""
Path composition, URL canonicalization and date conversion utilities
"""
from tcrest.utils.dates import to_platform_timestamp
from tcrest.utils.path_builder import build_path
from tcrest.utils.url_canonicalizer import canonicalize, request_target

__all__ = ['build_path', 'canonicalize', 'request_target', 'to_platform_timestamp']
