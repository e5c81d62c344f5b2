"""
ThreatConnect v2 REST client

Signs requests, composes resource paths and normalizes response envelopes
"""
from tcrest.config import ClientSettings, Credentials
from tcrest.connectors.threatconnect_connector import ThreatConnectConnector
from tcrest.errors import (
    APIFailure,
    ConfigurationError,
    DateConversionError,
    InvalidQueryError,
    TCClientError,
    TransportError,
)
from tcrest.models.resources import (
    ById,
    ByIndicator,
    ByParentId,
    BySecurityLabel,
    BySignatureDownload,
    ByTagName,
    ByVictimId,
    IndicatorDetail,
    IndicatorType,
    NoFilter,
    Pagination,
    ResourceFamily,
    ResourceQuery,
    VictimAssetType,
)
from tcrest.normalization.response_normalizer import Failure, ResultSet

__version__ = "0.1.0"

__all__ = [
    'ThreatConnectConnector',
    'Credentials',
    'ClientSettings',
    'TCClientError',
    'ConfigurationError',
    'InvalidQueryError',
    'TransportError',
    'APIFailure',
    'DateConversionError',
    'ResourceFamily',
    'ResourceQuery',
    'IndicatorType',
    'IndicatorDetail',
    'VictimAssetType',
    'Pagination',
    'NoFilter',
    'ById',
    'ByParentId',
    'ByIndicator',
    'BySecurityLabel',
    'ByTagName',
    'ByVictimId',
    'BySignatureDownload',
    'ResultSet',
    'Failure',
]
