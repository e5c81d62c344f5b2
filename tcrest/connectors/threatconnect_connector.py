"""
ThreatConnect Connector

Signed client for the ThreatConnect v2 REST API. Every operation reduces
to one ResourceQuery: the path builder resolves it, the signer signs the
exact request target, and the response normalizer flattens the envelope.
"""
from datetime import date, datetime
from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from tcrest.config import ClientSettings, Credentials
from tcrest.connectors.base import BaseConnector
from tcrest.connectors.signer import Signer
from tcrest.errors import InvalidQueryError, TransportError
from tcrest.models.entities import (
    AttributePayload,
    AttributeValuePayload,
    EmailPayload,
    GroupPayload,
    IncidentPayload,
    IndicatorPayload,
    SignaturePayload,
)
from tcrest.models.resources import (
    GROUP_TYPES,
    ById,
    ByIndicator,
    ByParentId,
    BySignatureDownload,
    FilterVariant,
    IndicatorDetail,
    IndicatorType,
    Pagination,
    ResourceFamily,
    ResourceQuery,
    VictimAssetType,
)
from tcrest.normalization.response_normalizer import Failure, ResponseNormalizer, ResultSet
from tcrest.utils.dates import to_platform_timestamp
from tcrest.utils.path_builder import build_path


Result = Union[ResultSet, Failure]
Record = Dict[str, Any]

# Entities that can carry attributes, tags and security labels
AttachTarget = Union[ByParentId, ByIndicator]


class ThreatConnectConnector(BaseConnector):
    """
    Connector for the ThreatConnect v2 API

    List operations return a ResultSet, single-record operations return
    the record; both return a Failure instead when the platform reports
    an error or cannot be reached. Invalid queries raise InvalidQueryError
    before any request is made.
    """

    def __init__(self, credentials: Credentials, settings: Optional[ClientSettings] = None):
        """
        Initialize ThreatConnect connector

        Args:
            credentials: API credentials and base URL
            settings: Timeout and retry settings

        Raises:
            ConfigurationError: If the credentials are incomplete
        """
        self.signer = Signer(credentials)
        self.credentials = credentials
        super().__init__(base_url=credentials.base_url, settings=settings)
        self.normalizer = ResponseNormalizer()

    @classmethod
    def from_env(cls) -> "ThreatConnectConnector":
        """Build a connector from TC_* environment variables"""
        return cls(Credentials.from_env(), ClientSettings.from_env())

    def _get_auth_headers(self, method: str, target: str) -> Dict[str, str]:
        """
        Return ThreatConnect authentication headers

        Returns:
            Dictionary with Timestamp and Authorization headers
        """
        return self.signer.sign(method, target).headers

    # ------------------------------------------------------------------
    # Generic query
    # ------------------------------------------------------------------

    def build_query(self, family: ResourceFamily, filter: Optional[FilterVariant] = None, **fields) -> ResourceQuery:
        """
        Build a ResourceQuery, reporting bad input as InvalidQueryError

        Args:
            family: Resource family
            filter: Filter variant (defaults to the whole collection)
            **fields: Other ResourceQuery fields (owner, pagination, ...)
        """
        if filter is not None:
            fields["filter"] = filter
        try:
            return ResourceQuery(family=family, **fields)
        except ValidationError as e:
            raise InvalidQueryError(f"Invalid query for {family}: {e}") from e

    def query(self, query: ResourceQuery, method: str = "GET", body: Optional[Any] = None) -> Result:
        """
        Execute a resource query

        Args:
            query: Resource query
            method: HTTP method
            body: Optional JSON body

        Returns:
            ResultSet on success, Failure otherwise

        Raises:
            InvalidQueryError: If the query has no valid path
        """
        path = build_path(query)

        try:
            response = self._make_request(method, path, body)
        except TransportError as e:
            self.logger.warning(f"{method} {path} failed: {e}")
            return Failure(e)

        result = self.normalizer.normalize(response)

        if isinstance(result, Failure):
            self.logger.warning(f"{method} {path} returned {result.status}")
        else:
            self.logger.info(f"{method} {path} returned resultCount={result.result_count}")

        return result

    def _list(self, family: ResourceFamily, filter, owner, pagination, **selectors) -> Result:
        query = self.build_query(
            family,
            filter,
            owner=owner,
            pagination=pagination,
            **selectors
        )
        return self.query(query)

    def _single(self, result: Result) -> Union[Record, Failure]:
        if isinstance(result, Failure):
            return result
        return result.first()

    # ------------------------------------------------------------------
    # List operations
    # ------------------------------------------------------------------

    def list_owners(self, filter: Optional[FilterVariant] = None, pagination: Optional[Pagination] = None) -> Result:
        """Owners visible to the API user, or the owners of one indicator"""
        return self._list(ResourceFamily.OWNERS, filter, None, pagination)

    def list_groups(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        """Groups of every type"""
        return self._list(ResourceFamily.GROUPS, filter, owner, pagination)

    def list_adversaries(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.ADVERSARIES, filter, owner, pagination)

    def list_emails(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.EMAILS, filter, owner, pagination)

    def list_incidents(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.INCIDENTS, filter, owner, pagination)

    def list_signatures(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.SIGNATURES, filter, owner, pagination)

    def list_threats(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.THREATS, filter, owner, pagination)

    def list_attributes(self, filter: AttachTarget, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        """Attributes of one group or indicator"""
        return self._list(ResourceFamily.ATTRIBUTES, filter, owner, pagination)

    def list_security_labels(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.SECURITY_LABELS, filter, owner, pagination)

    def list_tags(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.TAGS, filter, owner, pagination)

    def list_victims(self, filter=None, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        return self._list(ResourceFamily.VICTIMS, filter, owner, pagination)

    def list_victim_assets(
        self,
        filter,
        asset_type: Optional[VictimAssetType] = None,
        owner: Optional[str] = None,
        pagination: Optional[Pagination] = None
    ) -> Result:
        """Assets of one victim, or of the victims of one group"""
        return self._list(ResourceFamily.VICTIM_ASSETS, filter, owner, pagination, asset_type=asset_type)

    def list_indicators(
        self,
        filter=None,
        indicator_type: Optional[IndicatorType] = None,
        owner: Optional[str] = None,
        pagination: Optional[Pagination] = None
    ) -> Result:
        """Indicators, optionally narrowed to one indicator type"""
        return self._list(ResourceFamily.INDICATORS, filter, owner, pagination, indicator_type=indicator_type)

    def list_dns_resolutions(self, host: str, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        """DNS resolutions recorded for a Host indicator"""
        return self._list(
            ResourceFamily.INDICATORS,
            _validated(ByIndicator, indicator_type=IndicatorType.HOST, value=host),
            owner,
            pagination,
            indicator_detail=IndicatorDetail.DNS_RESOLUTIONS
        )

    def list_file_occurrences(self, file_hash: str, owner: Optional[str] = None, pagination: Optional[Pagination] = None) -> Result:
        """Known file names and paths for a File indicator"""
        return self._list(
            ResourceFamily.INDICATORS,
            _validated(ByIndicator, indicator_type=IndicatorType.FILE, value=file_hash),
            owner,
            pagination,
            indicator_detail=IndicatorDetail.FILE_OCCURRENCES
        )

    # ------------------------------------------------------------------
    # Single entities
    # ------------------------------------------------------------------

    def get_group(self, group_type: ResourceFamily, group_id: int, owner: Optional[str] = None) -> Union[Record, Failure]:
        _check_group_type(group_type)
        return self._single(self._list(group_type, _validated(ById, id=group_id), owner, None))

    def get_indicator(self, indicator_type: IndicatorType, value: str, owner: Optional[str] = None) -> Union[Record, Failure]:
        return self._single(self._list(
            ResourceFamily.INDICATORS,
            _validated(ByIndicator, indicator_type=indicator_type, value=value),
            owner,
            None
        ))

    def download_signature(self, signature_id: int, owner: Optional[str] = None) -> Union[str, Failure]:
        """
        Download the file content of a signature

        The endpoint answers with the raw file rather than a JSON envelope;
        a JSON failure envelope is still normalized into a Failure.
        """
        query = self.build_query(
            ResourceFamily.SIGNATURES,
            _validated(BySignatureDownload, id=signature_id),
            owner=owner
        )
        path = build_path(query)

        try:
            response = self._make_request("GET", path, expect_json=False)
        except TransportError as e:
            self.logger.warning(f"GET {path} failed: {e}")
            return Failure(e)

        if response.status_code >= 400:
            try:
                envelope = response.json()
            except ValueError:
                envelope = None
            failure = self.normalizer.normalize(envelope)
            if isinstance(failure, Failure):
                return failure
            return Failure(TransportError(f"HTTP {response.status_code} from GET {path}", status_code=response.status_code))

        return response.text

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _create_group(self, group_type: ResourceFamily, payload: BaseModel, owner: Optional[str]) -> Union[Record, Failure]:
        query = self.build_query(group_type, owner=owner)
        return self._single(self.query(query, "POST", payload.to_body()))

    def create_adversary(self, name: str, owner: Optional[str] = None) -> Union[Record, Failure]:
        return self._create_group(ResourceFamily.ADVERSARIES, _validated(GroupPayload, name=name), owner)

    def create_threat(self, name: str, owner: Optional[str] = None) -> Union[Record, Failure]:
        return self._create_group(ResourceFamily.THREATS, _validated(GroupPayload, name=name), owner)

    def create_email(
        self,
        name: str,
        subject: str,
        header: str,
        body: str,
        to: Optional[str] = None,
        from_: Optional[str] = None,
        score: Optional[int] = None,
        owner: Optional[str] = None
    ) -> Union[Record, Failure]:
        payload = _validated(
            EmailPayload,
            name=name,
            subject=subject,
            header=header,
            body=body,
            to=to,
            from_=from_,
            score=score
        )
        return self._create_group(ResourceFamily.EMAILS, payload, owner)

    def create_incident(
        self,
        name: str,
        event_date: Union[str, date, datetime],
        owner: Optional[str] = None
    ) -> Union[Record, Failure]:
        """
        Create an incident

        Raises:
            DateConversionError: If event_date cannot be converted
        """
        payload = _validated(IncidentPayload, name=name, event_date=to_platform_timestamp(event_date))
        return self._create_group(ResourceFamily.INCIDENTS, payload, owner)

    def create_signature(
        self,
        name: str,
        file_name: str,
        file_type: str,
        file_text: str,
        owner: Optional[str] = None
    ) -> Union[Record, Failure]:
        payload = _validated(
            SignaturePayload,
            name=name,
            file_name=file_name,
            file_type=file_type,
            file_text=file_text
        )
        return self._create_group(ResourceFamily.SIGNATURES, payload, owner)

    def update_group(
        self,
        group_type: ResourceFamily,
        group_id: int,
        fields: Dict[str, Any],
        owner: Optional[str] = None
    ) -> Union[Record, Failure]:
        """Update fields of a group; field names are sent as given"""
        _check_group_type(group_type)
        if not fields:
            raise InvalidQueryError("No fields to update")
        query = self.build_query(group_type, _validated(ById, id=group_id), owner=owner)
        return self._single(self.query(query, "PUT", dict(fields)))

    def delete_group(self, group_type: ResourceFamily, group_id: int, owner: Optional[str] = None) -> Union[bool, Failure]:
        _check_group_type(group_type)
        query = self.build_query(group_type, _validated(ById, id=group_id), owner=owner)
        return _acknowledged(self.query(query, "DELETE"))

    def associate_group(self, indicator: ByIndicator, group_type: ResourceFamily, group_id: int) -> Union[bool, Failure]:
        """Associate a group with an indicator"""
        _check_group_type(group_type)
        query = self.build_query(group_type, indicator, member=str(group_id))
        return _acknowledged(self.query(query, "POST"))

    # ------------------------------------------------------------------
    # Indicators
    # ------------------------------------------------------------------

    def create_indicator(
        self,
        indicator_type: IndicatorType,
        value: str,
        rating: Optional[float] = None,
        confidence: Optional[int] = None,
        owner: Optional[str] = None
    ) -> Union[Record, Failure]:
        payload = _validated(
            IndicatorPayload,
            indicator_type=indicator_type,
            value=value,
            rating=rating,
            confidence=confidence
        )
        query = self.build_query(ResourceFamily.INDICATORS, owner=owner, indicator_type=indicator_type)
        return self._single(self.query(query, "POST", payload.to_body()))

    def delete_indicator(self, indicator_type: IndicatorType, value: str, owner: Optional[str] = None) -> Union[bool, Failure]:
        query = self.build_query(
            ResourceFamily.INDICATORS,
            _validated(ByIndicator, indicator_type=indicator_type, value=value),
            owner=owner
        )
        return _acknowledged(self.query(query, "DELETE"))

    # ------------------------------------------------------------------
    # Attributes, tags and security labels
    # ------------------------------------------------------------------

    def add_attribute(
        self,
        target: AttachTarget,
        attribute_type: str,
        value: str,
        displayed: Optional[bool] = None
    ) -> Union[Record, Failure]:
        """Add an attribute to a group or indicator"""
        payload = _validated(AttributePayload, type=attribute_type, value=value, displayed=displayed)
        query = self.build_query(ResourceFamily.ATTRIBUTES, target)
        return self._single(self.query(query, "POST", payload.to_body()))

    def set_attribute_value(self, target: AttachTarget, attribute_id: int, value: str) -> Union[Record, Failure]:
        """Replace the value of an existing attribute"""
        payload = _validated(AttributeValuePayload, value=value)
        query = self.build_query(ResourceFamily.ATTRIBUTES, target, member=str(attribute_id))
        return self._single(self.query(query, "PUT", payload.to_body()))

    def delete_attribute(self, target: AttachTarget, attribute_id: int) -> Union[bool, Failure]:
        query = self.build_query(ResourceFamily.ATTRIBUTES, target, member=str(attribute_id))
        return _acknowledged(self.query(query, "DELETE"))

    def add_tag(self, target: AttachTarget, tag_name: str) -> Union[bool, Failure]:
        query = self.build_query(ResourceFamily.TAGS, target, member=tag_name)
        return _acknowledged(self.query(query, "POST"))

    def remove_tag(self, target: AttachTarget, tag_name: str) -> Union[bool, Failure]:
        query = self.build_query(ResourceFamily.TAGS, target, member=tag_name)
        return _acknowledged(self.query(query, "DELETE"))

    def apply_security_label(self, target: AttachTarget, label_name: str) -> Union[bool, Failure]:
        query = self.build_query(ResourceFamily.SECURITY_LABELS, target, member=label_name)
        return _acknowledged(self.query(query, "POST"))


def _check_group_type(group_type: ResourceFamily):
    if group_type not in GROUP_TYPES:
        raise InvalidQueryError(f"{group_type} is not a group type")


def _validated(model: Type[BaseModel], **fields) -> BaseModel:
    """Validate a filter or write payload, reporting bad input as InvalidQueryError"""
    try:
        return model(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise InvalidQueryError(f"Invalid {model.__name__}: {e}") from e


def _acknowledged(result: Result) -> Union[bool, Failure]:
    return result if isinstance(result, Failure) else True
