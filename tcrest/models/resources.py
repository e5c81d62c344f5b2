"""
Pydantic models describing a ThreatConnect resource query

A ResourceQuery names one resource family, exactly one filter variant,
and optional owner, pagination and sub-resource selectors. The path
builder turns it into a single request path.
"""
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceFamily(str, Enum):
    """Resource collections exposed by the v2 API"""
    OWNERS = "owners"
    GROUPS = "groups"
    ADVERSARIES = "adversaries"
    EMAILS = "emails"
    INCIDENTS = "incidents"
    SIGNATURES = "signatures"
    THREATS = "threats"
    ATTRIBUTES = "attributes"
    SECURITY_LABELS = "securityLabels"
    TAGS = "tags"
    VICTIMS = "victims"
    VICTIM_ASSETS = "victimAssets"
    INDICATORS = "indicators"


GROUP_TYPES = (
    ResourceFamily.ADVERSARIES,
    ResourceFamily.EMAILS,
    ResourceFamily.INCIDENTS,
    ResourceFamily.SIGNATURES,
    ResourceFamily.THREATS,
)


class IndicatorType(str, Enum):
    """Indicator types and their path segments"""
    ADDRESS = "Address"
    EMAIL_ADDRESS = "EmailAddress"
    FILE = "File"
    HOST = "Host"
    URL = "URL"

    @property
    def segment(self) -> str:
        return INDICATOR_SEGMENTS[self]


INDICATOR_SEGMENTS = {
    IndicatorType.ADDRESS: "addresses",
    IndicatorType.EMAIL_ADDRESS: "emailAddresses",
    IndicatorType.FILE: "files",
    IndicatorType.HOST: "hosts",
    IndicatorType.URL: "urls",
}


class VictimAssetType(str, Enum):
    """Victim asset sub-collections"""
    EMAIL_ADDRESS = "EmailAddress"
    NETWORK_ACCOUNT = "NetworkAccount"
    PHONE_NUMBER = "PhoneNumber"
    SOCIAL_NETWORK = "SocialNetwork"
    WEB_SITE = "WebSite"

    @property
    def segment(self) -> str:
        return VICTIM_ASSET_SEGMENTS[self]


VICTIM_ASSET_SEGMENTS = {
    VictimAssetType.EMAIL_ADDRESS: "emailAddresses",
    VictimAssetType.NETWORK_ACCOUNT: "networkAccounts",
    VictimAssetType.PHONE_NUMBER: "phoneNumbers",
    VictimAssetType.SOCIAL_NETWORK: "socialNetworks",
    VictimAssetType.WEB_SITE: "webSites",
}


class IndicatorDetail(str, Enum):
    """Sub-resources of a single Host or File indicator"""
    DNS_RESOLUTIONS = "dnsResolutions"
    FILE_OCCURRENCES = "fileOccurrences"


# Indicator type each detail sub-resource belongs to
DETAIL_INDICATOR_TYPES = {
    IndicatorDetail.DNS_RESOLUTIONS: IndicatorType.HOST,
    IndicatorDetail.FILE_OCCURRENCES: IndicatorType.FILE,
}


class NoFilter(BaseModel):
    """The whole collection"""
    kind: Literal["none"] = "none"

    model_config = ConfigDict(frozen=True)


class ById(BaseModel):
    """A single entity of the queried family"""
    kind: Literal["by_id"] = "by_id"
    id: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


class ByParentId(BaseModel):
    """Entities associated with one group"""
    kind: Literal["by_parent_id"] = "by_parent_id"
    parent_family: ResourceFamily
    id: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @field_validator('parent_family')
    @classmethod
    def validate_parent_family(cls, v):
        """Only concrete group types can be parents"""
        if v not in GROUP_TYPES:
            raise ValueError(f'parent_family must be a group type, got {v.value}')
        return v


class ByIndicator(BaseModel):
    """A single indicator, or the entities associated with it"""
    kind: Literal["by_indicator"] = "by_indicator"
    indicator_type: IndicatorType
    value: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class BySecurityLabel(BaseModel):
    """A security label, or the entities carrying it"""
    kind: Literal["by_security_label"] = "by_security_label"
    name: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class ByTagName(BaseModel):
    """A tag, or the entities carrying it"""
    kind: Literal["by_tag_name"] = "by_tag_name"
    name: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True)


class ByVictimId(BaseModel):
    """A victim, or the entities associated with it"""
    kind: Literal["by_victim_id"] = "by_victim_id"
    id: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


class BySignatureDownload(BaseModel):
    """The raw file of one signature"""
    kind: Literal["by_signature_download"] = "by_signature_download"
    id: int = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)


FilterVariant = Annotated[
    Union[
        NoFilter,
        ById,
        ByParentId,
        ByIndicator,
        BySecurityLabel,
        ByTagName,
        ByVictimId,
        BySignatureDownload,
    ],
    Field(discriminator="kind")
]


class Pagination(BaseModel):
    """Result window; limit defaults to the platform default of 100"""

    start: int = Field(default=0, ge=0, description="Index of the first result")
    limit: int = Field(default=100, ge=1, le=500, description="Maximum results per page")

    model_config = ConfigDict(frozen=True)


class ResourceQuery(BaseModel):
    """
    Structured description of one API request target

    Example:
        ResourceQuery(
            family=ResourceFamily.ADVERSARIES,
            filter=ByIndicator(indicator_type=IndicatorType.HOST, value="evil.example.com"),
            owner="Acme Co",
        )
    """

    family: ResourceFamily
    filter: FilterVariant = Field(default_factory=NoFilter)
    owner: Optional[str] = Field(default=None, min_length=1)
    pagination: Optional[Pagination] = None
    indicator_type: Optional[IndicatorType] = Field(
        default=None,
        description="Narrows an indicator collection, e.g. /indicators/hosts"
    )
    asset_type: Optional[VictimAssetType] = Field(
        default=None,
        description="Narrows a victim asset collection, e.g. /victimAssets/webSites"
    )
    indicator_detail: Optional[IndicatorDetail] = None
    member: Optional[str] = Field(
        default=None,
        min_length=1,
        description="One child of a relationship collection, e.g. a tag name or attribute id"
    )

    model_config = ConfigDict(frozen=True)
