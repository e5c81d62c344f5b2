"""
Pydantic models for entity write payloads

Field names are snake_case in Python and serialized with the camelCase
aliases the platform expects.
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tcrest.models.resources import IndicatorType


class PayloadModel(BaseModel):
    """Common configuration for request bodies"""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_body(self) -> Dict[str, Any]:
        """JSON body as sent on the wire"""
        return self.model_dump(by_alias=True, exclude_none=True)


class GroupPayload(PayloadModel):
    """Adversary and Threat bodies only carry a name"""

    name: str = Field(..., min_length=1, max_length=255)


class EmailPayload(GroupPayload):
    """Email group body"""

    subject: str = Field(..., min_length=1)
    header: str = Field(..., min_length=1)
    body: str = Field(...)
    to: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    score: Optional[int] = Field(default=None, ge=0)


class IncidentPayload(GroupPayload):
    """Incident group body; event_date is already in platform format"""

    event_date: str = Field(
        ...,
        alias="eventDate",
        examples=["2024-01-01T12:00:00Z"]
    )


class SignatureFileType(str, Enum):
    """File formats the platform accepts for signatures"""
    SNORT = "Snort"
    SURICATA = "Suricata"
    YARA = "YARA"
    CLAMAV = "ClamAV"
    OPENIOC = "OpenIOC"
    CYBOX = "CybOX"
    BRO = "Bro"
    REGEX = "Regex"
    SPL = "SPL"


class SignaturePayload(GroupPayload):
    """Signature group body"""

    file_name: str = Field(..., alias="fileName", min_length=1)
    file_type: SignatureFileType = Field(..., alias="fileType")
    file_text: str = Field(..., alias="fileText")


class AttributePayload(PayloadModel):
    """Attribute attached to a group or indicator"""

    type: str = Field(..., min_length=1, examples=["Description", "Source"])
    value: str = Field(...)
    displayed: Optional[bool] = None


class AttributeValuePayload(PayloadModel):
    """Body of an attribute value update"""

    value: str = Field(...)


# Body key holding the indicator value, per indicator type
INDICATOR_VALUE_KEYS = {
    IndicatorType.ADDRESS: "ip",
    IndicatorType.EMAIL_ADDRESS: "address",
    IndicatorType.HOST: "hostName",
    IndicatorType.URL: "text",
}

# File indicators are keyed by hash length
HASH_KEYS = {32: "md5", 40: "sha1", 64: "sha256"}


class IndicatorPayload(BaseModel):
    """Indicator creation body"""

    indicator_type: IndicatorType
    value: str = Field(..., min_length=1)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    confidence: Optional[int] = Field(default=None, ge=0, le=100)

    @model_validator(mode='after')
    def validate_file_hash(self):
        """File indicators must be an MD5, SHA1 or SHA256 hex digest"""
        if self.indicator_type == IndicatorType.FILE:
            is_hex = all(c in '0123456789abcdefABCDEF' for c in self.value)
            if not is_hex or len(self.value) not in HASH_KEYS:
                raise ValueError(f'File indicator must be an MD5, SHA1 or SHA256 hash, got {self.value!r}')
        return self

    def to_body(self) -> Dict[str, Any]:
        if self.indicator_type == IndicatorType.FILE:
            body = {HASH_KEYS[len(self.value)]: self.value}
        else:
            body = {INDICATOR_VALUE_KEYS[self.indicator_type]: self.value}

        if self.rating is not None:
            body["rating"] = self.rating
        if self.confidence is not None:
            body["confidence"] = self.confidence
        return body
