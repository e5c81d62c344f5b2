"""
Tests for Pydantic data models
"""
import pytest
from pydantic import ValidationError

from tcrest.models.entities import (
    AttributePayload,
    EmailPayload,
    GroupPayload,
    IncidentPayload,
    IndicatorPayload,
    SignaturePayload,
)
from tcrest.models.envelope import APIEnvelope, SignedRequest
from tcrest.models.resources import (
    ByIndicator,
    IndicatorType,
    NoFilter,
    ResourceFamily,
    ResourceQuery,
    VictimAssetType,
)


@pytest.mark.unit
class TestResourceQuery:
    """Test ResourceQuery model"""

    def test_defaults(self):
        query = ResourceQuery(family=ResourceFamily.TAGS)

        assert query.filter == NoFilter()
        assert query.owner is None
        assert query.pagination is None

    def test_family_from_string(self):
        assert ResourceQuery(family="securityLabels").family == ResourceFamily.SECURITY_LABELS

    def test_unknown_family_rejected(self):
        with pytest.raises(ValidationError):
            ResourceQuery(family="campaigns")

    def test_empty_owner_rejected(self):
        with pytest.raises(ValidationError):
            ResourceQuery(family=ResourceFamily.TAGS, owner="")

    def test_unknown_filter_kind_rejected(self):
        with pytest.raises(ValidationError):
            ResourceQuery(family=ResourceFamily.TAGS, filter={"kind": "by_everything"})

    def test_filter_is_immutable(self):
        indicator = ByIndicator(indicator_type=IndicatorType.HOST, value="a.example.com")

        with pytest.raises(ValidationError):
            indicator.value = "b.example.com"

    def test_empty_indicator_value_rejected(self):
        with pytest.raises(ValidationError):
            ByIndicator(indicator_type=IndicatorType.HOST, value="")

    def test_segments(self):
        assert IndicatorType.EMAIL_ADDRESS.segment == "emailAddresses"
        assert VictimAssetType.SOCIAL_NETWORK.segment == "socialNetworks"


@pytest.mark.unit
class TestEnvelopeModels:
    """Test envelope and signed request models"""

    def test_success_envelope(self):
        envelope = APIEnvelope(status="Success", data={"resultCount": 0})

        assert envelope.is_success

    def test_null_data_defaults_to_empty(self):
        envelope = APIEnvelope(status="Failure", data=None)

        assert envelope.data == {}
        assert not envelope.is_success

    def test_extra_fields_allowed(self):
        envelope = APIEnvelope(status="Success", apiCalls=3)

        assert envelope.model_extra["apiCalls"] == 3

    def test_signed_request_headers(self):
        signed = SignedRequest(method="GET", path="/v2/owners", timestamp=10, authorization="TC a:b")

        assert signed.headers == {"Timestamp": "10", "Authorization": "TC a:b"}


@pytest.mark.unit
class TestPayloads:
    """Test write payload serialization"""

    def test_group_payload(self):
        assert GroupPayload(name="Bad Guy").to_body() == {"name": "Bad Guy"}

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            GroupPayload(name="")

    def test_email_aliases(self):
        payload = EmailPayload(name="n", subject="s", header="h", body="b", to="a@example.com", from_="c@example.com")

        assert payload.to_body() == {
            "name": "n",
            "subject": "s",
            "header": "h",
            "body": "b",
            "to": "a@example.com",
            "from": "c@example.com",
        }

    def test_incident_alias(self):
        payload = IncidentPayload(name="i", event_date="2024-01-01T00:00:00Z")

        assert payload.to_body() == {"name": "i", "eventDate": "2024-01-01T00:00:00Z"}

    def test_signature_file_type(self):
        payload = SignaturePayload(name="s", file_name="a.rules", file_type="Snort", file_text="alert")

        assert payload.to_body()["fileType"] == "Snort"

    def test_attribute_payload(self):
        assert AttributePayload(type="Source", value="OSINT").to_body() == {"type": "Source", "value": "OSINT"}

    @pytest.mark.parametrize("indicator_type,value,key", [
        (IndicatorType.ADDRESS, "10.0.0.1", "ip"),
        (IndicatorType.EMAIL_ADDRESS, "bad@example.com", "address"),
        (IndicatorType.HOST, "evil.example.com", "hostName"),
        (IndicatorType.URL, "http://example.com/a b", "text"),
        (IndicatorType.FILE, "d41d8cd98f00b204e9800998ecf8427e", "md5"),
        (IndicatorType.FILE, "da39a3ee5e6b4b0d3255bfef95601890afd80709", "sha1"),
        (IndicatorType.FILE, "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855", "sha256"),
    ])
    def test_indicator_body_keys(self, indicator_type, value, key):
        body = IndicatorPayload(indicator_type=indicator_type, value=value).to_body()

        assert body == {key: value}

    def test_file_indicator_requires_hash(self):
        with pytest.raises(ValidationError):
            IndicatorPayload(indicator_type=IndicatorType.FILE, value="not-a-hash")

    def test_rating_out_of_range(self):
        with pytest.raises(ValidationError):
            IndicatorPayload(indicator_type=IndicatorType.HOST, value="a.example.com", rating=6)
