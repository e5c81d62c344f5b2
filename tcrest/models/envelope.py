"""
Wire-level models: the signed request and the JSON response envelope
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


SUCCESS_STATUS = "Success"


class SignedRequest(BaseModel):
    """Authentication material for one request, valid for the second it was made"""

    method: str
    path: str
    timestamp: int
    authorization: str

    model_config = ConfigDict(frozen=True)

    @property
    def headers(self) -> Dict[str, str]:
        """Headers the platform expects on every call"""
        return {
            "Timestamp": str(self.timestamp),
            "Authorization": self.authorization,
        }


class APIEnvelope(BaseModel):
    """
    Response envelope returned by every v2 endpoint

    Example:
        {"status": "Success", "data": {"resultCount": 1, "adversary": [{"id": 1}]}}
    """

    status: str = Field(..., description="'Success' or a failure description")
    data: Dict[str, Any] = Field(default_factory=dict)
    message: Optional[str] = Field(default=None, description="Failure detail, if any")

    model_config = ConfigDict(extra='allow')

    @field_validator('data', mode='before')
    @classmethod
    def default_missing_data(cls, v):
        """Failure envelopes may carry "data": null"""
        return {} if v is None else v

    @property
    def is_success(self) -> bool:
        return self.status == SUCCESS_STATUS
