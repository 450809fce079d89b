"""Request/response schemas for the authorization API"""
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from ...domain.models import AccessToken


class IssueTokenRequest(BaseModel):
    """Request to issue an access token"""
    kind: str = Field(..., description="Operation kind the token authorizes")
    target_id: str = Field(..., min_length=1, description="Employee or inventory item id")
    details: Dict[str, Any] = Field(default_factory=dict)
    ttl_seconds: Optional[int] = Field(None, description="Defaults to the configured TTL")


class TokenResponse(BaseModel):
    """Access token as returned to clients"""
    token_id: str
    operation_kind: str
    target_id: str
    details: Dict[str, Any]
    status: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def from_token(cls, token: AccessToken) -> "TokenResponse":
        return cls(
            token_id=token.token_id,
            operation_kind=token.operation_kind.value,
            target_id=token.target_id,
            details=token.details,
            status=token.status.value,
            issued_at=token.issued_at,
            expires_at=token.expires_at,
        )
