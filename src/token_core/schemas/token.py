# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""Token endpoint request, response and error schemas (RFC 6749 §4-5)."""

from enum import Enum
from typing import Any

from beartype import beartype
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AccessTokenRequest(BaseModel):
    """Parsed token request body.

    Every field is optional here; each grant processor decides which ones it
    requires. Blank values count as absent. Credentials, codes and tokens are
    kept byte-for-byte; only grant_type and scope are trimmed.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    grant_type: str | None = None
    client_id: str | None = None
    client_secret: str | None = Field(default=None, repr=False)
    code: str | None = Field(default=None, repr=False)
    redirect_uri: str | None = None
    refresh_token: str | None = Field(default=None, repr=False)
    scope: str | None = None

    @field_validator("grant_type", "scope")
    @classmethod
    def strip_protocol_fields(cls, v: str | None) -> str | None:
        """Trim surrounding whitespace from non-secret protocol fields."""
        return v.strip() if v is not None else None

    @beartype
    def missing(self, *names: str) -> list[str]:
        """Return the required fields that are absent or blank, in order."""
        return [name for name in names if not (getattr(self, name) or "").strip()]


class AccessTokenResponse(BaseModel):
    """Successful token response (RFC 6749 §5.1)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., ge=0)
    refresh_token: str | None = None
    scope: str

    @beartype
    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire, omitting an absent refresh token."""
        return self.model_dump(exclude_none=True)


class OAuth2ErrorCode(str, Enum):
    """Token endpoint error codes (RFC 6749 §5.2)."""

    INVALID_REQUEST = "invalid_request"
    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    INVALID_SCOPE = "invalid_scope"


DEFAULT_DESCRIPTIONS: dict[OAuth2ErrorCode, str] = {
    OAuth2ErrorCode.INVALID_REQUEST: "The request is missing a required parameter.",
    OAuth2ErrorCode.INVALID_CLIENT: "Client authentication failed.",
    OAuth2ErrorCode.INVALID_GRANT: (
        "The provided authorization grant or refresh token is invalid, "
        "expired, revoked, or was issued to another client."
    ),
    OAuth2ErrorCode.UNAUTHORIZED_CLIENT: (
        "The client is not authorized to use this grant type."
    ),
    OAuth2ErrorCode.UNSUPPORTED_GRANT_TYPE: "The grant type is not supported.",
    OAuth2ErrorCode.INVALID_SCOPE: "The requested scope is invalid or unknown.",
}


class OAuth2Error(BaseModel):
    """Error response body (RFC 6749 §5.2). Descriptions never carry secrets."""

    model_config = ConfigDict(frozen=True, extra="forbid", use_enum_values=False)

    error: OAuth2ErrorCode
    error_description: str

    @beartype
    def to_dict(self) -> dict[str, str]:
        """Serialize for the wire."""
        return {"error": self.error.value, "error_description": self.error_description}


@beartype
def oauth_error(code: OAuth2ErrorCode, description: str | None = None) -> OAuth2Error:
    """Build an error, falling back to the code's stock description."""
    return OAuth2Error(
        error=code, error_description=description or DEFAULT_DESCRIPTIONS[code]
    )
