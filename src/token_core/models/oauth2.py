# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""OAuth2 domain entities held in the datastore."""

from datetime import datetime
from enum import Enum

from beartype import beartype
from pydantic import Field

from .base import BaseModelConfig

# Ordered, de-duplicated permission strings
Scope = tuple[str, ...]


class GrantTypeName(str, Enum):
    """Grant types this engine knows how to process."""

    AUTHORIZATION_CODE = "authorization_code"
    CLIENT_CREDENTIALS = "client_credentials"
    REFRESH_TOKEN = "refresh_token"


class Client(BaseModelConfig):
    """Registered client application.

    The secret hash never lives on this model; it is checked through the
    gateway's ``verify_client_secret``.
    """

    client_id: str = Field(..., min_length=1, max_length=256)
    client_name: str = Field(default="", max_length=256)
    allowed_grant_types: tuple[str, ...] = Field(default_factory=tuple)
    allowed_scopes: Scope = Field(default_factory=tuple)
    redirect_uris: tuple[str, ...] = Field(default_factory=tuple)

    @beartype
    def has_redirect_uri(self, redirect_uri: str) -> bool:
        """Check whether the redirect URI is registered for this client."""
        return redirect_uri in self.redirect_uris

    @beartype
    def allows_grant(self, grant_type: str) -> bool:
        """Check whether this client may use the named grant type."""
        return grant_type in self.allowed_grant_types


class GrantType(BaseModelConfig):
    """A named protocol mode that can be switched off."""

    name: str = Field(..., min_length=1, max_length=32)
    enabled: bool = True


class AccessToken(BaseModelConfig):
    """Issued access token. Immutable; superseded, never updated."""

    token: str = Field(..., min_length=36, repr=False)
    client_id: str
    grant_type: str
    scope: Scope
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        """Lifetime in whole seconds, as reported to the client."""
        return int((self.expires_at - self.issued_at).total_seconds())


class RefreshToken(BaseModelConfig):
    """Issued refresh token."""

    token: str = Field(..., min_length=1, repr=False)
    client_id: str
    scope: Scope
    issued_at: datetime
    expires_at: datetime | None = None
    revoked_at: datetime | None = None

    @property
    def is_revoked(self) -> bool:
        """Whether the token has been revoked."""
        return self.revoked_at is not None

    @beartype
    def is_expired(self, now: datetime) -> bool:
        """Whether the token has expired at ``now``. Tokens without expiry never do."""
        return self.expires_at is not None and now >= self.expires_at


class AuthorizationCode(BaseModelConfig):
    """Single-use code issued by the front channel, redeemed here."""

    code: str = Field(..., min_length=1, repr=False)
    client_id: str
    scope: Scope
    redirect_uri: str | None = None
    user_id: str | None = None
    expires_at: datetime
    consumed_at: datetime | None = None

    @beartype
    def is_expired(self, now: datetime) -> bool:
        """Whether the code has expired at ``now``."""
        return now >= self.expires_at
