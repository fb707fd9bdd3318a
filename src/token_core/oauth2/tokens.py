# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Token generation: mint, persist and assemble responses."""

from datetime import datetime, timedelta, timezone

from attrs import field, frozen
from beartype import beartype

from ..core.config import Settings
from ..core.security import new_token_value
from ..models.oauth2 import AccessToken, Client, GrantType, RefreshToken, Scope
from ..schemas.token import AccessTokenResponse
from .gateway import DatastoreGateway
from .scopes import format_scope


@frozen
class TokenPolicy:
    """Immutable issuance policy shared by every grant processor."""

    access_token_ttl: timedelta = field(default=timedelta(hours=1))
    refresh_token_ttl: timedelta | None = field(default=timedelta(days=30))
    token_type: str = field(default="bearer")
    rotate_refresh_tokens: bool = field(default=False)
    issue_refresh_token_on_authorization_code: bool = field(default=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenPolicy":
        """Build the policy from application settings."""
        refresh_ttl = settings.refresh_token_ttl_seconds
        return cls(
            access_token_ttl=timedelta(seconds=settings.access_token_ttl_seconds),
            refresh_token_ttl=timedelta(seconds=refresh_ttl) if refresh_ttl else None,
            token_type=settings.token_type,
            rotate_refresh_tokens=settings.rotate_refresh_tokens,
            issue_refresh_token_on_authorization_code=(
                settings.issue_refresh_token_on_authorization_code
            ),
        )


@beartype
def utcnow() -> datetime:
    """Current time, timezone-aware."""
    return datetime.now(timezone.utc)


@beartype
async def generate_access_token(
    gateway: DatastoreGateway,
    client: Client,
    grant_type: GrantType,
    scope: Scope,
    policy: TokenPolicy,
) -> AccessToken:
    """Mint and persist an access token bound to client, grant type and scope."""
    issued_at = utcnow()
    token = AccessToken(
        token=new_token_value(),
        client_id=client.client_id,
        grant_type=grant_type.name,
        scope=scope,
        issued_at=issued_at,
        expires_at=issued_at + policy.access_token_ttl,
    )
    await gateway.insert_access_token(token)
    return token


@beartype
async def generate_refresh_token(
    gateway: DatastoreGateway,
    client: Client,
    scope: Scope,
    policy: TokenPolicy,
) -> RefreshToken:
    """Mint and persist a refresh token bound to client and scope."""
    issued_at = utcnow()
    expires_at = (
        issued_at + policy.refresh_token_ttl if policy.refresh_token_ttl else None
    )
    token = RefreshToken(
        token=new_token_value(),
        client_id=client.client_id,
        scope=scope,
        issued_at=issued_at,
        expires_at=expires_at,
    )
    await gateway.insert_refresh_token(token)
    return token


@beartype
def generate_token_response(
    access_token: AccessToken,
    refresh_token: RefreshToken | None = None,
    *,
    token_type: str = "bearer",
) -> AccessTokenResponse:
    """Assemble the response body. No side effects.

    ``refresh_token`` appears in the response only when one is passed in.
    """
    return AccessTokenResponse(
        access_token=access_token.token,
        token_type=token_type,
        expires_in=access_token.expires_in,
        refresh_token=refresh_token.token if refresh_token is not None else None,
        scope=format_scope(access_token.scope),
    )
