# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Read-only checks shared by the grant processors.

Each check returns ``Ok(entity)`` or ``Err(OAuth2Error)`` and never writes,
except ``find_and_consume_authorization_code`` which the caller performs
before ``check_authorization_code``.
"""

from datetime import datetime

from beartype import beartype

from ..core.result_types import Err, Ok, Result
from ..models.oauth2 import AuthorizationCode, Client, GrantType, RefreshToken, Scope
from ..schemas.token import OAuth2Error, OAuth2ErrorCode, oauth_error
from .gateway import DatastoreGateway
from .scopes import excess_scopes, parse_scope

# Shared by "unknown token" and "token issued to someone else" on purpose.
_INVALID_REFRESH_TOKEN = "The refresh token is invalid, expired, or revoked."
_INVALID_CODE = "The authorization code is invalid, expired, or already used."


@beartype
async def check_client_credentials(
    gateway: DatastoreGateway, client_id: str, client_secret: str
) -> Result[Client, OAuth2Error]:
    """Authenticate a client.

    Unknown client and wrong secret produce the same error, and the secret
    check runs in both cases.
    """
    client = await gateway.find_client_by_id(client_id)
    secret_ok = await gateway.verify_client_secret(client_id, client_secret)
    if client is None or not secret_ok:
        return Err(oauth_error(OAuth2ErrorCode.INVALID_CLIENT))
    return Ok(client)


@beartype
async def check_grant_type(
    gateway: DatastoreGateway, name: str
) -> Result[GrantType, OAuth2Error]:
    """Confirm a grant type exists and is enabled."""
    grant_type = await gateway.find_grant_type_by_name(name)
    if grant_type is None or not grant_type.enabled:
        return Err(oauth_error(OAuth2ErrorCode.UNSUPPORTED_GRANT_TYPE))
    return Ok(grant_type)


@beartype
def check_client_grant(client: Client, grant_type: GrantType) -> Result[GrantType, OAuth2Error]:
    """Confirm the client is registered for the grant type."""
    if not client.allows_grant(grant_type.name):
        return Err(oauth_error(OAuth2ErrorCode.UNAUTHORIZED_CLIENT))
    return Ok(grant_type)


@beartype
def check_scope(requested: str | None, granted: Scope) -> Result[Scope, OAuth2Error]:
    """Validate a requested scope string against what was granted.

    The request must name at least one scope and none outside ``granted``.
    Asking for exactly the granted set is allowed.
    """
    scope = parse_scope(requested)
    if not scope:
        return Err(
            oauth_error(
                OAuth2ErrorCode.INVALID_SCOPE, "At least one scope must be requested."
            )
        )

    excess = excess_scopes(scope, granted)
    if excess:
        return Err(
            oauth_error(
                OAuth2ErrorCode.INVALID_SCOPE,
                f"Requested scope exceeds the grant: {' '.join(excess)}",
            )
        )
    return Ok(scope)


@beartype
async def check_refresh_token(
    gateway: DatastoreGateway, token: str, now: datetime
) -> Result[RefreshToken, OAuth2Error]:
    """Look up a refresh token and reject it if revoked or expired."""
    record = await gateway.find_refresh_token_by_value(token)
    if record is None or record.is_revoked or record.is_expired(now):
        return Err(oauth_error(OAuth2ErrorCode.INVALID_GRANT, _INVALID_REFRESH_TOKEN))
    return Ok(record)


@beartype
def check_refresh_token_owner(
    record: RefreshToken, client: Client
) -> Result[RefreshToken, OAuth2Error]:
    """Confirm the refresh token was issued to the authenticated client."""
    if record.client_id != client.client_id:
        return Err(oauth_error(OAuth2ErrorCode.INVALID_GRANT, _INVALID_REFRESH_TOKEN))
    return Ok(record)


@beartype
def check_authorization_code(
    record: AuthorizationCode | None,
    client: Client,
    redirect_uri: str | None,
    now: datetime,
) -> Result[AuthorizationCode, OAuth2Error]:
    """Validate a code returned by ``find_and_consume_authorization_code``.

    ``None`` means the code was unknown or already consumed. A code bound to a
    redirect URI is only honoured while that URI is registered for the client.
    """
    if record is None or record.is_expired(now):
        return Err(oauth_error(OAuth2ErrorCode.INVALID_GRANT, _INVALID_CODE))

    if record.client_id != client.client_id:
        return Err(oauth_error(OAuth2ErrorCode.INVALID_GRANT, _INVALID_CODE))

    if record.redirect_uri is not None and not client.has_redirect_uri(
        record.redirect_uri
    ):
        return Err(
            oauth_error(
                OAuth2ErrorCode.INVALID_GRANT,
                "redirect_uri is not registered for this client.",
            )
        )

    if redirect_uri and record.redirect_uri != redirect_uri:
        return Err(
            oauth_error(
                OAuth2ErrorCode.INVALID_GRANT,
                "redirect_uri does not match the authorization request.",
            )
        )
    return Ok(record)
