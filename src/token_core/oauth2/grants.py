# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Grant processors, one per supported grant type.

Every processor runs the same short-circuiting pipeline:

    field presence -> client authentication -> grant type -> grant checks -> issuance

The first failing step returns its ``Err``; tokens are only minted after every
check has passed. Processors hold no state and receive their datastore access
through the gateway argument.
"""

from collections.abc import Awaitable, Callable

from beartype import beartype

from ..core.result_types import Err, Ok, Result
from ..models.oauth2 import Client, GrantType, GrantTypeName
from ..schemas.token import (
    AccessTokenRequest,
    AccessTokenResponse,
    OAuth2Error,
    OAuth2ErrorCode,
    oauth_error,
)
from .gateway import DatastoreGateway
from .tokens import (
    TokenPolicy,
    generate_access_token,
    generate_refresh_token,
    generate_token_response,
    utcnow,
)
from .validators import (
    check_authorization_code,
    check_client_credentials,
    check_client_grant,
    check_grant_type,
    check_refresh_token,
    check_refresh_token_owner,
    check_scope,
)

GrantProcessor = Callable[
    [AccessTokenRequest, DatastoreGateway, TokenPolicy],
    Awaitable[Result[AccessTokenResponse, OAuth2Error]],
]


@beartype
def _check_fields(
    request: AccessTokenRequest, expected: GrantTypeName, *required: str
) -> Err[OAuth2Error] | None:
    """Reject requests for another grant type or missing required fields."""
    if request.grant_type != expected.value:
        return Err(
            oauth_error(
                OAuth2ErrorCode.UNSUPPORTED_GRANT_TYPE,
                f"Expected grant_type {expected.value}.",
            )
        )

    missing = request.missing(*required)
    if missing:
        return Err(
            oauth_error(
                OAuth2ErrorCode.INVALID_REQUEST,
                f"Missing required parameter(s): {', '.join(missing)}",
            )
        )
    return None


@beartype
def _can_refresh(client: Client) -> bool:
    """Refresh tokens go only to clients allowed to redeem them."""
    return client.allows_grant(GrantTypeName.REFRESH_TOKEN.value)


@beartype
async def _authorize_client(
    gateway: DatastoreGateway, request: AccessTokenRequest, grant: GrantTypeName
) -> Result[tuple[Client, GrantType], OAuth2Error]:
    """Authenticate the client, then confirm the grant type is usable by it."""
    assert request.client_id is not None and request.client_secret is not None

    client_result = await check_client_credentials(
        gateway, request.client_id, request.client_secret
    )
    if client_result.is_err():
        return client_result
    client = client_result.ok_value

    grant_result = await check_grant_type(gateway, grant.value)
    if grant_result.is_err():
        return grant_result

    allowed = check_client_grant(client, grant_result.ok_value)
    if allowed.is_err():
        return allowed

    return Ok((client, allowed.ok_value))


@beartype
async def client_credentials(
    request: AccessTokenRequest, gateway: DatastoreGateway, policy: TokenPolicy
) -> Result[AccessTokenResponse, OAuth2Error]:
    """Process a ``client_credentials`` request (RFC 6749 §4.4).

    Required fields: client_id, client_secret, scope. The token carries the
    full requested scope, which must lie within the client's registered
    scopes. A companion refresh token is issued when the client may redeem it.
    """
    rejected = _check_fields(
        request, GrantTypeName.CLIENT_CREDENTIALS, "client_id", "client_secret", "scope"
    )
    if rejected:
        return rejected

    authorized = await _authorize_client(
        gateway, request, GrantTypeName.CLIENT_CREDENTIALS
    )
    if authorized.is_err():
        return authorized
    client, grant_type = authorized.ok_value

    scope_result = check_scope(request.scope, client.allowed_scopes)
    if scope_result.is_err():
        return scope_result
    scope = scope_result.ok_value

    access_token = await generate_access_token(gateway, client, grant_type, scope, policy)
    issued = None
    if _can_refresh(client):
        issued = await generate_refresh_token(gateway, client, scope, policy)
    return Ok(generate_token_response(access_token, issued, token_type=policy.token_type))


@beartype
async def refresh_token(
    request: AccessTokenRequest, gateway: DatastoreGateway, policy: TokenPolicy
) -> Result[AccessTokenResponse, OAuth2Error]:
    """Process a ``refresh_token`` request (RFC 6749 §6).

    Required fields: refresh_token, scope, client_id, client_secret. The client
    authenticates before the refresh token is looked at, and the token must
    belong to that client. The requested scope may only narrow the original.
    Unless rotation is enabled the presented refresh token is echoed back.
    """
    rejected = _check_fields(
        request,
        GrantTypeName.REFRESH_TOKEN,
        "refresh_token",
        "scope",
        "client_id",
        "client_secret",
    )
    if rejected:
        return rejected
    assert request.refresh_token is not None

    authorized = await _authorize_client(gateway, request, GrantTypeName.REFRESH_TOKEN)
    if authorized.is_err():
        return authorized
    client, grant_type = authorized.ok_value

    now = utcnow()
    token_result = await check_refresh_token(gateway, request.refresh_token, now)
    if token_result.is_err():
        return token_result

    owner_result = check_refresh_token_owner(token_result.ok_value, client)
    if owner_result.is_err():
        return owner_result
    record = owner_result.ok_value

    scope_result = check_scope(request.scope, record.scope)
    if scope_result.is_err():
        return scope_result
    scope = scope_result.ok_value

    access_token = await generate_access_token(gateway, client, grant_type, scope, policy)

    if policy.rotate_refresh_tokens:
        if not await gateway.revoke_refresh_token(record.token, now):
            return Err(oauth_error(OAuth2ErrorCode.INVALID_GRANT))
        issued = await generate_refresh_token(gateway, client, scope, policy)
    else:
        issued = record

    return Ok(generate_token_response(access_token, issued, token_type=policy.token_type))


@beartype
async def authorization_code(
    request: AccessTokenRequest, gateway: DatastoreGateway, policy: TokenPolicy
) -> Result[AccessTokenResponse, OAuth2Error]:
    """Process an ``authorization_code`` request (RFC 6749 §4.1.3).

    Required fields: client_id, client_secret, code. The code is consumed
    atomically before it is inspected; if any later check fails the enclosing
    transaction rolls the consumption back.
    """
    rejected = _check_fields(
        request, GrantTypeName.AUTHORIZATION_CODE, "client_id", "client_secret", "code"
    )
    if rejected:
        return rejected
    assert request.code is not None

    authorized = await _authorize_client(
        gateway, request, GrantTypeName.AUTHORIZATION_CODE
    )
    if authorized.is_err():
        return authorized
    client, grant_type = authorized.ok_value

    now = utcnow()
    consumed = await gateway.find_and_consume_authorization_code(request.code, now)
    code_result = check_authorization_code(consumed, client, request.redirect_uri, now)
    if code_result.is_err():
        return code_result
    code = code_result.ok_value

    access_token = await generate_access_token(
        gateway, client, grant_type, code.scope, policy
    )
    issued = None
    if policy.issue_refresh_token_on_authorization_code and _can_refresh(client):
        issued = await generate_refresh_token(gateway, client, code.scope, policy)

    return Ok(generate_token_response(access_token, issued, token_type=policy.token_type))


GRANT_PROCESSORS: dict[GrantTypeName, GrantProcessor] = {
    GrantTypeName.AUTHORIZATION_CODE: authorization_code,
    GrantTypeName.CLIENT_CREDENTIALS: client_credentials,
    GrantTypeName.REFRESH_TOKEN: refresh_token,
}
