# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""OAuth2 token endpoint route."""

import logging
from typing import Annotated
from urllib.parse import unquote_plus

from fastapi import APIRouter, Depends, Form
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from ...core.database import DatastoreError
from ...oauth2.dispatcher import TokenEndpoint
from ...schemas.token import AccessTokenRequest
from ..dependencies import get_token_endpoint

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth2", tags=["oauth2"])

# RFC 6749 §5.1: token responses must not be cached
NO_STORE_HEADERS = {"Cache-Control": "no-store", "Pragma": "no-cache"}

basic_auth = HTTPBasic(auto_error=False)


@router.post("/token")
async def token(
    grant_type: Annotated[str | None, Form()] = None,
    client_id: Annotated[str | None, Form()] = None,
    client_secret: Annotated[str | None, Form()] = None,
    code: Annotated[str | None, Form()] = None,
    redirect_uri: Annotated[str | None, Form()] = None,
    refresh_token: Annotated[str | None, Form()] = None,
    scope: Annotated[str | None, Form()] = None,
    credentials: HTTPBasicCredentials | None = Depends(basic_auth),
    endpoint: TokenEndpoint = Depends(get_token_endpoint),
) -> JSONResponse:
    """OAuth2 token endpoint.

    Client credentials may arrive in the form body or via HTTP Basic
    (RFC 6749 §2.3.1); the body wins when both are present. Basic credentials
    are form-url-encoded by the client and decoded here.

    Returns:
        200 with the token response, 400 with an OAuth2 error body, or 503
        when the datastore is unavailable
    """
    if credentials is not None and not client_id:
        client_id = unquote_plus(credentials.username)
        client_secret = unquote_plus(credentials.password)

    request = AccessTokenRequest(
        grant_type=grant_type,
        client_id=client_id,
        client_secret=client_secret,
        code=code,
        redirect_uri=redirect_uri,
        refresh_token=refresh_token,
        scope=scope,
    )

    try:
        result = await endpoint.handle(request)
    except DatastoreError:
        logger.exception("Token request aborted by datastore failure")
        return JSONResponse(
            status_code=503,
            content={"detail": "Service temporarily unavailable"},
            headers=NO_STORE_HEADERS,
        )

    if result.is_err():
        return JSONResponse(
            status_code=400,
            content=result.err_value.to_dict(),
            headers=NO_STORE_HEADERS,
        )

    return JSONResponse(
        status_code=200,
        content=result.ok_value.to_dict(),
        headers=NO_STORE_HEADERS,
    )
