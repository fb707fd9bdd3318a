# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Token endpoint: routes a request to its grant processor inside one transaction."""

import logging
from collections.abc import Mapping

from beartype import beartype

from ..core.result_types import Err, Result
from ..models.oauth2 import GrantTypeName
from ..schemas.token import (
    AccessTokenRequest,
    AccessTokenResponse,
    OAuth2Error,
    OAuth2ErrorCode,
    oauth_error,
)
from .gateway import GatewayFactory
from .grants import GRANT_PROCESSORS, GrantProcessor
from .tokens import TokenPolicy

logger = logging.getLogger(__name__)


class _Rejected(Exception):
    """Unwinds the transaction when a processor returns Err."""

    def __init__(self, error: OAuth2Error) -> None:
        super().__init__(error.error.value)
        self.error = error


class TokenEndpoint:
    """Entry point the HTTP layer calls with an already-parsed request."""

    def __init__(
        self,
        gateways: GatewayFactory,
        policy: TokenPolicy | None = None,
        processors: Mapping[GrantTypeName, GrantProcessor] | None = None,
    ) -> None:
        """Initialize the endpoint.

        Args:
            gateways: Source of transaction-bound datastore gateways
            policy: Token issuance policy
            processors: Grant processors by grant type; every GrantTypeName
                must have one
        """
        processors = dict(GRANT_PROCESSORS if processors is None else processors)
        missing = [g.value for g in GrantTypeName if g not in processors]
        if missing:
            raise ValueError(f"No grant processor registered for: {', '.join(missing)}")

        self._gateways = gateways
        self._policy = policy or TokenPolicy()
        self._processors = processors

    @beartype
    async def handle(
        self, request: AccessTokenRequest
    ) -> Result[AccessTokenResponse, OAuth2Error]:
        """Process one token request.

        Rejections come back as ``Err``; the transaction is rolled back so no
        token row survives a rejected request. ``DatastoreError`` propagates.
        """
        if not request.grant_type:
            return self._reject(
                request,
                oauth_error(
                    OAuth2ErrorCode.INVALID_REQUEST,
                    "Missing required parameter(s): grant_type",
                ),
            )

        try:
            grant = GrantTypeName(request.grant_type)
        except ValueError:
            return self._reject(
                request, oauth_error(OAuth2ErrorCode.UNSUPPORTED_GRANT_TYPE)
            )

        processor = self._processors[grant]
        try:
            async with self._gateways.transaction() as gateway:
                result = await processor(request, gateway, self._policy)
                if result.is_err():
                    raise _Rejected(result.err_value)
        except _Rejected as rejected:
            return self._reject(request, rejected.error)

        logger.info(
            "Issued token: grant_type=%s client_id=%s",
            request.grant_type,
            request.client_id,
        )
        return result

    def _reject(self, request: AccessTokenRequest, error: OAuth2Error) -> Err[OAuth2Error]:
        logger.info(
            "Rejected token request: grant_type=%s client_id=%s error=%s",
            request.grant_type,
            request.client_id,
            error.error.value,
        )
        return Err(error)
