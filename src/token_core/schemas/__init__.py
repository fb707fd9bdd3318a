# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""Wire schemas for the token endpoint."""

from .token import (
    AccessTokenRequest,
    AccessTokenResponse,
    OAuth2Error,
    OAuth2ErrorCode,
    oauth_error,
)

__all__ = [
    "AccessTokenRequest",
    "AccessTokenResponse",
    "OAuth2Error",
    "OAuth2ErrorCode",
    "oauth_error",
]
