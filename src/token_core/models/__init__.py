# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""Domain models."""

from .oauth2 import (
    AccessToken,
    AuthorizationCode,
    Client,
    GrantType,
    GrantTypeName,
    RefreshToken,
    Scope,
)

__all__ = [
    "AccessToken",
    "AuthorizationCode",
    "Client",
    "GrantType",
    "GrantTypeName",
    "RefreshToken",
    "Scope",
]
