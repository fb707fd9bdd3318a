# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""OAuth2 token endpoint engine."""

from .dispatcher import TokenEndpoint
from .gateway import (
    DatastoreError,
    DatastoreGateway,
    GatewayFactory,
    PostgresGateway,
    PostgresGatewayFactory,
)
from .grants import (
    GRANT_PROCESSORS,
    authorization_code,
    client_credentials,
    refresh_token,
)
from .tokens import TokenPolicy

__all__ = [
    "TokenEndpoint",
    "TokenPolicy",
    "DatastoreError",
    "DatastoreGateway",
    "GatewayFactory",
    "PostgresGateway",
    "PostgresGatewayFactory",
    "GRANT_PROCESSORS",
    "authorization_code",
    "client_credentials",
    "refresh_token",
]
