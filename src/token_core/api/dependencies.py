# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.


"""FastAPI dependencies wiring the token endpoint to its datastore."""

from beartype import beartype

from ..core.config import get_settings
from ..core.database import get_database
from ..oauth2.dispatcher import TokenEndpoint
from ..oauth2.gateway import PostgresGatewayFactory
from ..oauth2.tokens import TokenPolicy


@beartype
def get_token_endpoint() -> TokenEndpoint:
    """Provide a token endpoint backed by the shared Postgres pool."""
    return TokenEndpoint(
        PostgresGatewayFactory(get_database()),
        TokenPolicy.from_settings(get_settings()),
    )
