"""Test configuration and fixtures.

Grant processing is exercised against the in-memory gateway in
``tests/fixtures/memory_gateway.py``; Postgres SQL is exercised against a
mocked asyncpg connection.
"""

from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import asyncpg
import pytest

from tests.fixtures.memory_gateway import (
    InMemoryGateway,
    InMemoryGatewayFactory,
    InMemoryStore,
)
from token_core.core.config import clear_settings_cache
from token_core.models.oauth2 import AuthorizationCode, Client, GrantTypeName
from token_core.oauth2.dispatcher import TokenEndpoint
from token_core.oauth2.tokens import TokenPolicy

ALL_GRANTS = tuple(g.value for g in GrantTypeName)


@pytest.fixture(autouse=True)
def reset_settings() -> Generator[None, None, None]:
    """Reset the settings singleton between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture(scope="session")
def seeded_store_template() -> InMemoryStore:
    """Clients hashed once per session; argon2 hashing is deliberately slow."""
    store = InMemoryStore()
    store.enable_all_grant_types()
    store.add_client(
        Client(
            client_id="c1",
            client_name="Reporting service",
            allowed_grant_types=ALL_GRANTS,
            allowed_scopes=("read", "write", "admin"),
            redirect_uris=("https://app.example.com/callback",),
        ),
        "s1",
    )
    store.add_client(
        Client(
            client_id="c2",
            client_name="Billing service",
            allowed_grant_types=ALL_GRANTS,
            allowed_scopes=("read", "write"),
            redirect_uris=("https://billing.example.com/callback",),
        ),
        "s2",
    )
    store.add_client(
        Client(
            client_id="cc-only",
            client_name="Batch job",
            allowed_grant_types=(GrantTypeName.CLIENT_CREDENTIALS.value,),
            allowed_scopes=("read",),
        ),
        "batch-secret",
    )
    return store


@pytest.fixture
def store(seeded_store_template: InMemoryStore) -> InMemoryStore:
    """Fresh copy of the seeded store for each test."""
    template = seeded_store_template
    return InMemoryStore(
        clients=dict(template.clients),
        secret_hashes=dict(template.secret_hashes),
        grant_types=dict(template.grant_types),
    )


@pytest.fixture
def gateways(store: InMemoryStore) -> InMemoryGatewayFactory:
    """Transaction factory over the per-test store."""
    return InMemoryGatewayFactory(store)


@pytest.fixture
def gateway(store: InMemoryStore, gateways: InMemoryGatewayFactory) -> InMemoryGateway:
    """Single gateway for calling validators and generators directly."""
    return InMemoryGateway(store, gateways)


@pytest.fixture
def policy() -> TokenPolicy:
    """Default issuance policy: 1h access tokens, no rotation."""
    return TokenPolicy()


@pytest.fixture
def endpoint(gateways: InMemoryGatewayFactory, policy: TokenPolicy) -> TokenEndpoint:
    """Token endpoint over the in-memory datastore."""
    return TokenEndpoint(gateways, policy)


@pytest.fixture
def issue_code(store: InMemoryStore):
    """Plant an authorization code as the front channel would."""

    def _issue(
        code: str = "code-123",
        client_id: str = "c1",
        scope: tuple[str, ...] = ("read",),
        redirect_uri: str | None = "https://app.example.com/callback",
        expires_in: timedelta = timedelta(minutes=10),
    ) -> AuthorizationCode:
        record = AuthorizationCode(
            code=code,
            client_id=client_id,
            scope=scope,
            redirect_uri=redirect_uri,
            expires_at=datetime.now(timezone.utc) + expires_in,
        )
        store.authorization_codes[code] = record
        return record

    return _issue


@pytest.fixture
def mock_conn() -> MagicMock:
    """Mock asyncpg connection for gateway SQL tests."""
    conn = MagicMock(spec=asyncpg.Connection)
    conn.fetchrow = AsyncMock(return_value=None)
    conn.execute = AsyncMock(return_value="INSERT 0 1")
    return conn
