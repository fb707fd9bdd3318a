# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Datastore gateway: the only way grant processing touches persistent state.

Lookups return ``None`` for "not found". Exceptions are reserved for
infrastructure failure and are always ``DatastoreError``.
"""

import contextlib
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import asyncpg
from beartype import beartype

from ..core.database import INFRASTRUCTURE_ERRORS, Database, DatastoreError
from ..core.security import token_digest, verify_client_secret
from ..models.oauth2 import (
    AccessToken,
    AuthorizationCode,
    Client,
    GrantType,
    RefreshToken,
)
from .scopes import format_scope, parse_scope

__all__ = [
    "DatastoreError",
    "DatastoreGateway",
    "GatewayFactory",
    "PostgresGateway",
    "PostgresGatewayFactory",
]


@runtime_checkable
class DatastoreGateway(Protocol):
    """Capabilities a grant processor needs from the datastore."""

    async def find_client_by_id(self, client_id: str) -> Client | None: ...

    async def verify_client_secret(self, client_id: str, client_secret: str) -> bool: ...

    async def find_grant_type_by_name(self, name: str) -> GrantType | None: ...

    async def find_refresh_token_by_value(self, token: str) -> RefreshToken | None: ...

    async def insert_access_token(self, token: AccessToken) -> None: ...

    async def insert_refresh_token(self, token: RefreshToken) -> None: ...

    async def revoke_refresh_token(self, token: str, revoked_at: datetime) -> bool: ...

    async def find_and_consume_authorization_code(
        self, code: str, consumed_at: datetime
    ) -> AuthorizationCode | None: ...


class GatewayFactory(Protocol):
    """Hands out gateways bound to a single datastore transaction."""

    def transaction(self) -> contextlib.AbstractAsyncContextManager[DatastoreGateway]: ...


class PostgresGateway:
    """Gateway over one asyncpg connection that is already inside a transaction."""

    def __init__(self, conn: asyncpg.Connection) -> None:
        """Initialize gateway.

        Args:
            conn: Connection with an open transaction
        """
        self._conn = conn

    async def _fetchrow(self, query: str, *args: Any) -> Any:
        try:
            return await self._conn.fetchrow(query, *args)
        except INFRASTRUCTURE_ERRORS as e:
            raise DatastoreError(f"Query failed: {e}") from e

    async def _execute(self, query: str, *args: Any) -> str:
        try:
            return await self._conn.execute(query, *args)
        except INFRASTRUCTURE_ERRORS as e:
            raise DatastoreError(f"Statement failed: {e}") from e

    @beartype
    async def find_client_by_id(self, client_id: str) -> Client | None:
        """Look up an active client. Shares the row lock until commit."""
        row = await self._fetchrow(
            """
            SELECT c.client_id, c.client_name, c.allowed_grant_types, c.allowed_scopes,
                   ARRAY(
                       SELECT r.redirect_uri
                       FROM oauth2_client_redirect_uris r
                       WHERE r.client_id = c.client_id
                       ORDER BY r.id
                   ) AS redirect_uris
            FROM oauth2_clients c
            WHERE c.client_id = $1 AND c.is_active = true
            FOR SHARE OF c
            """,
            client_id,
        )
        if not row:
            return None

        return Client(
            client_id=row["client_id"],
            client_name=row["client_name"] or "",
            allowed_grant_types=tuple(row["allowed_grant_types"] or ()),
            allowed_scopes=tuple(row["allowed_scopes"] or ()),
            redirect_uris=tuple(row["redirect_uris"] or ()),
        )

    @beartype
    async def verify_client_secret(self, client_id: str, client_secret: str) -> bool:
        """Check a client secret against its stored hash."""
        row = await self._fetchrow(
            """
            SELECT client_secret_hash
            FROM oauth2_clients
            WHERE client_id = $1 AND is_active = true
            """,
            client_id,
        )
        return verify_client_secret(
            client_secret, row["client_secret_hash"] if row else None
        )

    @beartype
    async def find_grant_type_by_name(self, name: str) -> GrantType | None:
        """Look up a grant type record."""
        row = await self._fetchrow(
            "SELECT name, enabled FROM oauth2_grant_types WHERE name = $1",
            name,
        )
        if not row:
            return None
        return GrantType(name=row["name"], enabled=row["enabled"])

    @beartype
    async def find_refresh_token_by_value(self, token: str) -> RefreshToken | None:
        """Look up a refresh token, locking it against concurrent revocation."""
        row = await self._fetchrow(
            """
            SELECT client_id, scope, issued_at, expires_at, revoked_at
            FROM oauth2_refresh_tokens
            WHERE token_hash = $1
            FOR UPDATE
            """,
            token_digest(token),
        )
        if not row:
            return None

        return RefreshToken(
            token=token,
            client_id=row["client_id"],
            scope=parse_scope(row["scope"]),
            issued_at=row["issued_at"],
            expires_at=row["expires_at"],
            revoked_at=row["revoked_at"],
        )

    @beartype
    async def insert_access_token(self, token: AccessToken) -> None:
        """Persist a freshly minted access token."""
        await self._execute(
            """
            INSERT INTO oauth2_access_tokens (
                token_hash, client_id, grant_type, scope, issued_at, expires_at
            ) VALUES ($1, $2, $3, $4, $5, $6)
            """,
            token_digest(token.token),
            token.client_id,
            token.grant_type,
            format_scope(token.scope),
            token.issued_at,
            token.expires_at,
        )

    @beartype
    async def insert_refresh_token(self, token: RefreshToken) -> None:
        """Persist a freshly minted refresh token."""
        await self._execute(
            """
            INSERT INTO oauth2_refresh_tokens (
                token_hash, client_id, scope, issued_at, expires_at
            ) VALUES ($1, $2, $3, $4, $5)
            """,
            token_digest(token.token),
            token.client_id,
            format_scope(token.scope),
            token.issued_at,
            token.expires_at,
        )

    @beartype
    async def revoke_refresh_token(self, token: str, revoked_at: datetime) -> bool:
        """Revoke a refresh token. Returns False if it was unknown or already revoked."""
        status = await self._execute(
            """
            UPDATE oauth2_refresh_tokens
            SET revoked_at = $2
            WHERE token_hash = $1 AND revoked_at IS NULL
            """,
            token_digest(token),
            revoked_at,
        )
        return status == "UPDATE 1"

    @beartype
    async def find_and_consume_authorization_code(
        self, code: str, consumed_at: datetime
    ) -> AuthorizationCode | None:
        """Atomically mark an unused code consumed and return it.

        The conditional UPDATE takes the row lock, so of two concurrent
        redemptions exactly one sees the row; the other gets ``None`` once the
        first commits.
        """
        row = await self._fetchrow(
            """
            UPDATE oauth2_authorization_codes
            SET consumed_at = $2
            WHERE code_hash = $1 AND consumed_at IS NULL
            RETURNING client_id, scope, redirect_uri, user_id, expires_at, consumed_at
            """,
            token_digest(code),
            consumed_at,
        )
        if not row:
            return None

        return AuthorizationCode(
            code=code,
            client_id=row["client_id"],
            scope=parse_scope(row["scope"]),
            redirect_uri=row["redirect_uri"],
            user_id=str(row["user_id"]) if row["user_id"] is not None else None,
            expires_at=row["expires_at"],
            consumed_at=row["consumed_at"],
        )


class PostgresGatewayFactory:
    """Opens one transaction per grant decision on the shared pool."""

    def __init__(self, db: Database) -> None:
        """Initialize factory.

        Args:
            db: Connected database pool owner
        """
        self._db = db

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[PostgresGateway]:
        """Yield a gateway; commit on clean exit, roll back on any exception."""
        async with self._db.transaction() as conn:
            yield PostgresGateway(conn)
