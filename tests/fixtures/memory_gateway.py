"""In-memory datastore gateway for exercising grant processing without Postgres.

Transactions run concurrently. Like Postgres, a transaction that locks a row
(consuming an authorization code, or reading a refresh token FOR UPDATE)
holds that row lock until it ends, and every write is journalled so a failed
transaction can be undone without touching the work of others.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Callable
from datetime import datetime

from attrs import define, field

from token_core.core.database import DatastoreError
from token_core.core.security import hash_client_secret, verify_client_secret
from token_core.models.oauth2 import (
    AccessToken,
    AuthorizationCode,
    Client,
    GrantType,
    GrantTypeName,
    RefreshToken,
)


@define
class InMemoryStore:
    """Table contents, keyed the way the Postgres schema keys them."""

    clients: dict[str, Client] = field(factory=dict)
    secret_hashes: dict[str, str] = field(factory=dict)
    grant_types: dict[str, GrantType] = field(factory=dict)
    access_tokens: dict[str, AccessToken] = field(factory=dict)
    refresh_tokens: dict[str, RefreshToken] = field(factory=dict)
    authorization_codes: dict[str, AuthorizationCode] = field(factory=dict)
    # Name of a gateway method that should raise DatastoreError
    fail_on: str | None = None

    def add_client(self, client: Client, secret: str) -> None:
        self.clients[client.client_id] = client
        self.secret_hashes[client.client_id] = hash_client_secret(secret)

    def enable_all_grant_types(self) -> None:
        for name in GrantTypeName:
            self.grant_types[name.value] = GrantType(name=name.value, enabled=True)


class InMemoryGateway:
    """DatastoreGateway over an InMemoryStore, bound to one transaction.

    Every method yields to the event loop once, so concurrent transactions
    interleave between datastore calls the way they would against a server.
    """

    def __init__(self, store: InMemoryStore, factory: "InMemoryGatewayFactory") -> None:
        self._store = store
        self._factory = factory
        self.undo: list[Callable[[], None]] = []
        self.held: list[asyncio.Lock] = []

    async def _enter(self, operation: str) -> None:
        await asyncio.sleep(0)
        if self._store.fail_on == operation:
            raise DatastoreError(f"simulated failure in {operation}")

    async def lock_row(self, key: str) -> None:
        """Take a row lock held until the transaction ends."""
        lock = self._factory.row_lock(key)
        if lock in self.held:
            return
        await lock.acquire()
        self.held.append(lock)

    async def find_client_by_id(self, client_id: str) -> Client | None:
        await self._enter("find_client_by_id")
        return self._store.clients.get(client_id)

    async def verify_client_secret(self, client_id: str, client_secret: str) -> bool:
        await self._enter("verify_client_secret")
        return verify_client_secret(
            client_secret, self._store.secret_hashes.get(client_id)
        )

    async def find_grant_type_by_name(self, name: str) -> GrantType | None:
        await self._enter("find_grant_type_by_name")
        return self._store.grant_types.get(name)

    async def find_refresh_token_by_value(self, token: str) -> RefreshToken | None:
        await self._enter("find_refresh_token_by_value")
        await self.lock_row(f"refresh:{token}")
        return self._store.refresh_tokens.get(token)

    async def insert_access_token(self, token: AccessToken) -> None:
        await self._enter("insert_access_token")
        self._store.access_tokens[token.token] = token
        self.undo.append(lambda: self._store.access_tokens.pop(token.token, None))

    async def insert_refresh_token(self, token: RefreshToken) -> None:
        await self._enter("insert_refresh_token")
        self._store.refresh_tokens[token.token] = token
        self.undo.append(lambda: self._store.refresh_tokens.pop(token.token, None))

    async def revoke_refresh_token(self, token: str, revoked_at: datetime) -> bool:
        await self._enter("revoke_refresh_token")
        await self.lock_row(f"refresh:{token}")
        record = self._store.refresh_tokens.get(token)
        if record is None or record.is_revoked:
            return False
        self._replace(self._store.refresh_tokens, token, record)
        self._store.refresh_tokens[token] = record.model_copy(
            update={"revoked_at": revoked_at}
        )
        return True

    async def find_and_consume_authorization_code(
        self, code: str, consumed_at: datetime
    ) -> AuthorizationCode | None:
        await self._enter("find_and_consume_authorization_code")
        # Conditional UPDATE: wait for the row, then check and mark under the lock.
        await self.lock_row(f"code:{code}")
        record = self._store.authorization_codes.get(code)
        if record is None or record.consumed_at is not None:
            return None
        self._replace(self._store.authorization_codes, code, record)
        consumed = record.model_copy(update={"consumed_at": consumed_at})
        self._store.authorization_codes[code] = consumed
        return consumed

    def _replace(self, table: dict, key: str, previous: object) -> None:
        def restore() -> None:
            table[key] = previous

        self.undo.append(restore)


class InMemoryGatewayFactory:
    """GatewayFactory with concurrent, all-or-nothing transactions."""

    def __init__(self, store: InMemoryStore | None = None) -> None:
        self.store = store or InMemoryStore()
        self._row_locks: dict[str, asyncio.Lock] = {}
        self.commits = 0
        self.rollbacks = 0

    def row_lock(self, key: str) -> asyncio.Lock:
        return self._row_locks.setdefault(key, asyncio.Lock())

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryGateway]:
        gateway = InMemoryGateway(self.store, self)
        try:
            yield gateway
        except BaseException:
            for undo in reversed(gateway.undo):
                undo()
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            for lock in gateway.held:
                lock.release()
