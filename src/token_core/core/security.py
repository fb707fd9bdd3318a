# TokenCore - OAuth2 Token Issuance Engine
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Secret hashing and opaque token primitives."""

import hashlib
import secrets

from beartype import beartype
from passlib.context import CryptContext

# Client secret hashing
secret_context = CryptContext(schemes=["argon2"], deprecated="auto")

# 32 random bytes, url-safe base64: 43 characters
TOKEN_BYTES = 32


@beartype
def hash_client_secret(client_secret: str) -> str:
    """Hash a client secret for storage."""
    return secret_context.hash(client_secret)


@beartype
def verify_client_secret(client_secret: str, secret_hash: str | None) -> bool:
    """Verify a presented secret against its stored hash.

    When there is no stored hash (unknown client) a dummy verification still
    runs, so the response time does not reveal whether the client exists.
    """
    if not secret_hash:
        secret_context.dummy_verify()
        return False
    try:
        return bool(secret_context.verify(client_secret, secret_hash))
    except ValueError:
        # Unrecognized or malformed stored hash
        return False


@beartype
def new_token_value() -> str:
    """Generate a cryptographically random opaque token value."""
    return secrets.token_urlsafe(TOKEN_BYTES)


@beartype
def token_digest(value: str) -> str:
    """Digest under which opaque token values and codes are stored."""
    return hashlib.sha256(value.encode()).hexdigest()
