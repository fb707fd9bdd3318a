"""Initial OAuth2 token schema.

Revision ID: 001
Revises:
Create Date: 2025-07-01

Tables:
1. oauth2_clients - registered clients with hashed secrets and allow-lists
2. oauth2_client_redirect_uris - redirect URIs registered per client
3. oauth2_grant_types - grant types that can be switched on and off
4. oauth2_access_tokens - issued access tokens (stored by SHA-256 digest)
5. oauth2_refresh_tokens - issued refresh tokens (stored by SHA-256 digest)
6. oauth2_authorization_codes - single-use codes from the front channel
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str, nullable: bool = False, **kwargs: object) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable, **kwargs)


def upgrade() -> None:
    """Create OAuth2 tables and seed grant types."""

    op.create_table(
        "oauth2_clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.String(256), nullable=False),
        sa.Column("client_secret_hash", sa.String(255), nullable=False),
        sa.Column("client_name", sa.String(256), nullable=False, server_default=""),
        sa.Column(
            "allowed_grant_types",
            postgresql.ARRAY(sa.String(32)),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "allowed_scopes",
            postgresql.ARRAY(sa.String(100)),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at", server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("client_id", name=op.f("uq_oauth2_clients_client_id")),
    )

    op.create_table(
        "oauth2_client_redirect_uris",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("client_id", sa.String(256), nullable=False),
        sa.Column("redirect_uri", sa.String(2048), nullable=False),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["oauth2_clients.client_id"],
            name=op.f("fk_oauth2_client_redirect_uris_client_id_oauth2_clients"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "client_id",
            "redirect_uri",
            name=op.f("uq_oauth2_client_redirect_uris_client_id_redirect_uri"),
        ),
    )

    grant_types = op.create_table(
        "oauth2_grant_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(32), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("name", name=op.f("uq_oauth2_grant_types_name")),
    )

    op.create_table(
        "oauth2_access_tokens",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(256), nullable=False),
        sa.Column("grant_type", sa.String(32), nullable=False),
        sa.Column(
            "scope",
            sa.String(500),
            nullable=False,
            comment="Space-separated scopes",
        ),
        _timestamp("issued_at"),
        _timestamp("expires_at"),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["oauth2_clients.client_id"],
            name=op.f("fk_oauth2_access_tokens_client_id_oauth2_clients"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["grant_type"],
            ["oauth2_grant_types.name"],
            name=op.f("fk_oauth2_access_tokens_grant_type_oauth2_grant_types"),
        ),
        sa.UniqueConstraint("token_hash", name=op.f("uq_oauth2_access_tokens_token_hash")),
        sa.CheckConstraint(
            "expires_at > issued_at",
            name=op.f("ck_oauth2_access_tokens_expires_after_issued"),
        ),
    )
    op.create_index(
        op.f("ix_oauth2_access_tokens_client_id"),
        "oauth2_access_tokens",
        ["client_id"],
    )

    op.create_table(
        "oauth2_refresh_tokens",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("token_hash", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(256), nullable=False),
        sa.Column(
            "scope",
            sa.String(500),
            nullable=False,
            comment="Space-separated scopes",
        ),
        _timestamp("issued_at"),
        _timestamp("expires_at", nullable=True),
        _timestamp("revoked_at", nullable=True),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["oauth2_clients.client_id"],
            name=op.f("fk_oauth2_refresh_tokens_client_id_oauth2_clients"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "token_hash", name=op.f("uq_oauth2_refresh_tokens_token_hash")
        ),
    )
    op.create_index(
        op.f("ix_oauth2_refresh_tokens_client_id"),
        "oauth2_refresh_tokens",
        ["client_id"],
    )

    op.create_table(
        "oauth2_authorization_codes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code_hash", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(256), nullable=False),
        sa.Column("scope", sa.String(500), nullable=False),
        sa.Column("redirect_uri", sa.String(2048), nullable=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        _timestamp("expires_at"),
        _timestamp("consumed_at", nullable=True),
        _timestamp("created_at", server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["oauth2_clients.client_id"],
            name=op.f("fk_oauth2_authorization_codes_client_id_oauth2_clients"),
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "code_hash", name=op.f("uq_oauth2_authorization_codes_code_hash")
        ),
    )

    op.bulk_insert(
        grant_types,
        [
            {"name": "authorization_code", "enabled": True},
            {"name": "client_credentials", "enabled": True},
            {"name": "refresh_token", "enabled": True},
        ],
    )


def downgrade() -> None:
    """Drop OAuth2 tables."""
    op.drop_table("oauth2_authorization_codes")
    op.drop_index(
        op.f("ix_oauth2_refresh_tokens_client_id"), table_name="oauth2_refresh_tokens"
    )
    op.drop_table("oauth2_refresh_tokens")
    op.drop_index(
        op.f("ix_oauth2_access_tokens_client_id"), table_name="oauth2_access_tokens"
    )
    op.drop_table("oauth2_access_tokens")
    op.drop_table("oauth2_client_redirect_uris")
    op.drop_table("oauth2_grant_types")
    op.drop_table("oauth2_clients")
