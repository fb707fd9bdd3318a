"""Unit tests for client, grant type, scope, refresh token and code checks."""

from datetime import datetime, timedelta, timezone

import pytest

from token_core.models.oauth2 import (
    AuthorizationCode,
    Client,
    GrantType,
    RefreshToken,
)
from token_core.oauth2.validators import (
    check_authorization_code,
    check_client_credentials,
    check_client_grant,
    check_grant_type,
    check_refresh_token,
    check_refresh_token_owner,
    check_scope,
)
from token_core.schemas.token import OAuth2ErrorCode

NOW = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


def _refresh(token="rt-1", client_id="c1", **overrides):
    values = {
        "token": token,
        "client_id": client_id,
        "scope": ("read", "write"),
        "issued_at": NOW - timedelta(days=1),
        "expires_at": NOW + timedelta(days=1),
    }
    values.update(overrides)
    return RefreshToken(**values)


class TestCheckClientCredentials:
    """Test client authentication."""

    async def test_valid_credentials(self, gateway):
        """Test a registered client with its secret."""
        result = await check_client_credentials(gateway, "c1", "s1")
        assert result.is_ok()
        assert result.ok_value.client_id == "c1"

    async def test_wrong_secret_and_unknown_client_are_identical(self, gateway):
        """Test the two failure modes cannot be told apart."""
        wrong_secret = await check_client_credentials(gateway, "c1", "wrong")
        unknown = await check_client_credentials(gateway, "nobody", "s1")

        assert wrong_secret.is_err() and unknown.is_err()
        assert wrong_secret.err_value == unknown.err_value
        assert wrong_secret.err_value.error == OAuth2ErrorCode.INVALID_CLIENT

    async def test_secret_of_another_client_is_rejected(self, gateway):
        """Test secrets are bound to their own client."""
        result = await check_client_credentials(gateway, "c1", "s2")
        assert result.err_value.error == OAuth2ErrorCode.INVALID_CLIENT


class TestCheckGrantType:
    """Test grant type existence and enablement."""

    async def test_enabled_grant_type(self, gateway):
        """Test an enabled grant type is returned."""
        result = await check_grant_type(gateway, "client_credentials")
        assert result.ok_value.name == "client_credentials"

    async def test_unknown_grant_type(self, gateway):
        """Test an unknown grant type."""
        result = await check_grant_type(gateway, "password")
        assert result.err_value.error == OAuth2ErrorCode.UNSUPPORTED_GRANT_TYPE

    async def test_disabled_grant_type(self, gateway, store):
        """Test a disabled grant type is treated as unsupported."""
        store.grant_types["refresh_token"] = GrantType(
            name="refresh_token", enabled=False
        )
        result = await check_grant_type(gateway, "refresh_token")
        assert result.err_value.error == OAuth2ErrorCode.UNSUPPORTED_GRANT_TYPE

    def test_client_not_registered_for_grant(self):
        """Test a client outside its allow-list gets unauthorized_client."""
        client = Client(client_id="x", allowed_grant_types=("client_credentials",))
        grant = GrantType(name="refresh_token")
        result = check_client_grant(client, grant)
        assert result.err_value.error == OAuth2ErrorCode.UNAUTHORIZED_CLIENT


class TestCheckScope:
    """Test scope narrowing rules."""

    def test_equal_scope_allowed(self):
        """Test requesting exactly the granted scope."""
        assert check_scope("write read", ("read", "write")).ok_value == (
            "write",
            "read",
        )

    def test_narrower_scope_allowed(self):
        """Test narrowing to a subset."""
        assert check_scope("read", ("read", "write")).ok_value == ("read",)

    def test_expansion_rejected(self):
        """Test adding a scope that was never granted."""
        result = check_scope("read admin", ("read", "write"))
        assert result.err_value.error == OAuth2ErrorCode.INVALID_SCOPE
        assert "admin" in result.err_value.error_description

    @pytest.mark.parametrize("requested", ["", "  ", ",", None])
    def test_empty_scope_rejected(self, requested):
        """Test that at least one scope is required."""
        result = check_scope(requested, ("read",))
        assert result.err_value.error == OAuth2ErrorCode.INVALID_SCOPE


class TestCheckRefreshToken:
    """Test refresh token lookup and lifecycle checks."""

    async def test_valid_token(self, gateway, store):
        """Test a live refresh token."""
        store.refresh_tokens["rt-1"] = _refresh()
        result = await check_refresh_token(gateway, "rt-1", NOW)
        assert result.ok_value.token == "rt-1"

    async def test_token_without_expiry_is_valid(self, gateway, store):
        """Test tokens with no expiry never expire."""
        store.refresh_tokens["rt-1"] = _refresh(expires_at=None)
        result = await check_refresh_token(gateway, "rt-1", NOW + timedelta(days=3650))
        assert result.is_ok()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"revoked_at": NOW - timedelta(minutes=1)},
            {"expires_at": NOW - timedelta(seconds=1)},
            {"expires_at": NOW},
        ],
    )
    async def test_revoked_or_expired_token(self, gateway, store, overrides):
        """Test revoked and expired tokens are invalid_grant."""
        store.refresh_tokens["rt-1"] = _refresh(**overrides)
        result = await check_refresh_token(gateway, "rt-1", NOW)
        assert result.err_value.error == OAuth2ErrorCode.INVALID_GRANT

    async def test_unknown_token(self, gateway):
        """Test an unknown token is invalid_grant."""
        result = await check_refresh_token(gateway, "nope", NOW)
        assert result.err_value.error == OAuth2ErrorCode.INVALID_GRANT

    def test_owner_mismatch_matches_unknown_token_error(self):
        """Test a foreign token looks exactly like an unknown one."""
        client = Client(client_id="c2")
        mismatch = check_refresh_token_owner(_refresh(client_id="c1"), client)
        assert mismatch.err_value.error == OAuth2ErrorCode.INVALID_GRANT


class TestCheckAuthorizationCode:
    """Test redeemed authorization code checks."""

    CLIENT = Client(client_id="c1", redirect_uris=("https://app.example.com/cb",))

    def _code(self, **overrides):
        values = {
            "code": "abc",
            "client_id": "c1",
            "scope": ("read",),
            "redirect_uri": "https://app.example.com/cb",
            "expires_at": NOW + timedelta(minutes=5),
            "consumed_at": NOW,
        }
        values.update(overrides)
        return AuthorizationCode(**values)

    def test_valid_code_with_matching_redirect(self):
        """Test a fresh code redeemed by its client."""
        result = check_authorization_code(
            self._code(), self.CLIENT, "https://app.example.com/cb", NOW
        )
        assert result.is_ok()

    def test_redirect_uri_optional_in_request(self):
        """Test an omitted redirect_uri is not compared."""
        assert check_authorization_code(self._code(), self.CLIENT, None, NOW).is_ok()

    def test_unknown_or_used_code(self):
        """Test None from the consume step is invalid_grant."""
        result = check_authorization_code(None, self.CLIENT, None, NOW)
        assert result.err_value.error == OAuth2ErrorCode.INVALID_GRANT

    def test_expired_code(self):
        """Test an expired code."""
        code = self._code(expires_at=NOW - timedelta(seconds=1))
        result = check_authorization_code(code, self.CLIENT, None, NOW)
        assert result.err_value.error == OAuth2ErrorCode.INVALID_GRANT

    def test_code_issued_to_another_client(self):
        """Test a code presented by the wrong client."""
        result = check_authorization_code(
            self._code(client_id="c2"), self.CLIENT, None, NOW
        )
        assert result.err_value.error == OAuth2ErrorCode.INVALID_GRANT

    def test_code_without_redirect_uri(self):
        """Test a code issued without a redirect URI needs no registration."""
        code = self._code(redirect_uri=None)
        assert check_authorization_code(code, Client(client_id="c1"), None, NOW).is_ok()

    def test_redirect_uri_no_longer_registered(self):
        """Test a code whose redirect URI the client has since dropped."""
        code = self._code(redirect_uri="https://old.example.com/cb")
        result = check_authorization_code(
            code, self.CLIENT, "https://old.example.com/cb", NOW
        )

        assert result.err_value.error == OAuth2ErrorCode.INVALID_GRANT
        assert "not registered" in result.err_value.error_description

    def test_redirect_uri_mismatch(self):
        """Test a redirect_uri that differs from the stored one."""
        result = check_authorization_code(
            self._code(), self.CLIENT, "https://evil.example.com/cb", NOW
        )
        assert result.err_value.error == OAuth2ErrorCode.INVALID_GRANT
        assert "redirect_uri" in result.err_value.error_description
