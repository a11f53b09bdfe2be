"""
Unit tests for tenant isolation of verification and session cookie minting.
"""

import pytest
import structlog
from unittest.mock import AsyncMock

from service_identity.app.models import DecodedToken
from service_identity.app.tenancy.isolation import (
    TenantCheckedSessionCookieIssuer,
    TenantIsolatedVerifier,
)
from shared.errors import ErrorKind, IdentityError

SESSION_OPTIONS = {"expires_in": 60 * 60 * 1000}


def decoded_token(tenant_id=None):
    return DecodedToken(
        subject="uid1",
        issued_at=1_700_000_000,
        expires_at=1_700_003_600,
        auth_time=1_700_000_000,
        tenant_id=tenant_id,
    )


@pytest.fixture
def inner_verifier():
    verifier = AsyncMock()
    verifier.verify.return_value = decoded_token("tenant-1")
    return verifier


@pytest.fixture
def tenant_verifier(inner_verifier):
    return TenantIsolatedVerifier(inner_verifier, "tenant-1")


@pytest.fixture
def inner_issuer():
    issuer = AsyncMock()
    issuer.create_session_cookie.return_value = "session-cookie"
    return issuer


@pytest.fixture
def tenant_issuer(inner_issuer, tenant_verifier):
    return TenantCheckedSessionCookieIssuer(inner_issuer, tenant_verifier)


class TestTenantIsolatedVerifier:
    """Test cases for TenantIsolatedVerifier."""

    @pytest.mark.asyncio
    async def test_matching_tenant(self, tenant_verifier, inner_verifier):
        """Test tokens of the owning tenant pass through."""
        decoded = await tenant_verifier.verify("token", True)

        assert decoded.tenant_id == "tenant-1"
        inner_verifier.verify.assert_awaited_once_with("token", True)

    @pytest.mark.asyncio
    async def test_other_tenant(self, tenant_verifier, inner_verifier):
        """Test tokens of another tenant are rejected."""
        inner_verifier.verify.return_value = decoded_token("tenant-2")

        with pytest.raises(IdentityError) as exc_info:
            await tenant_verifier.verify("token")
        assert exc_info.value.kind == ErrorKind.MISMATCHING_TENANT_ID

    @pytest.mark.asyncio
    async def test_project_level_token(self, tenant_verifier, inner_verifier):
        """Test tokens without a tenant are rejected."""
        inner_verifier.verify.return_value = decoded_token(None)

        with pytest.raises(IdentityError) as exc_info:
            await tenant_verifier.verify("token")
        assert exc_info.value.kind == ErrorKind.MISMATCHING_TENANT_ID

    @pytest.mark.asyncio
    async def test_inner_errors_propagate(self, tenant_verifier, inner_verifier):
        """Test verification errors of the inner verifier surface unchanged."""
        inner_verifier.verify.side_effect = IdentityError(ErrorKind.ID_TOKEN_REVOKED)

        with pytest.raises(IdentityError) as exc_info:
            await tenant_verifier.verify("token", True)
        assert exc_info.value.kind == ErrorKind.ID_TOKEN_REVOKED

    @pytest.mark.asyncio
    async def test_tenant_bound_to_logs(self, tenant_verifier, inner_verifier):
        """Test events logged during verification carry the owning tenant."""
        bound = {}

        async def verify(token, check_revoked):
            bound.update(structlog.contextvars.get_contextvars())
            return decoded_token("tenant-1")

        inner_verifier.verify.side_effect = verify

        await tenant_verifier.verify("token")

        assert bound["tenant_id"] == "tenant-1"
        assert "tenant_id" not in structlog.contextvars.get_contextvars()

    @pytest.mark.parametrize("tenant_id", ["", None, 42])
    def test_invalid_tenant_id(self, inner_verifier, tenant_id):
        """Test the owning tenant id must be a non-empty string."""
        with pytest.raises(IdentityError) as exc_info:
            TenantIsolatedVerifier(inner_verifier, tenant_id)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT


class TestTenantCheckedSessionCookieIssuer:
    """Test cases for TenantCheckedSessionCookieIssuer."""

    @pytest.mark.asyncio
    async def test_create_session_cookie(self, tenant_issuer, inner_issuer, inner_verifier):
        """Test a cookie is minted for a token of the owning tenant."""
        cookie = await tenant_issuer.create_session_cookie("id-token", SESSION_OPTIONS)

        assert cookie == "session-cookie"
        assert tenant_issuer.tenant_id == "tenant-1"
        inner_verifier.verify.assert_awaited_once()
        inner_issuer.create_session_cookie.assert_awaited_once_with("id-token", SESSION_OPTIONS)

    @pytest.mark.asyncio
    async def test_other_tenant_mints_nothing(self, tenant_issuer, inner_issuer, inner_verifier):
        """Test a token of another tenant never reaches the directory."""
        inner_verifier.verify.return_value = decoded_token("tenant-2")

        with pytest.raises(IdentityError) as exc_info:
            await tenant_issuer.create_session_cookie("id-token", SESSION_OPTIONS)

        assert exc_info.value.kind == ErrorKind.MISMATCHING_TENANT_ID
        inner_issuer.create_session_cookie.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("id_token", ["", None])
    async def test_missing_id_token(self, tenant_issuer, inner_issuer, inner_verifier, id_token):
        """Test an empty ID token fails before any I/O."""
        with pytest.raises(IdentityError) as exc_info:
            await tenant_issuer.create_session_cookie(id_token, SESSION_OPTIONS)

        assert exc_info.value.kind == ErrorKind.INVALID_ID_TOKEN
        inner_verifier.verify.assert_not_awaited()
        inner_issuer.create_session_cookie.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("options", [None, {}, {"expires_in": "3600000"}, {"expires_in": 1000}])
    async def test_invalid_duration(self, tenant_issuer, inner_issuer, inner_verifier, options):
        """Test a missing or out of range duration fails before any I/O."""
        with pytest.raises(IdentityError) as exc_info:
            await tenant_issuer.create_session_cookie("id-token", options)

        assert exc_info.value.kind == ErrorKind.INVALID_SESSION_COOKIE_DURATION
        inner_verifier.verify.assert_not_awaited()
        inner_issuer.create_session_cookie.assert_not_awaited()
