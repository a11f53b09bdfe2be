"""
Tenant isolation for verification and session cookie minting.

Both wrappers compose around the tenant-agnostic components instead of
replacing them, so the base revocation and minting logic runs unmodified.
"""

from typing import Any, Mapping, Optional

from shared.errors import ErrorKind, IdentityError, invalid_argument
from shared.logging import get_logger, tenant_scope
from ..models import DecodedToken
from ..validation.revocation import Verifier
from ..validation.session_cookie import SessionCookieIssuer, validate_session_cookie_duration
from ..validation.validators import is_non_empty_string


def _require_tenant_id(tenant_id: Any) -> str:
    if not is_non_empty_string(tenant_id):
        raise invalid_argument("`tenant_id` must be a valid non-empty string.")
    return tenant_id


class TenantIsolatedVerifier:
    """Rejects tokens that were not issued for the owning tenant."""

    def __init__(self, inner: Verifier, tenant_id: str):
        self.inner = inner
        self.tenant_id = _require_tenant_id(tenant_id)
        self.logger = get_logger("identity.tenancy")

    async def verify(self, token: str, check_revoked: bool = False) -> DecodedToken:
        with tenant_scope(self.tenant_id):
            decoded = await self.inner.verify(token, check_revoked)
            if decoded.tenant_id != self.tenant_id:
                self.logger.warning(
                    "Token tenant mismatch",
                    token_tenant_id=decoded.tenant_id,
                    uid=decoded.uid,
                )
                raise IdentityError(ErrorKind.MISMATCHING_TENANT_ID)
            return decoded


class TenantCheckedSessionCookieIssuer:
    """Mints a session cookie only for an ID token of the owning tenant."""

    def __init__(self, inner: SessionCookieIssuer, id_token_verifier: TenantIsolatedVerifier):
        self.inner = inner
        self.id_token_verifier = id_token_verifier

    @property
    def tenant_id(self) -> str:
        return self.id_token_verifier.tenant_id

    async def create_session_cookie(
        self, id_token: str, options: Optional[Mapping[str, Any]]
    ) -> str:
        if not is_non_empty_string(id_token):
            raise IdentityError(ErrorKind.INVALID_ID_TOKEN)
        validate_session_cookie_duration(options)

        # The ID token must pass the tenant check before anything is minted.
        await self.id_token_verifier.verify(id_token)
        with tenant_scope(self.tenant_id):
            return await self.inner.create_session_cookie(id_token, options)
