"""
Wiring of the identity façade from settings.
"""

from typing import Any, Optional, Type

import httpx

from shared.config import IdentitySettings, get_settings
from shared.errors import ErrorKind, invalid_argument
from shared.logging import configure_logging, get_logger
from .auth import Auth, BaseAuth
from .directory.client import AccessTokenProvider, HttpAccountDirectory
from .jwks.client import PublicKeyClient
from .models import AccountRecord
from .tenancy.isolation import TenantCheckedSessionCookieIssuer, TenantIsolatedVerifier
from .tenancy.manager import TenantManager
from .tokens.signer import CryptoSigner, IAMSigner, TokenSigner
from .validation.revocation import RevocationCheckingVerifier
from .validation.session_cookie import DirectorySessionCookieIssuer
from .validation.token_verifier import create_id_token_verifier, create_session_cookie_verifier

logger = get_logger("identity.main")


def build_base_auth(
    directory,
    signer: CryptoSigner,
    id_token_keys: PublicKeyClient,
    session_cookie_keys: PublicKeyClient,
    project_id: Optional[str],
    tenant_id: Optional[str] = None,
    auth_class: Type[BaseAuth] = BaseAuth,
    **auth_kwargs: Any,
) -> BaseAuth:
    """Assemble an auth instance; with `tenant_id`, every component is tenant-bound.

    `directory` must already be scoped to `tenant_id`.
    """

    async def load_account(uid: str) -> AccountRecord:
        return AccountRecord.from_server_response(await directory.get_account_by_uid(uid))

    id_token_verifier = RevocationCheckingVerifier(
        create_id_token_verifier(id_token_keys, project_id),
        load_account,
        ErrorKind.ID_TOKEN_REVOKED,
    )
    session_cookie_verifier = RevocationCheckingVerifier(
        create_session_cookie_verifier(session_cookie_keys, project_id),
        load_account,
        ErrorKind.SESSION_COOKIE_REVOKED,
    )
    session_cookie_issuer = DirectorySessionCookieIssuer(directory)

    if tenant_id is not None:
        id_token_verifier = TenantIsolatedVerifier(id_token_verifier, tenant_id)
        session_cookie_verifier = TenantIsolatedVerifier(session_cookie_verifier, tenant_id)
        session_cookie_issuer = TenantCheckedSessionCookieIssuer(session_cookie_issuer, id_token_verifier)

    return auth_class(
        directory,
        TokenSigner(signer, tenant_id),
        id_token_verifier,
        session_cookie_verifier,
        session_cookie_issuer,
        tenant_id=tenant_id,
        **auth_kwargs,
    )


def build_auth(
    directory: HttpAccountDirectory,
    signer: CryptoSigner,
    id_token_keys: PublicKeyClient,
    session_cookie_keys: PublicKeyClient,
    project_id: Optional[str],
) -> Auth:
    """Assemble the project-level `Auth`; tenant instances share its key clients."""
    def auth_for_tenant(tenant_id: str) -> BaseAuth:
        return build_base_auth(
            directory.for_tenant(tenant_id),
            signer,
            id_token_keys,
            session_cookie_keys,
            project_id,
            tenant_id=tenant_id,
        )

    return build_base_auth(
        directory,
        signer,
        id_token_keys,
        session_cookie_keys,
        project_id,
        auth_class=Auth,
        tenant_manager=TenantManager(directory, auth_for_tenant),
    )


def create_auth(
    settings: Optional[IdentitySettings] = None,
    *,
    access_token_provider: AccessTokenProvider,
    signer: Optional[CryptoSigner] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Auth:
    """Create the identity façade from settings.

    Without an explicit `signer`, custom tokens are signed remotely through
    IAM as `settings.service_account_email`.
    """
    settings = settings or get_settings()
    configure_logging("identity", settings.log_level)

    if not settings.project_id:
        raise invalid_argument("IDENTITY_PROJECT_ID must be set to manage accounts.")

    client = client or httpx.AsyncClient(timeout=settings.http_timeout)
    if signer is None:
        if not settings.service_account_email:
            raise invalid_argument(
                "IDENTITY_SERVICE_ACCOUNT_EMAIL must be set when no signer is provided."
            )
        signer = IAMSigner(
            settings.service_account_email,
            access_token_provider,
            iam_url=settings.iam_url,
            client=client,
        )

    directory = HttpAccountDirectory(
        settings.project_id,
        access_token_provider,
        base_url=settings.directory_url,
        client=client,
    )
    id_token_keys = PublicKeyClient(settings.id_token_certs_url, settings.key_cache_ttl, client=client)
    session_cookie_keys = PublicKeyClient(
        settings.session_cookie_certs_url, settings.key_cache_ttl, client=client
    )

    logger.info("Identity façade created", project_id=settings.project_id, env=settings.env)
    return build_auth(directory, signer, id_token_keys, session_cookie_keys, settings.project_id)
