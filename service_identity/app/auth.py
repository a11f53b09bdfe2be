"""
Identity administration façade.

`BaseAuth` holds the operations shared by the project-level `Auth` and the
tenant-scoped instances handed out by the tenant manager. Tenant scoping is
decided at construction time: a tenant-bound instance is a `BaseAuth` built
from tenant-wrapped verifiers, a tenant-bound signer and a tenant-scoped
directory.
"""

from typing import Any, Dict, List, Optional, Sequence

from shared.errors import ErrorKind, IdentityError
from shared.logging import get_logger
from .batch.delete import aggregate_delete_results, validate_delete_uids
from .batch.imports import aggregate_import_results, validate_import_records
from .batch.lookup import resolve_users, validate_identifiers
from .identifiers import Identifier
from .models import (
    AccountRecord,
    DecodedToken,
    DeleteUsersResult,
    GetUsersResult,
    ListUsersResult,
    UserImportResult,
)
from .providers.config import ListProviderConfigResults, ProviderConfig
from .providers.dispatcher import ProviderConfigDispatcher
from .tenancy.manager import TenantManager
from .tokens.signer import TokenSigner
from .validation.revocation import Verifier
from .validation.session_cookie import SessionCookieIssuer


class BaseAuth:
    """Token lifecycle, account and provider-config operations."""

    def __init__(
        self,
        directory,
        token_signer: TokenSigner,
        id_token_verifier: Verifier,
        session_cookie_verifier: Verifier,
        session_cookie_issuer: SessionCookieIssuer,
        tenant_id: Optional[str] = None,
    ):
        self.directory = directory
        self.token_signer = token_signer
        self.id_token_verifier = id_token_verifier
        self.session_cookie_verifier = session_cookie_verifier
        self.session_cookie_issuer = session_cookie_issuer
        self.providers = ProviderConfigDispatcher(directory)
        self._tenant_id = tenant_id
        self.logger = get_logger("identity.auth")

    @property
    def tenant_id(self) -> Optional[str]:
        return self._tenant_id

    # Tokens

    async def create_custom_token(
        self, uid: str, developer_claims: Optional[Dict[str, Any]] = None
    ) -> str:
        return await self.token_signer.create_custom_token(uid, developer_claims)

    async def verify_id_token(self, id_token: str, check_revoked: bool = False) -> DecodedToken:
        return await self.id_token_verifier.verify(id_token, check_revoked)

    async def verify_session_cookie(
        self, session_cookie: str, check_revoked: bool = False
    ) -> DecodedToken:
        return await self.session_cookie_verifier.verify(session_cookie, check_revoked)

    async def create_session_cookie(self, id_token: str, options: Dict[str, Any]) -> str:
        """Exchange an ID token for a session cookie.

        `options["expires_in"]` is the cookie lifetime in milliseconds,
        between 5 minutes and 14 days.
        """
        return await self.session_cookie_issuer.create_session_cookie(id_token, options)

    async def revoke_refresh_tokens(self, uid: str) -> None:
        await self.directory.revoke_refresh_tokens(uid)
        self.logger.info("Refresh tokens revoked", uid=uid, tenant_id=self._tenant_id)

    # Accounts

    async def get_user(self, uid: str) -> AccountRecord:
        return AccountRecord.from_server_response(await self.directory.get_account_by_uid(uid))

    async def get_user_by_email(self, email: str) -> AccountRecord:
        return AccountRecord.from_server_response(await self.directory.get_account_by_email(email))

    async def get_user_by_phone_number(self, phone_number: str) -> AccountRecord:
        return AccountRecord.from_server_response(await self.directory.get_account_by_phone(phone_number))

    async def get_users(self, identifiers: Sequence[Identifier]) -> GetUsersResult:
        """Look up to 100 accounts at once.

        Identifiers with no matching account are reported in `not_found`;
        `users` is not ordered by the request.
        """
        validate_identifiers(identifiers)
        users = await self.directory.get_accounts_by_identifiers(identifiers)
        return resolve_users(
            identifiers,
            [AccountRecord.from_server_response(user) for user in users],
        )

    async def list_users(
        self, max_results: Optional[int] = None, page_token: Optional[str] = None
    ) -> ListUsersResult:
        response = await self.directory.list_accounts(max_results, page_token)
        return ListUsersResult(
            users=[AccountRecord.from_server_response(user) for user in response.get("users", [])],
            page_token=response.get("nextPageToken"),
        )

    async def create_user(self, properties: Dict[str, Any]) -> AccountRecord:
        uid = await self.directory.create_account(properties)
        try:
            return await self.get_user(uid)
        except IdentityError as e:
            if e.kind == ErrorKind.USER_NOT_FOUND:
                # The account was just created, so it must exist.
                raise IdentityError(
                    ErrorKind.INTERNAL_ERROR,
                    "Unable to create the user record provided.",
                    {"uid": uid},
                ) from e
            raise

    async def update_user(self, uid: str, properties: Dict[str, Any]) -> AccountRecord:
        updated_uid = await self.directory.update_account(uid, properties)
        return await self.get_user(updated_uid)

    async def delete_user(self, uid: str) -> None:
        await self.directory.delete_account(uid)
        self.logger.info("User deleted", uid=uid, tenant_id=self._tenant_id)

    async def delete_users(self, uids: Sequence[str]) -> DeleteUsersResult:
        """Delete up to 1000 accounts at once; disabled or not, they are deleted."""
        validate_delete_uids(uids)
        response = await self.directory.delete_accounts(uids, force=True)
        result = aggregate_delete_results(uids, response.get("errors"))
        self.logger.info(
            "Batch delete completed",
            success_count=result.success_count,
            failure_count=result.failure_count,
            tenant_id=self._tenant_id,
        )
        return result

    async def set_custom_user_claims(self, uid: str, custom_user_claims: Optional[Dict[str, Any]]) -> None:
        await self.directory.set_custom_claims(uid, custom_user_claims)

    async def import_users(
        self, users: List[Dict[str, Any]], options: Optional[Dict[str, Any]] = None
    ) -> UserImportResult:
        validate_import_records(users)
        response = await self.directory.import_accounts(users, options)
        return aggregate_import_results(users, response.get("error"))

    # Email action links

    async def generate_password_reset_link(
        self, email: str, action_code_settings: Optional[Dict[str, Any]] = None
    ) -> str:
        return await self.directory.get_email_action_link("PASSWORD_RESET", email, action_code_settings)

    async def generate_email_verification_link(
        self, email: str, action_code_settings: Optional[Dict[str, Any]] = None
    ) -> str:
        return await self.directory.get_email_action_link("VERIFY_EMAIL", email, action_code_settings)

    async def generate_sign_in_with_email_link(
        self, email: str, action_code_settings: Dict[str, Any]
    ) -> str:
        return await self.directory.get_email_action_link("EMAIL_SIGNIN", email, action_code_settings)

    # Provider configs

    async def get_provider_config(self, provider_id: str) -> ProviderConfig:
        return await self.providers.get(provider_id)

    async def list_provider_configs(self, options: Dict[str, Any]) -> ListProviderConfigResults:
        return await self.providers.list(options)

    async def create_provider_config(self, config: Dict[str, Any]) -> ProviderConfig:
        return await self.providers.create(config)

    async def update_provider_config(
        self, provider_id: str, updated_config: Dict[str, Any]
    ) -> ProviderConfig:
        return await self.providers.update(provider_id, updated_config)

    async def delete_provider_config(self, provider_id: str) -> None:
        await self.providers.delete(provider_id)


class Auth(BaseAuth):
    """Project-level auth, with access to tenant management."""

    def __init__(self, *args, tenant_manager: TenantManager, **kwargs):
        super().__init__(*args, **kwargs)
        self._tenant_manager = tenant_manager

    @property
    def tenant_manager(self) -> TenantManager:
        return self._tenant_manager
