"""
Tenant management and tenant-scoped auth instances.
"""

from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from shared.errors import ErrorKind, IdentityError
from shared.logging import get_logger
from ..validation.validators import is_non_empty_string
from .options import (
    EmailSignInConfig,
    MultiFactorAuthConfig,
    build_tenant_server_request,
    tenant_id_from_resource_name,
)


class Tenant(BaseModel):
    """A tenant as held by the Account Directory."""
    tenant_id: str
    display_name: Optional[str] = None
    email_sign_in_config: Optional[Dict[str, Any]] = None
    multi_factor_config: Optional[Dict[str, Any]] = None
    test_phone_numbers: Optional[Dict[str, str]] = None

    @classmethod
    def from_server_response(cls, response: Dict[str, Any]) -> "Tenant":
        tenant_id = tenant_id_from_resource_name(response.get("name", "")) if isinstance(response, dict) else None
        if not tenant_id:
            raise IdentityError(
                ErrorKind.INTERNAL_ERROR,
                "INTERNAL ASSERT FAILED: Invalid tenant response",
            )
        return cls(
            tenant_id=tenant_id,
            display_name=response.get("displayName"),
            email_sign_in_config=EmailSignInConfig.from_server_response(response),
            multi_factor_config=(
                MultiFactorAuthConfig.from_server_response(response["mfaConfig"])
                if "mfaConfig" in response else None
            ),
            test_phone_numbers=response.get("testPhoneNumbers"),
        )


class ListTenantsResult(BaseModel):
    tenants: List[Tenant]
    page_token: Optional[str] = None


class TenantManager:
    """Manages tenants and hands out one auth instance per tenant id.

    `auth_factory` builds the tenant-scoped auth for a tenant id; it is only
    called once per id.
    """

    def __init__(self, directory, auth_factory: Callable[[str], Any]):
        self.directory = directory
        self.auth_factory = auth_factory
        self.logger = get_logger("identity.tenant_manager")
        self._tenants_map: Dict[str, Any] = {}

    def auth_for_tenant(self, tenant_id: str):
        if not is_non_empty_string(tenant_id):
            raise IdentityError(ErrorKind.INVALID_TENANT_ID)
        if tenant_id not in self._tenants_map:
            self._tenants_map[tenant_id] = self.auth_factory(tenant_id)
        return self._tenants_map[tenant_id]

    async def get_tenant(self, tenant_id: str) -> Tenant:
        if not is_non_empty_string(tenant_id):
            raise IdentityError(ErrorKind.INVALID_TENANT_ID)
        return Tenant.from_server_response(await self.directory.get_tenant(tenant_id))

    async def list_tenants(
        self, max_results: Optional[int] = None, page_token: Optional[str] = None
    ) -> ListTenantsResult:
        response = await self.directory.list_tenants(max_results, page_token)
        return ListTenantsResult(
            tenants=[Tenant.from_server_response(item) for item in response.get("tenants", [])],
            page_token=response.get("nextPageToken"),
        )

    async def create_tenant(self, options: Dict[str, Any]) -> Tenant:
        request = build_tenant_server_request(options, is_create=True)
        tenant = Tenant.from_server_response(await self.directory.create_tenant(request))
        self.logger.info("Tenant created", tenant_id=tenant.tenant_id)
        return tenant

    async def update_tenant(self, tenant_id: str, options: Dict[str, Any]) -> Tenant:
        if not is_non_empty_string(tenant_id):
            raise IdentityError(ErrorKind.INVALID_TENANT_ID)
        request = build_tenant_server_request(options, is_create=False)
        tenant = Tenant.from_server_response(await self.directory.update_tenant(tenant_id, request))
        self.logger.info("Tenant updated", tenant_id=tenant_id, fields=sorted(request))
        return tenant

    async def delete_tenant(self, tenant_id: str) -> None:
        if not is_non_empty_string(tenant_id):
            raise IdentityError(ErrorKind.INVALID_TENANT_ID)
        await self.directory.delete_tenant(tenant_id)
        self._tenants_map.pop(tenant_id, None)
        self.logger.info("Tenant deleted", tenant_id=tenant_id)
