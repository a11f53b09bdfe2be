"""
Routing of provider-config operations to the OIDC or SAML backend calls.
"""

from typing import Any, Dict, Optional

from shared.errors import ErrorKind, IdentityError, invalid_argument
from shared.logging import get_logger
from .config import (
    ListProviderConfigResults,
    OIDCConfig,
    OidcProviderId,
    ProviderConfig,
    ProviderId,
    SAMLConfig,
    SamlProviderId,
    parse_provider_id,
)


def _unreachable(provider_id: ProviderId) -> IdentityError:
    return IdentityError(ErrorKind.INTERNAL_ERROR, f"Unhandled provider id type: {provider_id!r}")


class ProviderConfigDispatcher:
    """Parses provider ids once and dispatches on the resulting variant."""

    def __init__(self, directory):
        self.directory = directory
        self.logger = get_logger("identity.providers")

    async def get(self, provider_id: str) -> ProviderConfig:
        parsed = parse_provider_id(provider_id)
        if isinstance(parsed, OidcProviderId):
            return OIDCConfig.from_server_response(await self.directory.get_oidc_config(parsed.value))
        if isinstance(parsed, SamlProviderId):
            return SAMLConfig.from_server_response(await self.directory.get_saml_config(parsed.value))
        raise _unreachable(parsed)

    async def delete(self, provider_id: str) -> None:
        parsed = parse_provider_id(provider_id)
        if isinstance(parsed, OidcProviderId):
            await self.directory.delete_oidc_config(parsed.value)
        elif isinstance(parsed, SamlProviderId):
            await self.directory.delete_saml_config(parsed.value)
        else:
            raise _unreachable(parsed)
        self.logger.info("Provider config deleted", provider_id=provider_id)

    async def update(self, provider_id: str, updated_config: Optional[Dict[str, Any]]) -> ProviderConfig:
        if not isinstance(updated_config, dict):
            raise IdentityError(
                ErrorKind.INVALID_CONFIG,
                "Request is missing \"UpdateAuthProviderRequest\" configuration.",
            )
        parsed = parse_provider_id(provider_id)
        if isinstance(parsed, OidcProviderId):
            response = await self.directory.update_oidc_config(
                parsed.value, OIDCConfig.build_server_request(updated_config)
            )
            return OIDCConfig.from_server_response(response)
        if isinstance(parsed, SamlProviderId):
            response = await self.directory.update_saml_config(
                parsed.value, SAMLConfig.build_server_request(updated_config)
            )
            return SAMLConfig.from_server_response(response)
        raise _unreachable(parsed)

    async def create(self, config: Optional[Dict[str, Any]]) -> ProviderConfig:
        if not isinstance(config, dict):
            raise IdentityError(
                ErrorKind.INVALID_CONFIG,
                "Request is missing \"AuthProviderConfig\" configuration.",
            )
        parsed = parse_provider_id(config.get("provider_id"))
        if isinstance(parsed, OidcProviderId):
            response = await self.directory.create_oidc_config(
                parsed.value, OIDCConfig.build_server_request(config)
            )
            created: ProviderConfig = OIDCConfig.from_server_response(response)
        elif isinstance(parsed, SamlProviderId):
            response = await self.directory.create_saml_config(
                parsed.value, SAMLConfig.build_server_request(config)
            )
            created = SAMLConfig.from_server_response(response)
        else:
            raise _unreachable(parsed)
        self.logger.info("Provider config created", provider_id=parsed.value)
        return created

    async def list(self, options: Optional[Dict[str, Any]]) -> ListProviderConfigResults:
        """List one page of OIDC or SAML configs, per `options["type"]`."""
        provider_type = options.get("type") if isinstance(options, dict) else None
        if provider_type == "oidc":
            response = await self.directory.list_oidc_configs(
                options.get("max_results"), options.get("page_token")
            )
            configs = [
                OIDCConfig.from_server_response(item)
                for item in response.get("oauthIdpConfigs", [])
            ]
        elif provider_type == "saml":
            response = await self.directory.list_saml_configs(
                options.get("max_results"), options.get("page_token")
            )
            configs = [
                SAMLConfig.from_server_response(item)
                for item in response.get("inboundSamlConfigs", [])
            ]
        else:
            raise invalid_argument("\"AuthProviderConfigFilter.type\" must be either \"saml\" or \"oidc\"")

        return ListProviderConfigResults(
            provider_configs=configs,
            page_token=response.get("nextPageToken"),
        )
