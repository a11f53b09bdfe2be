"""
Unit tests for provider config dispatch.
"""

import pytest
from unittest.mock import AsyncMock

from service_identity.app.providers.config import (
    OIDCConfig,
    OidcProviderId,
    SAMLConfig,
    SamlProviderId,
    parse_provider_id,
)
from service_identity.app.providers.dispatcher import ProviderConfigDispatcher
from shared.errors import ErrorKind, IdentityError
from shared.test_helpers import test_data_factory


@pytest.fixture
def directory():
    """Mock account directory."""
    directory = AsyncMock()
    directory.get_oidc_config.return_value = test_data_factory.create_oidc_config_response()
    directory.get_saml_config.return_value = test_data_factory.create_saml_config_response()
    directory.create_oidc_config.return_value = test_data_factory.create_oidc_config_response()
    directory.update_saml_config.return_value = test_data_factory.create_saml_config_response()
    return directory


@pytest.fixture
def dispatcher(directory):
    return ProviderConfigDispatcher(directory)


class TestParseProviderId:
    """Test cases for parse_provider_id."""

    def test_oidc(self):
        assert parse_provider_id("oidc.provider") == OidcProviderId("oidc.provider")

    def test_saml(self):
        assert parse_provider_id("saml.provider") == SamlProviderId("saml.provider")

    @pytest.mark.parametrize("provider_id", ["google.com", "oidc.", "saml.", "", None, 42])
    def test_invalid(self, provider_id):
        with pytest.raises(IdentityError) as exc_info:
            parse_provider_id(provider_id)
        assert exc_info.value.kind == ErrorKind.INVALID_PROVIDER_ID


class TestProviderConfigDispatcher:
    """Test cases for ProviderConfigDispatcher."""

    @pytest.mark.asyncio
    async def test_get_oidc_config(self, dispatcher, directory):
        config = await dispatcher.get("oidc.provider")

        assert isinstance(config, OIDCConfig)
        assert config.provider_id == "oidc.provider"
        assert config.client_id == "CLIENT_ID"
        directory.get_oidc_config.assert_awaited_once_with("oidc.provider")
        directory.get_saml_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_saml_config(self, dispatcher, directory):
        config = await dispatcher.get("saml.provider")

        assert isinstance(config, SAMLConfig)
        assert config.idp_entity_id == "IDP_ENTITY_ID"
        assert config.x509_certificates == ["CERT1", "CERT2"]
        assert config.rp_entity_id == "RP_ENTITY_ID"
        assert config.enable_request_signing is True
        directory.get_saml_config.assert_awaited_once_with("saml.provider")

    @pytest.mark.asyncio
    async def test_invalid_provider_id_makes_no_call(self, dispatcher, directory):
        """Test an unknown provider id prefix fails before any I/O."""
        with pytest.raises(IdentityError) as exc_info:
            await dispatcher.get("google.com")

        assert exc_info.value.kind == ErrorKind.INVALID_PROVIDER_ID
        directory.get_oidc_config.assert_not_awaited()
        directory.get_saml_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self, dispatcher, directory):
        await dispatcher.delete("saml.provider")

        directory.delete_saml_config.assert_awaited_once_with("saml.provider")
        directory.delete_oidc_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_oidc_config(self, dispatcher, directory):
        config = await dispatcher.create({
            "provider_id": "oidc.provider",
            "display_name": "OIDC Display Name",
            "enabled": True,
            "client_id": "CLIENT_ID",
            "issuer": "https://oidc.com/issuer",
        })

        assert config.provider_id == "oidc.provider"
        directory.create_oidc_config.assert_awaited_once_with("oidc.provider", {
            "displayName": "OIDC Display Name",
            "enabled": True,
            "clientId": "CLIENT_ID",
            "issuer": "https://oidc.com/issuer",
        })

    @pytest.mark.asyncio
    @pytest.mark.parametrize("config", [None, "oidc.provider"])
    async def test_create_without_config(self, dispatcher, directory, config):
        with pytest.raises(IdentityError) as exc_info:
            await dispatcher.create(config)

        assert exc_info.value.kind == ErrorKind.INVALID_CONFIG
        directory.create_oidc_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_with_invalid_provider_id(self, dispatcher):
        with pytest.raises(IdentityError) as exc_info:
            await dispatcher.create({"provider_id": "google.com"})
        assert exc_info.value.kind == ErrorKind.INVALID_PROVIDER_ID

    @pytest.mark.asyncio
    async def test_update_saml_config(self, dispatcher, directory):
        config = await dispatcher.update("saml.provider", {"x509_certificates": ["CERT1", "CERT2"]})

        assert isinstance(config, SAMLConfig)
        directory.update_saml_config.assert_awaited_once_with("saml.provider", {
            "idpConfig": {"idpCertificates": [{"x509Certificate": "CERT1"}, {"x509Certificate": "CERT2"}]},
        })

    @pytest.mark.asyncio
    async def test_update_without_config(self, dispatcher, directory):
        """Test a missing update is rejected before any I/O."""
        with pytest.raises(IdentityError) as exc_info:
            await dispatcher.update("oidc.provider", None)

        assert exc_info.value.kind == ErrorKind.INVALID_CONFIG
        directory.update_oidc_config.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_list_oidc_configs(self, dispatcher, directory):
        directory.list_oidc_configs.return_value = {
            "oauthIdpConfigs": [
                test_data_factory.create_oidc_config_response("oidc.one"),
                test_data_factory.create_oidc_config_response("oidc.two"),
            ],
            "nextPageToken": "NEXT_PAGE_TOKEN",
        }

        result = await dispatcher.list({"type": "oidc", "max_results": 50, "page_token": "PAGE"})

        assert [config.provider_id for config in result.provider_configs] == ["oidc.one", "oidc.two"]
        assert result.page_token == "NEXT_PAGE_TOKEN"
        directory.list_oidc_configs.assert_awaited_once_with(50, "PAGE")

    @pytest.mark.asyncio
    async def test_list_last_page(self, dispatcher, directory):
        """Test the page token is absent when the backend sends none."""
        directory.list_saml_configs.return_value = {
            "inboundSamlConfigs": [test_data_factory.create_saml_config_response()],
        }

        result = await dispatcher.list({"type": "saml"})

        assert len(result.provider_configs) == 1
        assert result.page_token is None

    @pytest.mark.asyncio
    async def test_list_empty(self, dispatcher, directory):
        directory.list_saml_configs.return_value = {}

        result = await dispatcher.list({"type": "saml"})

        assert result.provider_configs == []
        assert result.page_token is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("options", [None, {}, {"type": "ldap"}])
    async def test_list_invalid_type(self, dispatcher, options):
        with pytest.raises(IdentityError) as exc_info:
            await dispatcher.list(options)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT
