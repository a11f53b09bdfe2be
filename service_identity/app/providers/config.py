"""
OIDC and SAML provider configurations and their provider-id union.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from shared.errors import ErrorKind, IdentityError

OIDC_PREFIX = "oidc."
SAML_PREFIX = "saml."


@dataclass(frozen=True)
class OidcProviderId:
    value: str


@dataclass(frozen=True)
class SamlProviderId:
    value: str


ProviderId = Union[OidcProviderId, SamlProviderId]


def parse_provider_id(value: Any) -> ProviderId:
    """Classify a provider id once, at the boundary."""
    if isinstance(value, str) and value.startswith(OIDC_PREFIX) and len(value) > len(OIDC_PREFIX):
        return OidcProviderId(value)
    if isinstance(value, str) and value.startswith(SAML_PREFIX) and len(value) > len(SAML_PREFIX):
        return SamlProviderId(value)
    raise IdentityError(ErrorKind.INVALID_PROVIDER_ID, details={"provider_id": value})


def _provider_id_from_name(name: str) -> str:
    # "projects/project1/oauthIdpConfigs/oidc.provider" -> "oidc.provider"
    return name.rsplit("/", 1)[-1]


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


class OIDCConfig(BaseModel):
    """An OpenID Connect identity provider."""
    provider_id: str
    display_name: Optional[str] = None
    enabled: bool = False
    client_id: Optional[str] = None
    issuer: Optional[str] = None
    client_secret: Optional[str] = None

    @classmethod
    def from_server_response(cls, response: Dict[str, Any]) -> "OIDCConfig":
        if not isinstance(response, dict) or not response.get("name"):
            raise IdentityError(ErrorKind.INTERNAL_ERROR, "INTERNAL ASSERT FAILED: Invalid OIDC configuration response")
        return cls(
            provider_id=_provider_id_from_name(response["name"]),
            display_name=response.get("displayName"),
            enabled=bool(response.get("enabled", False)),
            client_id=response.get("clientId"),
            issuer=response.get("issuer"),
            client_secret=response.get("clientSecret"),
        )

    @staticmethod
    def build_server_request(options: Dict[str, Any]) -> Dict[str, Any]:
        return _drop_none({
            "displayName": options.get("display_name"),
            "enabled": options.get("enabled"),
            "clientId": options.get("client_id"),
            "issuer": options.get("issuer"),
            "clientSecret": options.get("client_secret"),
        })


class SAMLConfig(BaseModel):
    """A SAML identity provider."""
    provider_id: str
    display_name: Optional[str] = None
    enabled: bool = False
    idp_entity_id: Optional[str] = None
    sso_url: Optional[str] = None
    x509_certificates: List[str] = []
    rp_entity_id: Optional[str] = None
    callback_url: Optional[str] = None
    enable_request_signing: Optional[bool] = None

    @classmethod
    def from_server_response(cls, response: Dict[str, Any]) -> "SAMLConfig":
        if not isinstance(response, dict) or not response.get("name"):
            raise IdentityError(ErrorKind.INTERNAL_ERROR, "INTERNAL ASSERT FAILED: Invalid SAML configuration response")
        idp_config = response.get("idpConfig", {})
        sp_config = response.get("spConfig", {})
        return cls(
            provider_id=_provider_id_from_name(response["name"]),
            display_name=response.get("displayName"),
            enabled=bool(response.get("enabled", False)),
            idp_entity_id=idp_config.get("idpEntityId"),
            sso_url=idp_config.get("ssoUrl"),
            x509_certificates=[
                cert["x509Certificate"]
                for cert in idp_config.get("idpCertificates", [])
                if "x509Certificate" in cert
            ],
            enable_request_signing=idp_config.get("signRequest"),
            rp_entity_id=sp_config.get("spEntityId"),
            callback_url=sp_config.get("callbackUri"),
        )

    @staticmethod
    def build_server_request(options: Dict[str, Any]) -> Dict[str, Any]:
        certificates = options.get("x509_certificates")
        idp_config = _drop_none({
            "idpEntityId": options.get("idp_entity_id"),
            "ssoUrl": options.get("sso_url"),
            "signRequest": options.get("enable_request_signing"),
            "idpCertificates": (
                [{"x509Certificate": cert} for cert in certificates]
                if certificates is not None else None
            ),
        })
        sp_config = _drop_none({
            "spEntityId": options.get("rp_entity_id"),
            "callbackUri": options.get("callback_url"),
        })
        return _drop_none({
            "displayName": options.get("display_name"),
            "enabled": options.get("enabled"),
            "idpConfig": idp_config or None,
            "spConfig": sp_config or None,
        })


ProviderConfig = Union[OIDCConfig, SAMLConfig]


class ListProviderConfigResults(BaseModel):
    provider_configs: List[Union[OIDCConfig, SAMLConfig]]
    page_token: Optional[str] = None
