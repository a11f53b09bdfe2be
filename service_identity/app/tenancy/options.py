"""
Tenant options validation and translation to directory requests.
"""

import re
from typing import Any, Dict, Optional

from shared.errors import ErrorKind, IdentityError, invalid_argument
from ..validation.validators import is_non_empty_string, is_phone_number

MAXIMUM_TEST_PHONE_NUMBERS = 10

TENANT_OPTION_KEYS = frozenset({
    "display_name",
    "email_sign_in_config",
    "multi_factor_config",
    "test_phone_numbers",
})

_TEST_CODE_RE = re.compile(r"[0-9]{6}")


class EmailSignInConfig:
    """Email sign-in settings: {"enabled": bool, "password_required": bool}."""

    VALID_KEYS = frozenset({"enabled", "password_required"})

    @classmethod
    def build_server_request(cls, options: Any) -> Dict[str, Any]:
        if not isinstance(options, dict):
            raise invalid_argument("\"EmailSignInConfig\" must be a non-null object.")
        for key in options:
            if key not in cls.VALID_KEYS:
                raise invalid_argument(f"\"{key}\" is not a valid EmailSignInConfig parameter.", key=key)
        if not isinstance(options.get("enabled"), bool):
            raise invalid_argument("\"EmailSignInConfig.enabled\" must be a boolean.")

        request = {"allowPasswordSignup": options["enabled"]}
        if "password_required" in options:
            if not isinstance(options["password_required"], bool):
                raise invalid_argument("\"EmailSignInConfig.password_required\" must be a boolean.")
            request["enableEmailLinkSignin"] = not options["password_required"]
        return request

    @staticmethod
    def from_server_response(response: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "enabled": bool(response.get("allowPasswordSignup", False)),
            "password_required": not response.get("enableEmailLinkSignin", False),
        }


class MultiFactorAuthConfig:
    """Multi-factor settings: {"state": "ENABLED"|"DISABLED", "factor_ids": ["phone"]}."""

    VALID_KEYS = frozenset({"state", "factor_ids"})
    STATES = frozenset({"ENABLED", "DISABLED"})
    FACTOR_ID_TO_PROVIDER = {"phone": "PHONE_SMS"}

    @classmethod
    def build_server_request(cls, options: Any) -> Dict[str, Any]:
        if not isinstance(options, dict):
            raise invalid_argument("\"MultiFactorConfig\" must be a non-null object.")
        for key in options:
            if key not in cls.VALID_KEYS:
                raise invalid_argument(f"\"{key}\" is not a valid MultiFactorConfig parameter.", key=key)
        if options.get("state") not in cls.STATES:
            raise invalid_argument("\"MultiFactorConfig.state\" must be either \"ENABLED\" or \"DISABLED\".")

        request: Dict[str, Any] = {"state": options["state"]}
        if "factor_ids" in options:
            factor_ids = options["factor_ids"]
            if not isinstance(factor_ids, list):
                raise invalid_argument("\"MultiFactorConfig.factor_ids\" must be an array of valid \"AuthFactorTypes\".")
            providers = []
            for factor_id in factor_ids:
                if factor_id not in cls.FACTOR_ID_TO_PROVIDER:
                    raise invalid_argument(f"\"{factor_id}\" is not a valid \"AuthFactorType\".")
                providers.append(cls.FACTOR_ID_TO_PROVIDER[factor_id])
            request["enabledProviders"] = providers
        return request

    @classmethod
    def from_server_response(cls, response: Dict[str, Any]) -> Dict[str, Any]:
        provider_to_factor = {value: key for key, value in cls.FACTOR_ID_TO_PROVIDER.items()}
        return {
            "state": response.get("state", "DISABLED"),
            "factor_ids": [
                provider_to_factor[provider]
                for provider in response.get("enabledProviders", [])
                if provider in provider_to_factor
            ],
        }


def validate_test_phone_numbers(test_phone_numbers: Any) -> None:
    """Validate a phone number -> 6 digit code map."""
    if not isinstance(test_phone_numbers, dict):
        raise invalid_argument("\"test_phone_numbers\" must be a map of phone number / code pairs.")
    if len(test_phone_numbers) > MAXIMUM_TEST_PHONE_NUMBERS:
        raise IdentityError(ErrorKind.MAXIMUM_TEST_PHONE_NUMBER_EXCEEDED)

    for phone_number, code in test_phone_numbers.items():
        if not is_phone_number(phone_number):
            raise IdentityError(
                ErrorKind.INVALID_TESTING_PHONE_NUMBER,
                f"\"{phone_number}\" is not a valid E.164 standard compliant phone number.",
                {"phone_number": phone_number},
            )
        if not isinstance(code, str) or not _TEST_CODE_RE.fullmatch(code):
            raise IdentityError(
                ErrorKind.INVALID_TESTING_PHONE_NUMBER,
                f"\"{code}\" is not a valid 6 digit code string.",
                {"phone_number": phone_number},
            )


def validate_tenant_options(options: Any, is_create: bool) -> None:
    """Validate create/update tenant options; raise on the first violation."""
    label = "CreateTenantRequest" if is_create else "UpdateTenantRequest"
    if not isinstance(options, dict):
        raise invalid_argument(f"\"{label}\" must be a valid non-null object.")

    for key in options:
        if key not in TENANT_OPTION_KEYS:
            raise invalid_argument(f"\"{key}\" is not a valid {label} parameter.", key=key)

    if "display_name" in options and not is_non_empty_string(options["display_name"]):
        raise invalid_argument(f"\"{label}.display_name\" must be a valid non-empty string.")

    if "email_sign_in_config" in options:
        EmailSignInConfig.build_server_request(options["email_sign_in_config"])

    if options.get("test_phone_numbers") is not None:
        validate_test_phone_numbers(options["test_phone_numbers"])
    elif "test_phone_numbers" in options and is_create:
        # None clears the numbers on update; there is nothing to clear on create.
        raise invalid_argument(f"\"{label}.test_phone_numbers\" must be a non-null object.")

    if "multi_factor_config" in options:
        MultiFactorAuthConfig.build_server_request(options["multi_factor_config"])


def build_tenant_server_request(options: Any, is_create: bool) -> Dict[str, Any]:
    """Validate `options` and translate them to the directory wire shape."""
    validate_tenant_options(options, is_create)

    request: Dict[str, Any] = {}
    if "email_sign_in_config" in options:
        request.update(EmailSignInConfig.build_server_request(options["email_sign_in_config"]))
    if "display_name" in options:
        request["displayName"] = options["display_name"]
    if "multi_factor_config" in options:
        request["mfaConfig"] = MultiFactorAuthConfig.build_server_request(options["multi_factor_config"])
    if "test_phone_numbers" in options:
        request["testPhoneNumbers"] = options["test_phone_numbers"] or {}
    return request


def tenant_id_from_resource_name(resource_name: str) -> Optional[str]:
    """Extract "tenant1" from "projects/project1/tenants/tenant1"."""
    match = re.search(r"/tenants/(.*)$", resource_name or "")
    if not match:
        return None
    return match.group(1)
