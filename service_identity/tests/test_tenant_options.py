"""
Unit tests for tenant options validation and translation.
"""

import pytest

from service_identity.app.tenancy.options import (
    MAXIMUM_TEST_PHONE_NUMBERS,
    EmailSignInConfig,
    MultiFactorAuthConfig,
    build_tenant_server_request,
    tenant_id_from_resource_name,
    validate_tenant_options,
    validate_test_phone_numbers,
)
from shared.errors import ErrorKind, IdentityError


class TestValidateTestPhoneNumbers:
    """Test cases for validate_test_phone_numbers."""

    def test_valid_numbers(self):
        validate_test_phone_numbers({"+16505551234": "019287", "+16505550000": "123456"})

    def test_max_numbers(self):
        validate_test_phone_numbers({
            f"+1650555{i:04d}": "123456" for i in range(MAXIMUM_TEST_PHONE_NUMBERS)
        })

    def test_too_many_numbers(self):
        numbers = {f"+1650555{i:04d}": "123456" for i in range(MAXIMUM_TEST_PHONE_NUMBERS + 1)}

        with pytest.raises(IdentityError) as exc_info:
            validate_test_phone_numbers(numbers)
        assert exc_info.value.kind == ErrorKind.MAXIMUM_TEST_PHONE_NUMBER_EXCEEDED

    def test_invalid_phone_number(self):
        with pytest.raises(IdentityError) as exc_info:
            validate_test_phone_numbers({"16505551234": "019287"})

        assert exc_info.value.kind == ErrorKind.INVALID_TESTING_PHONE_NUMBER
        assert "16505551234" in exc_info.value.message

    @pytest.mark.parametrize("code", [
        "12345",
        "1234567",
        "abcdef",
        123456,
        "123456\n",
        "\u0661\u0662\u0663\u0664\u0665\u0666",
    ])
    def test_invalid_code(self, code):
        with pytest.raises(IdentityError) as exc_info:
            validate_test_phone_numbers({"+16505551234": code})

        assert exc_info.value.kind == ErrorKind.INVALID_TESTING_PHONE_NUMBER
        assert str(code) in exc_info.value.message

    @pytest.mark.parametrize("numbers", [None, ["+16505551234"], "+16505551234"])
    def test_not_a_mapping(self, numbers):
        with pytest.raises(IdentityError) as exc_info:
            validate_test_phone_numbers(numbers)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT


class TestValidateTenantOptions:
    """Test cases for validate_tenant_options."""

    def test_unknown_key(self):
        with pytest.raises(IdentityError) as exc_info:
            validate_tenant_options({"invalid_key": "value"}, is_create=True)

        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT
        assert "invalid_key" in exc_info.value.message

    @pytest.mark.parametrize("options", [None, "tenant", ["display_name"]])
    def test_not_a_mapping(self, options):
        with pytest.raises(IdentityError) as exc_info:
            validate_tenant_options(options, is_create=False)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_invalid_display_name(self):
        with pytest.raises(IdentityError) as exc_info:
            validate_tenant_options({"display_name": ""}, is_create=True)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_invalid_email_sign_in_config(self):
        with pytest.raises(IdentityError) as exc_info:
            validate_tenant_options({"email_sign_in_config": {"enabled": "yes"}}, is_create=True)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_invalid_multi_factor_state(self):
        with pytest.raises(IdentityError) as exc_info:
            validate_tenant_options({"multi_factor_config": {"state": "ON"}}, is_create=False)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_clearing_numbers_on_create(self):
        """Test None test numbers are only meaningful on update."""
        with pytest.raises(IdentityError) as exc_info:
            validate_tenant_options({"test_phone_numbers": None}, is_create=True)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

        validate_tenant_options({"test_phone_numbers": None}, is_create=False)


class TestBuildTenantServerRequest:
    """Test cases for build_tenant_server_request."""

    def test_full_request(self):
        request = build_tenant_server_request({
            "display_name": "TENANT-DISPLAY-NAME",
            "email_sign_in_config": {"enabled": True, "password_required": False},
            "multi_factor_config": {"state": "ENABLED", "factor_ids": ["phone"]},
            "test_phone_numbers": {"+16505551234": "019287"},
        }, is_create=True)

        assert request == {
            "displayName": "TENANT-DISPLAY-NAME",
            "allowPasswordSignup": True,
            "enableEmailLinkSignin": True,
            "mfaConfig": {"state": "ENABLED", "enabledProviders": ["PHONE_SMS"]},
            "testPhoneNumbers": {"+16505551234": "019287"},
        }

    def test_absent_fields_are_omitted(self):
        assert build_tenant_server_request({"display_name": "name"}, is_create=False) == {
            "displayName": "name",
        }

    def test_clear_test_phone_numbers(self):
        """Test None clears the test phone numbers on update."""
        request = build_tenant_server_request({"test_phone_numbers": None}, is_create=False)

        assert request == {"testPhoneNumbers": {}}

    def test_empty_update(self):
        assert build_tenant_server_request({}, is_create=False) == {}


class TestNestedConfigs:
    """Test cases for EmailSignInConfig and MultiFactorAuthConfig."""

    def test_email_sign_in_round_trip_shape(self):
        response = {"allowPasswordSignup": True, "enableEmailLinkSignin": False}

        assert EmailSignInConfig.from_server_response(response) == {
            "enabled": True,
            "password_required": True,
        }

    def test_email_sign_in_unknown_key(self):
        with pytest.raises(IdentityError):
            EmailSignInConfig.build_server_request({"enabled": True, "magic": True})

    def test_multi_factor_unknown_factor(self):
        with pytest.raises(IdentityError) as exc_info:
            MultiFactorAuthConfig.build_server_request({"state": "ENABLED", "factor_ids": ["totp"]})
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_multi_factor_from_server_response(self):
        assert MultiFactorAuthConfig.from_server_response(
            {"state": "ENABLED", "enabledProviders": ["PHONE_SMS"]}
        ) == {"state": "ENABLED", "factor_ids": ["phone"]}


class TestTenantIdFromResourceName:
    """Test cases for tenant_id_from_resource_name."""

    def test_resource_name(self):
        assert tenant_id_from_resource_name("projects/project-id/tenants/tenant-1") == "tenant-1"

    def test_not_a_tenant_resource(self):
        assert tenant_id_from_resource_name("projects/project-id") is None
