"""
Unit tests for batch lookup validation and resolution.
"""

import pytest

from service_identity.app.batch.lookup import (
    MAX_GET_ACCOUNTS_BATCH_SIZE,
    matches,
    resolve_users,
    validate_identifiers,
)
from service_identity.app.identifiers import (
    EmailIdentifier,
    PhoneIdentifier,
    ProviderIdentifier,
    UidIdentifier,
)
from service_identity.app.models import AccountRecord
from shared.errors import ErrorKind, IdentityError
from shared.test_helpers import test_data_factory


@pytest.fixture
def accounts():
    """Accounts built from backend responses."""
    return [
        AccountRecord.from_server_response(test_data_factory.account_response(user))
        for user in test_data_factory.create_test_users()
    ]


class TestValidateIdentifiers:
    """Test cases for validate_identifiers."""

    def test_accepts_mixed_identifiers(self):
        validate_identifiers([
            UidIdentifier("uid1"),
            EmailIdentifier("user@example.com"),
            PhoneIdentifier("+15555550001"),
            ProviderIdentifier("google.com", "google_uid1"),
        ])

    def test_accepts_empty_list(self):
        validate_identifiers([])

    def test_too_many_identifiers(self):
        """Test more than 100 identifiers are rejected."""
        identifiers = [UidIdentifier(f"uid{i}") for i in range(MAX_GET_ACCOUNTS_BATCH_SIZE + 1)]

        with pytest.raises(IdentityError) as exc_info:
            validate_identifiers(identifiers)
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_max_identifiers(self):
        validate_identifiers([UidIdentifier(f"uid{i}") for i in range(MAX_GET_ACCOUNTS_BATCH_SIZE)])

    def test_not_a_list(self):
        with pytest.raises(IdentityError) as exc_info:
            validate_identifiers("uid1")
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    @pytest.mark.parametrize("identifier, kind", [
        (UidIdentifier(""), ErrorKind.INVALID_UID),
        (EmailIdentifier("not-an-email"), ErrorKind.INVALID_EMAIL),
        (PhoneIdentifier("15555550001"), ErrorKind.INVALID_PHONE_NUMBER),
        (ProviderIdentifier("", "uid"), ErrorKind.INVALID_PROVIDER_ID),
        (ProviderIdentifier("google.com", ""), ErrorKind.INVALID_PROVIDER_UID),
    ])
    def test_invalid_identifier_values(self, identifier, kind):
        with pytest.raises(IdentityError) as exc_info:
            validate_identifiers([identifier])
        assert exc_info.value.kind == kind

    def test_unknown_identifier_type(self):
        """Test values outside the identifier union are internal errors."""
        with pytest.raises(IdentityError) as exc_info:
            validate_identifiers([{"uid": "uid1"}])
        assert exc_info.value.kind == ErrorKind.INTERNAL_ERROR


class TestResolveUsers:
    """Test cases for resolve_users."""

    def test_all_found(self, accounts):
        identifiers = [UidIdentifier("uid1"), EmailIdentifier("user2@example.com")]

        result = resolve_users(identifiers, accounts)

        assert result.not_found == []
        assert [user.uid for user in result.users] == ["uid1", "uid2", "uid3"]

    def test_not_found_identifiers(self, accounts):
        """Test identifiers without a matching account are reported."""
        missing_uid = UidIdentifier("missing")
        missing_phone = PhoneIdentifier("+15555559999")
        identifiers = [UidIdentifier("uid1"), missing_uid, missing_phone]

        result = resolve_users(identifiers, accounts[:1])

        assert [user.uid for user in result.users] == ["uid1"]
        assert result.not_found == [missing_uid, missing_phone]

    def test_no_accounts(self):
        identifiers = [UidIdentifier("uid1"), EmailIdentifier("user1@example.com")]

        result = resolve_users(identifiers, [])

        assert result.users == []
        assert result.not_found == identifiers

    def test_provider_identifier(self, accounts):
        """Test provider identifiers match linked identities."""
        found = ProviderIdentifier("google.com", "google_uid1")
        wrong_provider = ProviderIdentifier("facebook.com", "google_uid1")

        result = resolve_users([found, wrong_provider], accounts)

        assert result.not_found == [wrong_provider]


class TestMatches:
    """Test cases for matches."""

    def test_each_variant(self, accounts):
        account = accounts[0]

        assert matches(UidIdentifier("uid1"), account)
        assert matches(EmailIdentifier("user1@example.com"), account)
        assert matches(PhoneIdentifier("+15555550001"), account)
        assert matches(ProviderIdentifier("google.com", "google_uid1"), account)
        assert not matches(UidIdentifier("uid2"), account)
        assert not matches(EmailIdentifier("user2@example.com"), account)

    def test_unknown_identifier_type(self, accounts):
        with pytest.raises(IdentityError) as exc_info:
            matches("uid1", accounts[0])
        assert exc_info.value.kind == ErrorKind.INTERNAL_ERROR

    def test_mixed_identifiers_partially_found(self):
        """Test only the unmatched phone identifier is reported."""
        accounts = [
            AccountRecord(uid="a"),
            AccountRecord(uid="other", email="b@x.com"),
        ]
        phone = PhoneIdentifier("+15551234")

        result = resolve_users([UidIdentifier("a"), EmailIdentifier("b@x.com"), phone], accounts)

        assert {user.uid for user in result.users} == {"a", "other"}
        assert result.not_found == [phone]
