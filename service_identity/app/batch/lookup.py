"""
Batch lookup of accounts by heterogeneous identifiers.
"""

from typing import Any, Iterable, List, Sequence

from shared.errors import ErrorKind, IdentityError, invalid_argument
from ..identifiers import (
    EmailIdentifier,
    Identifier,
    PhoneIdentifier,
    ProviderIdentifier,
    UidIdentifier,
)
from ..models import AccountRecord, GetUsersResult
from ..validation.validators import is_email, is_non_empty_string, is_phone_number, is_uid

MAX_GET_ACCOUNTS_BATCH_SIZE = 100


def validate_identifiers(identifiers: Any) -> None:
    """Fail fast on a lookup request, before anything reaches the network."""
    if not isinstance(identifiers, (list, tuple)):
        raise invalid_argument("`identifiers` parameter must be an array")
    if len(identifiers) > MAX_GET_ACCOUNTS_BATCH_SIZE:
        raise invalid_argument(
            f"`identifiers` parameter must have <= {MAX_GET_ACCOUNTS_BATCH_SIZE} entries.",
            count=len(identifiers),
        )

    for identifier in identifiers:
        if isinstance(identifier, UidIdentifier):
            if not is_uid(identifier.uid):
                raise IdentityError(ErrorKind.INVALID_UID)
        elif isinstance(identifier, EmailIdentifier):
            if not is_email(identifier.email):
                raise IdentityError(ErrorKind.INVALID_EMAIL)
        elif isinstance(identifier, PhoneIdentifier):
            if not is_phone_number(identifier.phone_number):
                raise IdentityError(ErrorKind.INVALID_PHONE_NUMBER)
        elif isinstance(identifier, ProviderIdentifier):
            if not is_non_empty_string(identifier.provider_id):
                raise IdentityError(ErrorKind.INVALID_PROVIDER_ID)
            if not is_non_empty_string(identifier.provider_uid):
                raise IdentityError(ErrorKind.INVALID_PROVIDER_UID)
        else:
            raise _unhandled(identifier)


def matches(identifier: Identifier, account: AccountRecord) -> bool:
    """True if `account` satisfies `identifier`."""
    if isinstance(identifier, UidIdentifier):
        return identifier.uid == account.uid
    if isinstance(identifier, EmailIdentifier):
        return identifier.email == account.email
    if isinstance(identifier, PhoneIdentifier):
        return identifier.phone_number == account.phone_number
    if isinstance(identifier, ProviderIdentifier):
        return any(
            link.provider_id == identifier.provider_id and link.uid == identifier.provider_uid
            for link in account.provider_data
        )
    raise _unhandled(identifier)


def resolve_users(
    identifiers: Sequence[Identifier], accounts: Iterable[AccountRecord]
) -> GetUsersResult:
    """Partition the requested identifiers into found and not found.

    `users` is the directory's account set as returned; no ordering
    correspondence with `identifiers` is implied.
    """
    users: List[AccountRecord] = list(accounts)
    not_found = [
        identifier
        for identifier in identifiers
        if not any(matches(identifier, account) for account in users)
    ]
    return GetUsersResult(users=users, not_found=not_found)


def _unhandled(identifier: Any) -> IdentityError:
    # The identifier union is closed; anything else is a programming error.
    return IdentityError(
        ErrorKind.INTERNAL_ERROR,
        "Unhandled identifier type",
        {"type": type(identifier).__name__},
    )
