"""
Revocation-aware verification shared by the ID token and session cookie paths.
"""

from typing import Awaitable, Callable, Protocol

from shared.errors import ErrorKind, IdentityError
from shared.logging import get_logger
from ..models import AccountRecord, DecodedToken
from .token_verifier import TokenVerifier

AccountLoader = Callable[[str], Awaitable[AccountRecord]]


class Verifier(Protocol):
    """Anything that verifies a token with an optional revocation check."""

    async def verify(self, token: str, check_revoked: bool = False) -> DecodedToken: ...


class RevocationCheckingVerifier:
    """Decodes a token, then optionally checks it against the account's revocation cutoff.

    One instance serves ID tokens and another session cookies; they differ
    only in the token verifier and the error kind raised on revocation.
    """

    def __init__(
        self,
        token_verifier: TokenVerifier,
        load_account: AccountLoader,
        revoked_kind: ErrorKind,
    ):
        self.token_verifier = token_verifier
        self.load_account = load_account
        self.revoked_kind = revoked_kind
        self.logger = get_logger("identity.revocation")

    async def verify(self, token: str, check_revoked: bool = False) -> DecodedToken:
        decoded = await self.token_verifier.verify_jwt(token)
        if not check_revoked:
            return decoded

        # The subject is only known once decoding succeeded.
        account = await self.load_account(decoded.uid)
        if is_revoked(decoded, account):
            self.logger.info("Revoked token rejected", uid=decoded.uid, kind=self.revoked_kind.name)
            raise IdentityError(self.revoked_kind)
        return decoded


def is_revoked(decoded: DecodedToken, account: AccountRecord) -> bool:
    """True when the token was authenticated before the account's cutoff.

    Accounts that were never revoked have no cutoff and revoke nothing.
    """
    valid_since_millis = account.tokens_valid_after_time_millis
    if valid_since_millis is None:
        return False
    auth_time_millis = decoded.auth_time * 1000
    return auth_time_millis < valid_since_millis
