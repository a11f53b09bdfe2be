"""
Session cookie minting.
"""

from typing import Any, Mapping, Optional, Protocol

from shared.errors import ErrorKind, IdentityError
from shared.logging import get_logger
from .validators import is_non_empty_string, is_number

MIN_SESSION_COOKIE_DURATION_MS = 5 * 60 * 1000
MAX_SESSION_COOKIE_DURATION_MS = 14 * 24 * 60 * 60 * 1000


class SessionCookieIssuer(Protocol):
    async def create_session_cookie(
        self, id_token: str, options: Optional[Mapping[str, Any]]
    ) -> str: ...


def validate_session_cookie_duration(options: Optional[Mapping[str, Any]]) -> int:
    """Return the requested duration in seconds.

    `options["expires_in"]` is a duration in milliseconds.
    """
    if not isinstance(options, Mapping) or not is_number(options.get("expires_in")):
        raise IdentityError(ErrorKind.INVALID_SESSION_COOKIE_DURATION)
    expires_in = options["expires_in"]
    if not MIN_SESSION_COOKIE_DURATION_MS <= expires_in <= MAX_SESSION_COOKIE_DURATION_MS:
        raise IdentityError(ErrorKind.INVALID_SESSION_COOKIE_DURATION)
    return int(expires_in // 1000)


class DirectorySessionCookieIssuer:
    """Asks the Account Directory to exchange an ID token for a session cookie."""

    def __init__(self, directory):
        self.directory = directory
        self.logger = get_logger("identity.session_cookie")

    async def create_session_cookie(
        self, id_token: str, options: Optional[Mapping[str, Any]]
    ) -> str:
        if not is_non_empty_string(id_token):
            raise IdentityError(ErrorKind.INVALID_ID_TOKEN)
        expires_in_seconds = validate_session_cookie_duration(options)
        cookie = await self.directory.create_session_cookie(id_token, expires_in_seconds)
        self.logger.debug("Session cookie created", expires_in_seconds=expires_in_seconds)
        return cookie
