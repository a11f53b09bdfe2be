"""
Token verification for Firebase ID tokens and session cookies.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from shared.errors import ErrorKind, IdentityError
from shared.logging import get_logger
from ..jwks.client import PublicKeyClient
from ..models import DecodedToken
from ..tokens.signer import CUSTOM_TOKEN_AUDIENCE
from .validators import MAX_UID_LENGTH, is_non_empty_string

ALGORITHM = "RS256"


class TokenVerifier(Protocol):
    """Decodes a bearer token and validates its signature and claims."""

    async def verify_jwt(self, token: str) -> DecodedToken: ...


@dataclass(frozen=True)
class TokenInfo:
    """What differs between an ID token and a session cookie."""

    short_name: str
    issuer_prefix: str
    invalid_kind: ErrorKind
    expired_kind: ErrorKind
    docs_hint: str


ID_TOKEN_INFO = TokenInfo(
    short_name="ID token",
    issuer_prefix="https://securetoken.google.com/",
    invalid_kind=ErrorKind.INVALID_ID_TOKEN,
    expired_kind=ErrorKind.ID_TOKEN_EXPIRED,
    docs_hint="Get a fresh ID token from the client app and try again.",
)

SESSION_COOKIE_INFO = TokenInfo(
    short_name="session cookie",
    issuer_prefix="https://session.firebase.google.com/",
    invalid_kind=ErrorKind.INVALID_SESSION_COOKIE,
    expired_kind=ErrorKind.SESSION_COOKIE_EXPIRED,
    docs_hint="Sign in again to obtain a fresh session cookie.",
)


class FirebaseTokenVerifier:
    """Verifies RS256 tokens against Google-published certificates."""

    def __init__(self, key_client: PublicKeyClient, project_id: Optional[str], token_info: TokenInfo):
        self.key_client = key_client
        self.project_id = project_id
        self.token_info = token_info
        self.logger = get_logger("identity.verifier")

    @property
    def issuer(self) -> str:
        return f"{self.token_info.issuer_prefix}{self.project_id}"

    async def verify_jwt(self, token: str) -> DecodedToken:
        """Verify `token` and return its decoded claims."""
        info = self.token_info
        if not is_non_empty_string(token):
            raise IdentityError(info.invalid_kind, f"{info.short_name} must be a non-empty string.")
        if not is_non_empty_string(self.project_id):
            raise IdentityError(
                ErrorKind.INVALID_ARGUMENT,
                f"Must initialize the identity layer with a project ID to verify a {info.short_name}.",
            )

        try:
            header = jwt.get_unverified_header(token)
            unverified = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise IdentityError(
                info.invalid_kind,
                f"Decoding {info.short_name} failed. Make sure you passed a string that "
                f"represents a complete JWT. {info.docs_hint}",
            ) from e

        self._check_header(header, unverified)
        key = await self.key_client.get_key(header["kid"])
        if key is None:
            raise IdentityError(
                info.invalid_kind,
                f"{info.short_name} has \"kid\" claim which does not correspond to a known "
                f"public key. Most likely the {info.short_name} is expired, so get a fresh token.",
            )

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[ALGORITHM],
                audience=self.project_id,
                issuer=self.issuer,
            )
        except ExpiredSignatureError as e:
            raise IdentityError(info.expired_kind, f"{info.short_name} has expired. {info.docs_hint}") from e
        except JWTClaimsError as e:
            raise IdentityError(
                info.invalid_kind,
                f"{info.short_name} has incorrect claims: {e}. Expected audience \"{self.project_id}\" "
                f"and issuer \"{self.issuer}\".",
            ) from e
        except JWTError as e:
            raise IdentityError(info.invalid_kind, f"{info.short_name} has invalid signature. {e}") from e

        self._check_subject_and_auth_time(claims)
        self.logger.debug("Token verified", kind=info.short_name, sub=claims["sub"])
        return DecodedToken.from_claims(claims)

    def _check_header(self, header: Dict[str, Any], claims: Dict[str, Any]) -> None:
        info = self.token_info
        if not header.get("kid"):
            if claims.get("aud") == CUSTOM_TOKEN_AUDIENCE:
                message = f"Expected an {info.short_name} but was given a custom token."
            elif header.get("alg") == "HS256" and claims.get("v") == 0 and "uid" in claims.get("d", {}):
                message = f"Expected an {info.short_name} but was given a legacy custom token."
            else:
                message = f"{info.short_name} has no \"kid\" claim."
            raise IdentityError(info.invalid_kind, message)
        if header.get("alg") != ALGORITHM:
            raise IdentityError(
                info.invalid_kind,
                f"{info.short_name} has incorrect algorithm. Expected \"{ALGORITHM}\" but got "
                f"\"{header.get('alg')}\".",
            )

    def _check_subject_and_auth_time(self, claims: Dict[str, Any]) -> None:
        info = self.token_info
        for name in ("iat", "exp"):
            value = claims.get(name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise IdentityError(info.invalid_kind, f"{info.short_name} has no valid \"{name}\" claim.")

        subject = claims.get("sub")
        if not is_non_empty_string(subject):
            raise IdentityError(info.invalid_kind, f"{info.short_name} has no \"sub\" (subject) claim.")
        if len(subject) > MAX_UID_LENGTH:
            raise IdentityError(
                info.invalid_kind,
                f"{info.short_name} has \"sub\" (subject) claim longer than {MAX_UID_LENGTH} characters.",
            )

        auth_time = claims.get("auth_time")
        if not isinstance(auth_time, int) or isinstance(auth_time, bool):
            raise IdentityError(info.invalid_kind, f"{info.short_name} has no valid \"auth_time\" claim.")
        if auth_time > int(time.time()):
            raise IdentityError(info.invalid_kind, f"{info.short_name} has \"auth_time\" in the future.")


def create_id_token_verifier(key_client: PublicKeyClient, project_id: Optional[str]) -> FirebaseTokenVerifier:
    return FirebaseTokenVerifier(key_client, project_id, ID_TOKEN_INFO)


def create_session_cookie_verifier(key_client: PublicKeyClient, project_id: Optional[str]) -> FirebaseTokenVerifier:
    return FirebaseTokenVerifier(key_client, project_id, SESSION_COOKIE_INFO)
