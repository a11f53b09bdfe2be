"""
Public record shapes returned by the identity façade.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from shared.errors import ErrorKind, IdentityError


class ProviderLink(BaseModel):
    """A federated identity linked to an account."""
    provider_id: str
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_server_response(cls, response: Dict[str, Any]) -> "ProviderLink":
        return cls(
            provider_id=response["providerId"],
            uid=response["rawId"],
            email=response.get("email"),
            display_name=response.get("displayName"),
            phone_number=response.get("phoneNumber"),
            photo_url=response.get("photoUrl"),
        )


class AccountRecord(BaseModel):
    """An account as held by the Account Directory.

    Always built from a fresh directory response; the directory is the only
    source of truth for `tokens_valid_after_time_millis`.
    """
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    phone_number: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    disabled: bool = False
    provider_data: List[ProviderLink] = []
    custom_claims: Optional[Dict[str, Any]] = None
    tenant_id: Optional[str] = None
    tokens_valid_after_time_millis: Optional[int] = None
    creation_time_millis: Optional[int] = None
    last_sign_in_time_millis: Optional[int] = None

    @classmethod
    def from_server_response(cls, response: Dict[str, Any]) -> "AccountRecord":
        """Build a record from a backend `users[]` entry."""
        if not isinstance(response, dict) or not response.get("localId"):
            raise IdentityError(
                ErrorKind.INTERNAL_ERROR,
                "INTERNAL ASSERT FAILED: Invalid user response",
            )

        custom_claims = None
        if response.get("customAttributes"):
            custom_claims = json.loads(response["customAttributes"])

        # validSince is in seconds
        valid_since = response.get("validSince")
        tokens_valid_after = int(valid_since) * 1000 if valid_since is not None else None

        return cls(
            uid=response["localId"],
            email=response.get("email"),
            email_verified=bool(response.get("emailVerified", False)),
            phone_number=response.get("phoneNumber"),
            display_name=response.get("displayName"),
            photo_url=response.get("photoUrl"),
            disabled=bool(response.get("disabled", False)),
            provider_data=[
                ProviderLink.from_server_response(info)
                for info in response.get("providerUserInfo", [])
            ],
            custom_claims=custom_claims,
            tenant_id=response.get("tenantId"),
            tokens_valid_after_time_millis=tokens_valid_after,
            creation_time_millis=_optional_int(response.get("createdAt")),
            last_sign_in_time_millis=_optional_int(response.get("lastLoginAt")),
        )


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


@dataclass(frozen=True)
class DecodedToken:
    """Claims of a verified ID token or session cookie."""

    subject: str
    issued_at: int
    expires_at: int
    auth_time: int
    tenant_id: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def uid(self) -> str:
        return self.subject

    @property
    def custom_claims(self) -> Dict[str, Any]:
        """Claims that are not part of the standard token shape."""
        standard = {"aud", "auth_time", "exp", "firebase", "iat", "iss", "sub", "uid", "user_id"}
        return {key: value for key, value in self.claims.items() if key not in standard}

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "DecodedToken":
        firebase = claims.get("firebase")
        tenant_id = firebase.get("tenant") if isinstance(firebase, dict) else None
        payload = dict(claims)
        payload["uid"] = claims["sub"]
        return cls(
            subject=claims["sub"],
            issued_at=int(claims["iat"]),
            expires_at=int(claims["exp"]),
            auth_time=int(claims["auth_time"]),
            tenant_id=tenant_id,
            claims=payload,
        )


class GetUsersResult(BaseModel):
    """Result of a batch lookup; `users` carries no ordering guarantee."""
    users: List[AccountRecord]
    not_found: List[Any]


class ListUsersResult(BaseModel):
    users: List[AccountRecord]
    page_token: Optional[str] = None


@dataclass
class IndexedError:
    """A per-item failure of a batch call, addressed by its index in the request."""
    index: int
    error: IdentityError


@dataclass
class DeleteUsersResult:
    success_count: int
    failure_count: int
    errors: List[IndexedError] = field(default_factory=list)


@dataclass
class UserImportResult:
    success_count: int
    failure_count: int
    errors: List[IndexedError] = field(default_factory=list)
