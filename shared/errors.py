"""
Shared error handling for the identity administration layer.
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ErrorKind(str, Enum):
    """Error kinds raised by the identity layer."""

    INVALID_ARGUMENT = "argument-error"
    INTERNAL_ERROR = "internal-error"
    MISMATCHING_TENANT_ID = "mismatching-tenant-id"
    ID_TOKEN_REVOKED = "id-token-revoked"
    SESSION_COOKIE_REVOKED = "session-cookie-revoked"
    INVALID_PROVIDER_ID = "invalid-provider-id"
    INVALID_PROVIDER_UID = "invalid-provider-uid"
    INVALID_CONFIG = "invalid-config"
    INVALID_SESSION_COOKIE_DURATION = "invalid-session-cookie-duration"
    USER_NOT_DISABLED = "user-not-disabled"
    MAXIMUM_TEST_PHONE_NUMBER_EXCEEDED = "test-phone-number-limit-exceeded"
    INVALID_TESTING_PHONE_NUMBER = "invalid-testing-phone-number"

    # Token verification
    INVALID_ID_TOKEN = "invalid-id-token"
    ID_TOKEN_EXPIRED = "id-token-expired"
    INVALID_SESSION_COOKIE = "invalid-session-cookie"
    SESSION_COOKIE_EXPIRED = "session-cookie-expired"
    CERTIFICATE_FETCH_FAILED = "certificate-fetch-failed"

    # Account directory
    USER_NOT_FOUND = "user-not-found"
    EMAIL_ALREADY_EXISTS = "email-already-exists"
    UID_ALREADY_EXISTS = "uid-already-exists"
    PHONE_NUMBER_ALREADY_EXISTS = "phone-number-already-exists"
    TENANT_NOT_FOUND = "tenant-not-found"
    INVALID_TENANT_ID = "invalid-tenant-id"
    CONFIGURATION_NOT_FOUND = "configuration-not-found"
    INSUFFICIENT_PERMISSION = "insufficient-permission"
    QUOTA_EXCEEDED = "quota-exceeded"
    INVALID_UID = "invalid-uid"
    INVALID_EMAIL = "invalid-email"
    INVALID_PHONE_NUMBER = "invalid-phone-number"
    INVALID_PAGE_TOKEN = "invalid-page-token"
    MAXIMUM_USER_COUNT_EXCEEDED = "maximum-user-count-exceeded"
    UNAUTHORIZED_DOMAIN = "unauthorized-continue-uri"
    INVALID_USER_IMPORT = "invalid-user-import"


DEFAULT_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_ARGUMENT: "Invalid argument provided.",
    ErrorKind.INTERNAL_ERROR: "An internal error has occurred.",
    ErrorKind.MISMATCHING_TENANT_ID: "Tenant ID of the token does not match the tenant of this instance.",
    ErrorKind.ID_TOKEN_REVOKED: "The Firebase ID token has been revoked.",
    ErrorKind.SESSION_COOKIE_REVOKED: "The Firebase session cookie has been revoked.",
    ErrorKind.INVALID_PROVIDER_ID: "The provider ID must be a valid \"oidc.\" or \"saml.\" prefixed string.",
    ErrorKind.INVALID_PROVIDER_UID: "The provider UID must be a non-empty string.",
    ErrorKind.INVALID_CONFIG: "The provided configuration is invalid.",
    ErrorKind.INVALID_SESSION_COOKIE_DURATION: (
        "The session cookie duration must be a valid number in milliseconds "
        "between 5 minutes and 2 weeks."
    ),
    ErrorKind.USER_NOT_DISABLED: "The user must be disabled in order to bulk delete it.",
    ErrorKind.MAXIMUM_TEST_PHONE_NUMBER_EXCEEDED: (
        "The maximum allowed number of test phone number / code pairs has been exceeded."
    ),
    ErrorKind.INVALID_TESTING_PHONE_NUMBER: "Invalid testing phone number or invalid test code provided.",
    ErrorKind.INVALID_ID_TOKEN: "The provided ID token is not a valid Firebase ID token.",
    ErrorKind.ID_TOKEN_EXPIRED: "The provided Firebase ID token is expired.",
    ErrorKind.INVALID_SESSION_COOKIE: "The provided session cookie is not a valid Firebase session cookie.",
    ErrorKind.SESSION_COOKIE_EXPIRED: "The provided Firebase session cookie is expired.",
    ErrorKind.CERTIFICATE_FETCH_FAILED: "Failed to fetch public key certificates.",
    ErrorKind.USER_NOT_FOUND: "There is no user record corresponding to the provided identifier.",
    ErrorKind.EMAIL_ALREADY_EXISTS: "The email address is already in use by another account.",
    ErrorKind.UID_ALREADY_EXISTS: "The user with the provided uid already exists.",
    ErrorKind.PHONE_NUMBER_ALREADY_EXISTS: "The user with the provided phone number already exists.",
    ErrorKind.TENANT_NOT_FOUND: "There is no tenant corresponding to the provided identifier.",
    ErrorKind.INVALID_TENANT_ID: "The tenant ID must be a valid non-empty string.",
    ErrorKind.CONFIGURATION_NOT_FOUND: "There is no configuration corresponding to the provided identifier.",
    ErrorKind.INSUFFICIENT_PERMISSION: "The credential used does not have permission for this operation.",
    ErrorKind.QUOTA_EXCEEDED: "The project quota for the specified operation has been exceeded.",
    ErrorKind.INVALID_UID: "The uid must be a non-empty string with at most 128 characters.",
    ErrorKind.INVALID_EMAIL: "The email address is improperly formatted.",
    ErrorKind.INVALID_PHONE_NUMBER: "The phone number must be a non-empty E.164 standard compliant identifier string.",
    ErrorKind.INVALID_PAGE_TOKEN: "The page token must be a valid non-empty string.",
    ErrorKind.MAXIMUM_USER_COUNT_EXCEEDED: "The maximum allowed number of users to import has been exceeded.",
    ErrorKind.UNAUTHORIZED_DOMAIN: "The domain of the continue URL is not whitelisted.",
    ErrorKind.INVALID_USER_IMPORT: "The user record to import is invalid.",
}


class IdentityError(Exception):
    """Identity administration error, tagged with an ErrorKind.

    `code` is the client-facing "auth/<kind>" string; `message` falls back to
    the kind's default message.
    """

    def __init__(self, kind: ErrorKind, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.kind = kind
        self.code = f"auth/{kind.value}"
        self.message = message or DEFAULT_MESSAGES[kind]
        self.details = details or {}
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert to an error response stamped with the active trace id."""
        span_context = trace.get_current_span().get_span_context()
        trace_id = f"{span_context.trace_id:032x}" if span_context.is_valid else None
        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details,
        )

    def __repr__(self) -> str:
        return f"IdentityError(kind={self.kind.name}, message={self.message!r})"


def invalid_argument(message: str, **details: Any) -> IdentityError:
    """Shorthand for the fail-fast argument errors raised before any I/O."""
    return IdentityError(ErrorKind.INVALID_ARGUMENT, message, details or None)
