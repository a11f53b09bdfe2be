"""
Custom token minting for client sign-in.
"""

from __future__ import annotations

import base64
import json
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Union

import httpx
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from jose.utils import base64url_encode

from shared.errors import ErrorKind, IdentityError, invalid_argument
from shared.logging import get_logger
from ..validation.validators import MAX_UID_LENGTH, is_non_empty_string, is_uid

CUSTOM_TOKEN_AUDIENCE = (
    "https://identitytoolkit.googleapis.com/google.identity.identitytoolkit.v1.IdentityToolkit"
)
ONE_HOUR_IN_SECONDS = 60 * 60
MAX_DEVELOPER_CLAIMS_BYTES = 1000

# Claims the signer controls; developer claims may not redefine them.
RESERVED_CLAIMS = frozenset({
    "acr", "amr", "at_hash", "aud", "auth_time", "azp", "cnf", "c_hash",
    "exp", "firebase", "iat", "iss", "jti", "nbf", "nonce", "sub",
})

AccessTokenProvider = Callable[[], Awaitable[str]]


class CryptoSigner(Protocol):
    """Signs token bytes on behalf of a service account."""

    algorithm: str

    async def sign(self, payload: bytes) -> bytes: ...

    async def get_account_id(self) -> str: ...


class ServiceAccountSigner:
    """Signs locally with a service account RSA private key."""

    algorithm = "RS256"

    def __init__(self, private_key_pem: Union[str, bytes], client_email: str) -> None:
        if isinstance(private_key_pem, str):
            private_key_pem = private_key_pem.encode("utf-8")
        self._private_key = serialization.load_pem_private_key(private_key_pem, password=None)
        self.client_email = client_email

    async def sign(self, payload: bytes) -> bytes:
        return self._private_key.sign(payload, padding.PKCS1v15(), hashes.SHA256())

    async def get_account_id(self) -> str:
        return self.client_email


class IAMSigner:
    """Signs remotely through the IAM credentials signBlob endpoint."""

    algorithm = "RS256"

    def __init__(
        self,
        service_account_id: str,
        access_token_provider: AccessTokenProvider,
        *,
        iam_url: str = "https://iamcredentials.googleapis.com/v1",
        http_timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not is_non_empty_string(service_account_id):
            raise invalid_argument("Service account ID must be a non-empty string.")
        self.service_account_id = service_account_id
        self.iam_url = iam_url.rstrip("/")
        self._access_token_provider = access_token_provider
        self._client = client or httpx.AsyncClient(timeout=http_timeout)
        self.logger = get_logger("identity.signer.iam")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def sign(self, payload: bytes) -> bytes:
        access_token = await self._access_token_provider()
        response = await self._client.post(
            f"{self.iam_url}/projects/-/serviceAccounts/{self.service_account_id}:signBlob",
            json={"payload": base64.b64encode(payload).decode("ascii")},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        response.raise_for_status()
        return base64.b64decode(response.json()["signedBlob"])

    async def get_account_id(self) -> str:
        return self.service_account_id


class TokenSigner:
    """Mints custom tokens, optionally bound to a tenant."""

    def __init__(self, signer: CryptoSigner, tenant_id: Optional[str] = None) -> None:
        if tenant_id is not None and not is_non_empty_string(tenant_id):
            raise invalid_argument("`tenant_id` must be a valid non-empty string.")
        self.signer = signer
        self.tenant_id = tenant_id
        self.logger = get_logger("identity.signer")

    async def create_custom_token(
        self, uid: str, developer_claims: Optional[Dict[str, Any]] = None
    ) -> str:
        """Create a signed custom token with `uid` as the subject."""
        if not is_uid(uid):
            raise invalid_argument(
                f"`uid` argument must be a non-empty string with no more than {MAX_UID_LENGTH} characters."
            )
        claims = self._validate_developer_claims(developer_claims)

        try:
            account_id = await self.signer.get_account_id()
            issued_at = int(time.time())
            body: Dict[str, Any] = {
                "aud": CUSTOM_TOKEN_AUDIENCE,
                "iat": issued_at,
                "exp": issued_at + ONE_HOUR_IN_SECONDS,
                "iss": account_id,
                "sub": account_id,
                "uid": uid,
            }
            if claims:
                body["claims"] = claims
            if self.tenant_id:
                body["firebase"] = {"tenant": self.tenant_id}

            header = {"alg": self.signer.algorithm, "typ": "JWT"}
            signing_input = b".".join([_encode_segment(header), _encode_segment(body)])
            signature = await self.signer.sign(signing_input)
        except Exception as exc:
            self.logger.error("Custom token signing failed", uid=uid, error=str(exc))
            raise IdentityError(
                ErrorKind.INTERNAL_ERROR,
                f"Failed to sign custom token: {exc}",
            ) from exc

        self.logger.debug("Custom token created", uid=uid, tenant_id=self.tenant_id)
        return b".".join([signing_input, base64url_encode(signature)]).decode("ascii")

    @staticmethod
    def _validate_developer_claims(developer_claims: Any) -> Optional[Dict[str, Any]]:
        if developer_claims is None:
            return None
        if not isinstance(developer_claims, dict):
            raise invalid_argument("`developer_claims` argument must be a valid, non-null object.")

        for key in developer_claims:
            if key in RESERVED_CLAIMS:
                raise invalid_argument(
                    f"Developer claim \"{key}\" is reserved and cannot be specified.",
                    claim=key,
                )

        serialized = json.dumps(developer_claims, separators=(",", ":"))
        if len(serialized.encode("utf-8")) > MAX_DEVELOPER_CLAIMS_BYTES:
            raise invalid_argument(
                f"Developer claims must not exceed {MAX_DEVELOPER_CLAIMS_BYTES} bytes when serialized."
            )
        return developer_claims


def _encode_segment(value: Dict[str, Any]) -> bytes:
    return base64url_encode(json.dumps(value, separators=(",", ":")).encode("utf-8"))
