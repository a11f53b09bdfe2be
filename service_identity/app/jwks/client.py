"""
Public key client for Google-issued token certificates.
"""

import asyncio
import re
import time
from typing import Dict, Optional

import httpx

from shared.errors import ErrorKind, IdentityError
from shared.logging import get_logger

_MAX_AGE_RE = re.compile(r"max-age=(\d+)")


class PublicKeyClient:
    """Client for fetching and caching the kid -> PEM certificate map."""

    def __init__(
        self,
        certs_url: str,
        cache_ttl: int = 3600,
        *,
        http_timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.certs_url = certs_url
        self.cache_ttl = cache_ttl
        self.logger = get_logger("identity.jwks")

        self._keys: Optional[Dict[str, str]] = None
        self._expires_at: float = 0
        self._lock = asyncio.Lock()
        self._client = client or httpx.AsyncClient(timeout=http_timeout)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get_keys(self) -> Dict[str, str]:
        """Get the certificate map from cache or fetch it."""
        if self._keys is not None and time.time() < self._expires_at:
            return self._keys

        async with self._lock:
            if self._keys is not None and time.time() < self._expires_at:
                return self._keys

            try:
                response = await self._client.get(self.certs_url)
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as e:
                self.logger.error("Failed to fetch public keys", url=self.certs_url, error=str(e))
                raise IdentityError(
                    ErrorKind.CERTIFICATE_FETCH_FAILED,
                    f"Error fetching public keys for Google certs: {e}",
                ) from e

            if not isinstance(payload, dict) or not payload:
                raise IdentityError(
                    ErrorKind.CERTIFICATE_FETCH_FAILED,
                    "Public key response is not a non-empty key map.",
                )

            self._keys = payload
            self._expires_at = time.time() + self._max_age(response)
            self.logger.info("Public keys refreshed", keys_count=len(payload))
            return self._keys

    async def get_key(self, kid: str) -> Optional[str]:
        """Get a specific certificate by key ID."""
        keys = await self.get_keys()
        key = keys.get(kid)
        if key is None:
            self.logger.warning("Key not found", kid=kid)
        return key

    def clear_cache(self):
        """Clear the certificate cache."""
        self._keys = None
        self._expires_at = 0
        self.logger.info("Public key cache cleared")

    def _max_age(self, response: httpx.Response) -> int:
        match = _MAX_AGE_RE.search(response.headers.get("cache-control", ""))
        if match:
            return int(match.group(1))
        return self.cache_ttl
