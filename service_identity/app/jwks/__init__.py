"""
Public key package.

Retrieves and caches the certificates used to verify ID token and
session cookie signatures. The cache honours the Cache-Control max-age
of the certificate response and falls back to a configured TTL.
Verified tokens themselves are never cached.
"""
