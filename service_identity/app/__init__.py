"""
Identity administration package.

Server-side core for minting custom tokens, verifying ID tokens and
session cookies, and managing accounts, provider configurations and
tenants against the account directory:

- app.main: Wiring of the façade from settings (`create_auth`).
- app.auth: The `BaseAuth` / `Auth` façade.
- app.tokens: Custom token minting and signers.
- app.validation: Token verification, revocation checks, session cookies.
- app.jwks: Public certificate fetching and caching.
- app.tenancy: Tenant options, isolation wrappers, tenant manager.
- app.batch: Batch lookup, delete and import.
- app.providers: OIDC / SAML provider configurations.
- app.directory: The account directory client.

Design notes:
- Module import must not perform network calls; all I/O happens inside
  the async operations.
- Use the shared/ utilities for logging, configuration and errors.
- Nothing verified or loaded is cached except the public certificates.
"""
