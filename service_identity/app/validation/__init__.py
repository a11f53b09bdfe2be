"""
Token validation package.

Provides the verification pipeline used by the identity façade:

- token_verifier: signature and standard-claim checks for ID tokens and
  session cookies (RS256, Google certificates).
- revocation: the optional second step that compares the token's
  auth_time with the account's revocation cutoff.
- session_cookie: duration checks and minting of session cookies.
- validators: small argument predicates (uid, email, E.164 phone).

Decoding always completes before any account fetch; nothing here caches
verified tokens or account records.
"""
