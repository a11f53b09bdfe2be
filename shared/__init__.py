"""
Shared utilities for the identity administration layer.

This package aggregates common building blocks consumed by the identity
service package:

- config: Settings via pydantic-settings
- logging: Structured logging with trace correlation
- errors: Canonical error kinds and error responses
- test_helpers: Key material, token and account factories for tests

Do not import from service_* packages into shared/.
"""
