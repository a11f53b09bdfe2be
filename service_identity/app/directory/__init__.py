"""
Account Directory package.

The directory is the single source of truth for accounts, provider
configurations and tenants. `AccountDirectory` is the contract the façade
depends on; `HttpAccountDirectory` implements it over the Identity Toolkit
REST API. No retries or caching happen at this layer: every call is one
round trip and backend errors surface immediately, translated through one
code table.
"""
