"""
Identity provider configuration (OIDC and SAML).
"""
