"""
Multi-tenancy: tenant options, isolation wrappers and the tenant manager.
"""
