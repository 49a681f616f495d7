"""
Middleware layer for Formvault application.

This package contains middleware components for request processing:
correlation IDs and per-tenant rate limiting.
"""
