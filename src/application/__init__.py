"""
Application layer - Application Business Rules.

This layer contains the services that orchestrate domain logic:
- Tenant registry and isolation guard
- Schema validator and field structure checks
- Version manager and record binder
"""
