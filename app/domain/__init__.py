"""
Domain layer containing core business logic and domain services.

Submodules:
- live: Live streaming domain logic (ingress provisioning, stream state).
"""
