"""API Layer — FastAPI routers and global error handlers.

Invariants:
    - Routes never contain business logic (delegate to services/)
"""
