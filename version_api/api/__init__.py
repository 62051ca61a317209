"""API Layer — FastAPI application factory, routes, middleware and error handlers.

Invariants:
    - Routes registered explicitly in app.py (no auto-discovery)
    - Every unmatched path or method answers with the same 404 body

Design Decisions:
    - Thin routes delegate to an injected VersionRepository
"""
