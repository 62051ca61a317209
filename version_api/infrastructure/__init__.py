"""Infrastructure Layer — database, logging and other cross-cutting concerns.

Invariants:
    - Infrastructure never imports from api/ or services/
    - All store errors leave this layer as StorageError
"""
