"""Infrastructure Layer — database sessions and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - All driver exceptions mapped to StorageError before leaving this layer
"""
