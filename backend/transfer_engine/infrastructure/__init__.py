"""Infrastructure Layer — database, upstream rate oracle, notification sink, logging.

Invariants:
    - Infrastructure never imports from services/
    - All external calls carry a timeout and map failures to a typed result

Design Decisions:
    - Resilient wrappers over raw clients (single responsibility per wrapper)
"""
