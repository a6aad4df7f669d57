"""Functional Core — pure rules for quotes, authorization, and transfer gates.

Invariants:
    - No IO, no async, no DB access in this package
    - Shell layers (services/, infrastructure/, api/) call into core, never the reverse

Design Decisions:
    - Gate checks return error objects instead of raising: the orchestrator
      threads them through its state machine as explicit outcomes
"""
