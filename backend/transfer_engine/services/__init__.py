"""Services — Ledger, Quote Store and Transaction Orchestrator.

Invariants:
    - Services receive their AsyncSession explicitly (no ambient storage handle)
    - Only the Ledger mutates balances
"""
