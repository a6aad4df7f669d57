"""Domain Types — enums that replace bare string states across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching
    - Currency values are the wire symbols (ETH native, USD fiat)

Design Decisions:
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum


# ─── Enums ───────────────────────────────────────────────────────

class Currency(str, Enum):
    """Denomination of a requested transfer amount."""
    NATIVE = "ETH"
    FIAT = "USD"

    @classmethod
    def parse(cls, value: str | None) -> "Currency | None":
        """Return the matching currency, or None for unknown symbols."""
        for member in cls:
            if member.value == value:
                return member
        return None


class TransferStatus(str, Enum):
    """Persisted transfer status — only terminal success is recorded."""
    COMPLETED = "completed"


class ExecutionStage(str, Enum):
    """Orchestrator state machine for a single execute attempt."""
    RECEIVED = "received"
    VALIDATED = "validated"
    QUOTE_RESOLVED = "quote_resolved"
    AUTHORIZED = "authorized"
    COMMITTED = "committed"
    REJECTED = "rejected"
