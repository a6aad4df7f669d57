"""Transfer Engine — signed value transfers with fiat price quotes.

Invariants:
    - Package root holds only the version string (no import side-effects)

Design Decisions:
    - Explicit imports only, no star exports
"""

__version__ = "1.0.0"
