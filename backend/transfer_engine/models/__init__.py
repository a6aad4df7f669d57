"""ORM Models — SQLAlchemy declarative models for wallets, transfers, and quotes.

Invariants:
    - All models inherit from Base (db/base.py)
    - Wallet and Transfer are owned by the Ledger; PriceQuote by the Quote Store

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all/autogenerate
"""

from transfer_engine.models.wallet import Wallet  # noqa: F401
from transfer_engine.models.transfer import Transfer  # noqa: F401
from transfer_engine.models.price_quote import PriceQuote  # noqa: F401
