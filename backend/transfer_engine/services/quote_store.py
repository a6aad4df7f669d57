"""Quote Store — persists locked conversions and serves them back by id.

Invariants:
    - put() stamps expires_at = now + ttl and commits before returning
    - get() never filters on expiry: an expired quote is returned and judged
      invalid by the caller (invalid, not absent)
    - Quotes are never updated or deleted here

Design Decisions:
    - Clock injected: tests issue quotes "in the past" without sleeping
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from transfer_engine.core.errors import DatabaseError
from transfer_engine.core.pricing import Conversion, quote_expires_at, utc_now
from transfer_engine.models.price_quote import PriceQuote

logger = logging.getLogger(__name__)

QUOTE_TTL_SECONDS = 30


class QuoteStore:
    """Short-lived store of price quotes, backed by the price_quotes table."""

    def __init__(
        self,
        db: AsyncSession,
        ttl_seconds: int = QUOTE_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    async def put(self, conversion: Conversion) -> PriceQuote:
        """Persist a conversion as a new quote valid for ttl_seconds."""
        issued_at = self.clock()
        quote = PriceQuote(
            id=uuid.uuid4(),
            native_amount=conversion.native_amount,
            fiat_amount=conversion.fiat_amount,
            is_fallback=conversion.is_fallback,
            expires_at=quote_expires_at(issued_at, self.ttl_seconds),
            created_at=issued_at,
        )
        self.db.add(quote)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Quote insert failed: {e}")
            raise DatabaseError("Quote could not be stored", "commit")
        logger.info(
            f"Quote issued: ${quote.fiat_amount} USD = {quote.native_amount} ETH",
            extra={"quote_id": str(quote.id), "fallback": quote.is_fallback},
        )
        return quote

    async def get(self, quote_id: uuid.UUID) -> PriceQuote | None:
        result = await self.db.execute(
            select(PriceQuote).where(PriceQuote.id == quote_id),
        )
        return result.scalar_one_or_none()
