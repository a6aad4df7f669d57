"""Transaction Schemas — quote, execute and history payloads.

Invariants:
    - Request fields are optional at this layer: absent fields reach the
      orchestrator and come back as a MISSING_PARAMS rejection, not a 422
    - Amounts and rates serialize as plain decimal strings
    - The wire names of the parties are `from` / `to`
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field, field_serializer

from transfer_engine.core.money import plain
from transfer_engine.schemas.wallet import ADDRESS_PATTERN, CamelModel


def _plain_or_none(v: Decimal | None) -> str | None:
    return plain(v) if v is not None else None


class QuoteRequest(CamelModel):
    amount: Decimal | None = None
    currency: str | None = None


class QuoteResponse(CamelModel):
    """Native quotes carry no id; fiat quotes lock a rate until expires_at."""
    quote_id: UUID | None = None
    currency: str
    native_amount: Decimal
    fiat_amount: Decimal | None = None
    rate: Decimal | None = None
    fallback: bool | None = None
    expires_at: datetime

    @field_serializer("native_amount", "fiat_amount", "rate")
    def serialize_amount(self, v: Decimal | None) -> str | None:
        return _plain_or_none(v)


class ExecuteBody(CamelModel):
    sender: str | None = Field(None, alias="from", pattern=ADDRESS_PATTERN)
    recipient: str | None = Field(None, alias="to", pattern=ADDRESS_PATTERN)
    amount: Decimal | None = None
    currency: str | None = None
    signature: str | None = None
    message: str | None = None
    quote_id: UUID | None = None


class ExecuteResponse(CamelModel):
    transaction_id: UUID
    status: str
    native_amount: Decimal
    fiat_amount: Decimal | None = None

    @field_serializer("native_amount", "fiat_amount")
    def serialize_amount(self, v: Decimal | None) -> str | None:
        return _plain_or_none(v)


class TransferResponse(CamelModel):
    """One journal entry as seen by either party."""
    id: UUID
    sender: str = Field(alias="from")
    recipient: str = Field(alias="to")
    amount: Decimal
    currency: str
    native_amount: Decimal
    fiat_amount: Decimal | None = None
    quote_id: UUID | None = None
    status: str
    created_at: datetime

    @field_serializer("amount", "native_amount", "fiat_amount")
    def serialize_amount(self, v: Decimal | None) -> str | None:
        return _plain_or_none(v)


class HistoryResponse(CamelModel):
    address: str
    transactions: list[TransferResponse]
