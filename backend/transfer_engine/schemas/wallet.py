"""Wallet Schemas — account registration, lookup and contact-email payloads.

Invariants:
    - Addresses are 0x-prefixed 40-hex-digit strings, kept as submitted
    - Balances serialize as plain decimal strings (no float round-trip)
    - JSON keys are camelCase; Python attributes stay snake_case
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator,
)
from pydantic.alias_generators import to_camel

from transfer_engine.core.money import plain

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


class CamelModel(BaseModel):
    """Base for API payloads: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def blank_to_none(v: Any) -> Any:
    """Blank means no email."""
    if isinstance(v, str):
        return v.strip() or None
    return v


class WalletCreate(CamelModel):
    address: str = Field(pattern=ADDRESS_PATTERN)
    email: EmailStr | None = None

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> Any:
        return blank_to_none(v)


class EmailUpdate(CamelModel):
    """Contact email update; null or blank clears it."""
    email: EmailStr | None = None

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> Any:
        return blank_to_none(v)


class WalletCreated(CamelModel):
    address: str
    balance: Decimal
    created: bool

    @field_serializer("balance")
    def serialize_balance(self, v: Decimal) -> str:
        return plain(v)


class BalanceResponse(CamelModel):
    address: str
    balance: Decimal

    @field_serializer("balance")
    def serialize_balance(self, v: Decimal) -> str:
        return plain(v)


class WalletResponse(CamelModel):
    """Public wallet data."""
    address: str
    balance: Decimal
    email: str | None = None
    created_at: datetime

    @field_serializer("balance")
    def serialize_balance(self, v: Decimal) -> str:
        return plain(v)
