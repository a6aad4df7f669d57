"""Wallet Routes — registration, lookup, balance and contact email.

Invariants:
    - POST /wallets is idempotent: 201 on first registration, 200 afterwards,
      the existing balance is never reset
    - Unknown addresses yield WALLET_NOT_FOUND (404) in the error envelope

Design Decisions:
    - Path addresses validated by pattern at the boundary; the Ledger stores
      them exactly as submitted
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response, status

from transfer_engine.api.dependencies import get_ledger
from transfer_engine.core.errors import WalletNotFoundError
from transfer_engine.schemas.wallet import (
    ADDRESS_PATTERN,
    BalanceResponse,
    EmailUpdate,
    WalletCreate,
    WalletCreated,
    WalletResponse,
)
from transfer_engine.services.ledger import Ledger

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/wallets", tags=["wallets"])

AddressPath = Annotated[str, Path(pattern=ADDRESS_PATTERN)]


@router.post("", response_model=WalletCreated, status_code=status.HTTP_201_CREATED)
async def create_wallet(
    body: WalletCreate, response: Response, ledger: Ledger = Depends(get_ledger),
):
    """Register a wallet with a seed balance, or return the existing one."""
    wallet, created = await ledger.create_account(body.address, body.email)
    if not created:
        response.status_code = status.HTTP_200_OK
    return WalletCreated(address=wallet.address, balance=wallet.balance, created=created)


@router.get("/{address}", response_model=WalletResponse)
async def get_wallet(
    address: AddressPath, ledger: Ledger = Depends(get_ledger),
):
    wallet = await _wallet_or_404(ledger, address)
    return WalletResponse(
        address=wallet.address,
        balance=wallet.balance,
        email=wallet.email,
        created_at=wallet.created_at,
    )


@router.get("/{address}/balance", response_model=BalanceResponse)
async def get_balance(
    address: AddressPath, ledger: Ledger = Depends(get_ledger),
):
    wallet = await _wallet_or_404(ledger, address)
    return BalanceResponse(address=wallet.address, balance=wallet.balance)


@router.put("/{address}/email", response_model=WalletResponse)
async def update_email(
    body: EmailUpdate,
    address: AddressPath,
    ledger: Ledger = Depends(get_ledger),
):
    """Set or clear the contact email used for transfer notifications."""
    wallet = await ledger.update_email(address, body.email)
    return WalletResponse(
        address=wallet.address,
        balance=wallet.balance,
        email=wallet.email,
        created_at=wallet.created_at,
    )


async def _wallet_or_404(ledger: Ledger, address: str):
    wallet = await ledger.get_account(address)
    if wallet is None:
        raise WalletNotFoundError(address)
    return wallet
