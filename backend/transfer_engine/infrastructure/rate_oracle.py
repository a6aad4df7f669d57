"""Rate Oracle Adapter — USD -> ETH conversion via the Skip route API with a fixed fallback.

Invariants:
    - convert() never raises for upstream problems: timeout, transport error,
      non-2xx status, or malformed body all yield the fallback conversion
    - Fallback conversions carry is_fallback=True so callers can disclose them
    - Every upstream call is bounded by the configured timeout (default 10 s)
    - Native amounts are rounded down to storage precision

Design Decisions:
    - Availability of quoting over rate accuracy: a dead oracle degrades to a
      deterministic rate instead of failing the quote
    - Request mirrors a USDC -> native ETH swap on mainnet: USD is sent in USDC
      base units (6 dp), amount_out comes back in wei (18 dp)
    - Wrapper owns an httpx.AsyncClient; tests inject one with MockTransport
"""

import logging
from decimal import Decimal, InvalidOperation

import httpx

from transfer_engine.core.money import (
    fiat_to_micro_units, native_for_fiat, wei_to_native,
)
from transfer_engine.core.pricing import Conversion

logger = logging.getLogger(__name__)

MSGS_DIRECT_PATH = "/fungible/msgs_direct"
USDC_DENOM = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
NATIVE_DENOM = "ethereum-native"
MAINNET_CHAIN_ID = "1"
ROUTE_ADDRESS = "0x742d35Cc6634C0532925a3b8D4C9db96c728b0B4"


class MalformedQuoteResponse(ValueError):
    """Upstream answered 2xx with a body we cannot use."""


def build_route_request(fiat_amount: Decimal) -> dict:
    """Request body for a USDC -> native swap quote."""
    return {
        "source_asset_denom": USDC_DENOM,
        "source_asset_chain_id": MAINNET_CHAIN_ID,
        "dest_asset_denom": NATIVE_DENOM,
        "dest_asset_chain_id": MAINNET_CHAIN_ID,
        "amount_in": str(fiat_to_micro_units(fiat_amount)),
        "chain_ids_to_addresses": {MAINNET_CHAIN_ID: ROUTE_ADDRESS},
        "slippage_tolerance_percent": "1",
        "smart_swap_options": {"evm_swaps": True},
        "allow_unsafe": False,
    }


def parse_route_response(payload: object, fiat_amount: Decimal) -> Conversion:
    """Extract amount_out (wei) and derive the native amount and rate."""
    if not isinstance(payload, dict) or not payload.get("amount_out"):
        raise MalformedQuoteResponse("response has no amount_out")
    try:
        wei = Decimal(str(payload["amount_out"]))
    except InvalidOperation:
        raise MalformedQuoteResponse(f"amount_out is not numeric: {payload['amount_out']!r}")
    native_amount = wei_to_native(wei)
    if native_amount <= 0:
        raise MalformedQuoteResponse("amount_out converts to a non-positive native amount")
    return Conversion(
        native_amount=native_amount,
        fiat_amount=fiat_amount,
        rate=native_amount / fiat_amount,
    )


class RateOracleAdapter:
    """Wraps the upstream route API with timeout and fallback."""

    def __init__(
        self,
        base_url: str,
        fallback_rate: Decimal,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.fallback_rate = fallback_rate
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Content-Type": "application/json"},
        )

    async def convert(self, fiat_amount: Decimal) -> Conversion:
        """Live conversion for fiat_amount, or the fallback on any upstream failure."""
        try:
            conversion = await self._fetch(fiat_amount)
        except httpx.TimeoutException:
            logger.warning("Rate oracle timed out", extra={"fallback": True})
            return self.fallback(fiat_amount)
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"Rate oracle returned HTTP {e.response.status_code}",
                extra={"fallback": True},
            )
            return self.fallback(fiat_amount)
        except httpx.HTTPError as e:
            logger.warning(
                f"Rate oracle transport error: {type(e).__name__}",
                extra={"fallback": True},
            )
            return self.fallback(fiat_amount)
        except ValueError as e:
            logger.warning(
                f"Rate oracle response unusable: {e}", extra={"fallback": True},
            )
            return self.fallback(fiat_amount)
        logger.info(
            f"Rate oracle: ${fiat_amount} USD = {conversion.native_amount} ETH",
        )
        return conversion

    def fallback(self, fiat_amount: Decimal) -> Conversion:
        return Conversion(
            native_amount=native_for_fiat(fiat_amount, self.fallback_rate),
            fiat_amount=fiat_amount,
            rate=self.fallback_rate,
            is_fallback=True,
        )

    async def _fetch(self, fiat_amount: Decimal) -> Conversion:
        response = await self.client.post(
            MSGS_DIRECT_PATH, json=build_route_request(fiat_amount),
        )
        response.raise_for_status()
        return parse_route_response(response.json(), fiat_amount)

    async def aclose(self) -> None:
        await self.client.aclose()


# Singleton (initialized on startup)
rate_oracle: RateOracleAdapter | None = None


def init_rate_oracle(
    base_url: str, fallback_rate: Decimal, timeout_seconds: float = 10.0,
) -> RateOracleAdapter:
    global rate_oracle
    rate_oracle = RateOracleAdapter(base_url, fallback_rate, timeout_seconds)
    return rate_oracle


def get_rate_oracle() -> RateOracleAdapter:
    """FastAPI dependency for the shared oracle client."""
    if not rate_oracle:
        raise RuntimeError("Rate oracle not initialized")
    return rate_oracle
