from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from app.errors import DataUnavailableError
from app.schemas.quote import DisplayQuote

_CURRENCY = "usd"
_ZERO = Decimal(0)
_HUNDRED = Decimal(100)
_CENT = Decimal("0.01")


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def _in_currency(market_data: dict, field: str) -> Decimal | None:
    value = market_data.get(field)
    if isinstance(value, dict):
        value = value.get(_CURRENCY)
    return _to_decimal(value)


def derive_price_24h_ago(price: Decimal, change_pct: Decimal | None) -> Decimal:
    """Estimate the price 24h ago as the algebraic inverse of the 24h change.

    A missing or zero change means no change: the result is ``price`` itself.
    """
    if not change_pct:
        return price
    divisor = 1 + change_pct / _HUNDRED
    if divisor == 0:
        return price
    return price / divisor


def change_from_prices(price: Decimal, price_24h_ago: Decimal) -> Decimal:
    if not price_24h_ago:
        return _ZERO
    return (price - price_24h_ago) / price_24h_ago * _HUNDRED


def normalize(raw: Any, fallback_symbol: str | None = None) -> DisplayQuote:
    """Reshape a CoinGecko ``/coins/{id}`` payload into a DisplayQuote."""
    if not isinstance(raw, dict):
        raise DataUnavailableError("payload is not an object", symbol=fallback_symbol)

    market_data = raw.get("market_data")
    if not isinstance(market_data, dict):
        raise DataUnavailableError("missing market_data", symbol=fallback_symbol)

    price = _in_currency(market_data, "current_price")
    if price is None:
        raise DataUnavailableError("missing current_price", symbol=fallback_symbol)

    reported_pct = _to_decimal(market_data.get("price_change_percentage_24h"))
    change_pct = reported_pct or _ZERO

    price_24h_ago = _in_currency(market_data, "price_24h_ago")
    if price_24h_ago is not None and price_24h_ago <= 0:
        price_24h_ago = None
    estimated = price_24h_ago is None
    if estimated:
        price_24h_ago = derive_price_24h_ago(price, change_pct)
    elif reported_pct is None:
        change_pct = change_from_prices(price, price_24h_ago)

    echo = str(raw.get("symbol") or "").strip().upper() or (fallback_symbol or "").strip().upper()
    if not echo:
        raise DataUnavailableError("missing symbol", symbol=fallback_symbol)

    return DisplayQuote(
        symbol_label=f"{echo}-USD",
        price=price,
        price_24h_ago=price_24h_ago,
        price_24h_ago_estimated=estimated,
        change_percent=change_pct.quantize(_CENT, rounding=ROUND_HALF_UP),
        volume=_in_currency(market_data, "total_volume") or _ZERO,
        market_cap=_in_currency(market_data, "market_cap") or _ZERO,
    )
