from __future__ import annotations

from typing import Callable

from app.errors import FailureKind, PriceCheckError
from app.schemas.quote import PriceCheckResult
from app.services.quote_normalizer import normalize
from app.services.symbol_registry import SymbolRegistry, base_ticker


def _try_hint(examples: list[str]) -> str:
    return f"Try: {', '.join(examples)}, etc." if examples else "Try another symbol."


_MESSAGES: dict[FailureKind, Callable[[str, list[str]], str]] = {
    FailureKind.INPUT_INVALID: lambda symbol, examples: "Please enter a cryptocurrency symbol.",
    FailureKind.SYMBOL_UNSUPPORTED: lambda symbol, examples: (
        f'Cryptocurrency "{symbol}" not supported. {_try_hint(examples)}'
    ),
    FailureKind.UPSTREAM_NOT_FOUND: lambda symbol, examples: (
        f'Cryptocurrency "{symbol}" not found. {_try_hint(examples)}'
    ),
    FailureKind.UPSTREAM_RATE_LIMITED: lambda symbol, examples: (
        "Rate limit exceeded. Please wait a moment and try again."
    ),
    FailureKind.UPSTREAM_TIMEOUT: lambda symbol, examples: (
        "The price service took too long to respond. Please try again in a moment."
    ),
    FailureKind.UPSTREAM_ERROR: lambda symbol, examples: (
        "An error occurred while fetching the price. Please try again later."
    ),
    FailureKind.DATA_UNAVAILABLE: lambda symbol, examples: f"No market data available for {symbol}.",
    FailureKind.TRANSPORT_ERROR: lambda symbol, examples: (
        "Could not reach the price service. Please check back shortly."
    ),
}


def error_message(kind: FailureKind, symbol: str, examples: list[str]) -> str:
    return _MESSAGES[kind](symbol, examples)


class PriceCheckService:
    """Resolve -> fetch -> normalize for one user-entered symbol."""

    def __init__(self, *, registry: SymbolRegistry, rest_client, example_count: int = 6) -> None:
        self.registry = registry
        self.rest_client = rest_client
        self.example_count = example_count

        self.checks = 0
        self.successes = 0
        self.failures: dict[str, int] = {kind.value: 0 for kind in FailureKind}

    def check(self, user_input: str | None) -> PriceCheckResult:
        self.checks += 1
        symbol = base_ticker(user_input)
        try:
            provider_id = self.registry.resolve(symbol)
            raw = self.rest_client.get_coin(provider_id)
            quote = normalize(raw, fallback_symbol=symbol)
        except PriceCheckError as exc:
            self.failures[exc.kind.value] += 1
            print(
                f"[PRICE][check_failed] symbol={symbol or '-'} kind={exc.kind.value} error={exc}",
                flush=True,
            )
            message = error_message(exc.kind, symbol, self.registry.examples(self.example_count))
            return PriceCheckResult(symbol=symbol or None, error=message)

        self.successes += 1
        print(
            f"[PRICE][check_ok] symbol={symbol} provider_id={provider_id} price={quote.price} "
            f"estimated_24h_ago={int(quote.price_24h_ago_estimated)}",
            flush=True,
        )
        return PriceCheckResult(symbol=symbol, quote=quote)

    def metrics(self) -> dict[str, int]:
        out = {
            "checks": self.checks,
            "successes": self.successes,
        }
        out.update({f"failed_{kind.lower()}": count for kind, count in self.failures.items()})
        return out
