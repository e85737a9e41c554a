from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from app.errors import InputInvalidError, PriceCheckError, SymbolUnsupportedError
from app.schemas.symbol import SymbolEntry

STATIC_PROVIDER_IDS: dict[str, str] = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "USDT": "tether",
    "BNB": "binancecoin",
    "SOL": "solana",
    "XRP": "ripple",
    "ADA": "cardano",
    "DOGE": "dogecoin",
    "TRX": "tron",
    "DOT": "polkadot",
    "MATIC": "matic-network",
    "LTC": "litecoin",
    "SHIB": "shiba-inu",
    "AVAX": "avalanche-2",
    "UNI": "uniswap",
    "LINK": "chainlink",
}

PREFERRED_EXAMPLES = ("BTC", "ETH", "SOL", "XRP", "ADA", "DOGE")


def base_ticker(user_input: str | None) -> str:
    """Uppercase, trim and cut a pair like ``btc-usd`` down to ``BTC``."""
    value = (user_input or "").strip().upper()
    if "-" in value:
        value = value.split("-", 1)[0].strip()
    return value


@dataclass(frozen=True)
class RegistrySnapshot:
    entries: Mapping[str, SymbolEntry]
    pairs: tuple[str, ...] = ()
    source: str = "static"
    created_at: int = field(default_factory=lambda: int(time.time()))

    @classmethod
    def build(cls, entries: Iterable[SymbolEntry], *, pairs: Iterable[str] = (), source: str = "static") -> "RegistrySnapshot":
        rows: dict[str, SymbolEntry] = {}
        for entry in entries:
            rows.setdefault(entry.user_symbol, entry)
        ordered = {symbol: rows[symbol] for symbol in sorted(rows)}
        return cls(entries=MappingProxyType(ordered), pairs=tuple(sorted(set(pairs))), source=source)

    @classmethod
    def from_static(cls, table: Mapping[str, str] | None = None) -> "RegistrySnapshot":
        table = STATIC_PROVIDER_IDS if table is None else table
        entries = [SymbolEntry(user_symbol=s, provider_id=pid) for s, pid in table.items()]
        return cls.build(entries, pairs=(f"{s.strip().upper()}-USD" for s in table), source="static")


def snapshot_from_exchange_tickers(payload: Any, quote_suffixes: Iterable[str]) -> RegistrySnapshot:
    """Build a snapshot from a CoinGecko ``/exchanges/{id}/tickers`` body.

    Only pairs whose quote currency is in ``quote_suffixes`` are kept.
    """
    rows = payload.get("tickers") if isinstance(payload, dict) else payload
    if not isinstance(rows, list):
        raise ValueError("tickers payload must be a list")

    suffixes = tuple(f"-{s.strip().upper()}" for s in quote_suffixes if s.strip())
    candidates: list[tuple[str, str]] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        base = str(row.get("base") or "").strip().upper()
        target = str(row.get("target") or "").strip().upper()
        coin_id = str(row.get("coin_id") or "").strip()
        if not base or not target or not coin_id or "-" in base:
            continue
        pair = f"{base}-{target}"
        if pair.endswith(suffixes):
            candidates.append((pair, coin_id))

    candidates.sort()
    entries = [SymbolEntry(user_symbol=pair.split("-", 1)[0], provider_id=coin_id) for pair, coin_id in candidates]
    return RegistrySnapshot.build(entries, pairs=(pair for pair, _ in candidates), source="refresh")


class SymbolRegistry:
    """Ticker -> provider id lookup over a swappable immutable snapshot."""

    def __init__(
        self,
        snapshot: RegistrySnapshot | None = None,
        *,
        listing_client=None,
        exchange_id: str = "gdax",
        quote_suffixes: Iterable[str] = ("USD", "USDT"),
    ) -> None:
        self._snapshot = snapshot or RegistrySnapshot.from_static()
        self.listing_client = listing_client
        self.exchange_id = exchange_id
        self.quote_suffixes = tuple(quote_suffixes)
        self._refresh_lock = threading.Lock()

        self.refresh_ok = 0
        self.refresh_failed = 0
        self.last_refresh_ts: int | None = None
        self.last_refresh_error: str | None = None

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    def resolve(self, user_input: str | None) -> str:
        symbol = base_ticker(user_input)
        if not symbol:
            raise InputInvalidError("symbol required")
        entry = self._snapshot.entries.get(symbol)
        if entry is None:
            raise SymbolUnsupportedError(f"unsupported symbol {symbol}", symbol=symbol)
        return entry.provider_id

    def symbols(self) -> list[str]:
        return list(self._snapshot.entries)

    def pairs(self) -> list[str]:
        return list(self._snapshot.pairs)

    def examples(self, limit: int = 6) -> list[str]:
        entries = self._snapshot.entries
        out = [s for s in PREFERRED_EXAMPLES if s in entries]
        for symbol in entries:
            if len(out) >= limit:
                break
            if symbol not in out:
                out.append(symbol)
        return out[:limit]

    def refresh(self) -> bool:
        """Swap in a snapshot built from the provider listing.

        Returns False and keeps the current snapshot when the listing call
        fails or yields no usable pairs.
        """
        if self.listing_client is None:
            return False

        with self._refresh_lock:
            try:
                payload = self.listing_client.list_exchange_tickers(self.exchange_id)
                snapshot = snapshot_from_exchange_tickers(payload, self.quote_suffixes)
                if not snapshot.entries:
                    raise ValueError("no tickers matched quote suffixes")
            except (PriceCheckError, ValueError) as exc:
                self.refresh_failed += 1
                self.last_refresh_error = f"{type(exc).__name__}: {exc}"
                print(
                    f"[REGISTRY][refresh_failed] exchange={self.exchange_id} "
                    f"kept_entries={len(self._snapshot.entries)} error={self.last_refresh_error}",
                    flush=True,
                )
                return False

            self._snapshot = snapshot
            self.refresh_ok += 1
            self.last_refresh_ts = snapshot.created_at
            self.last_refresh_error = None

        print(
            f"[REGISTRY][refresh_ok] exchange={self.exchange_id} "
            f"entries={len(snapshot.entries)} pairs={len(snapshot.pairs)}",
            flush=True,
        )
        return True

    def metrics(self) -> dict[str, int | str | None]:
        snapshot = self._snapshot
        return {
            "registry_entries": len(snapshot.entries),
            "registry_source": snapshot.source,
            "registry_refresh_ok": self.refresh_ok,
            "registry_refresh_failed": self.refresh_failed,
            "registry_last_refresh_ts": self.last_refresh_ts,
            "registry_last_refresh_error": self.last_refresh_error,
        }


class SymbolRefreshWorker:
    """Refreshes a registry once at start, then every ``interval_sec``."""

    def __init__(self, registry: SymbolRegistry, interval_sec: float = 3600) -> None:
        self.registry = registry
        self.interval_sec = interval_sec
        self._stop_event = threading.Event()
        self._stop_event.set()
        self.runs = 0
        self.errors = 0

    @property
    def running(self) -> bool:
        return not self._stop_event.is_set()

    def start(self) -> None:
        self._stop_event.clear()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.registry.refresh()
            except Exception as exc:
                self.errors += 1
                print(f"[REGISTRY][refresh_worker_error] error={type(exc).__name__}: {exc}", flush=True)
            self.runs += 1
            self._stop_event.wait(self.interval_sec)

    def stop(self) -> None:
        self._stop_event.set()
