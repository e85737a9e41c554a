from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from app.api.routes import router
from app.config.settings import Settings, get_settings
from app.integrations.coingecko_rest import CoinGeckoRestClient
from app.services.price_check import PriceCheckService
from app.services.symbol_registry import SymbolRefreshWorker, SymbolRegistry


def apply_settings(app: FastAPI, settings: Settings) -> None:
    client = app.state.price_check_service.rest_client
    if isinstance(client, CoinGeckoRestClient):
        client.configure(
            api_key=settings.COINGECKO_API_KEY,
            plan=settings.COINGECKO_API_PLAN,
            base_url=settings.COINGECKO_BASE_URL,
            timeout=settings.PRICE_REQUEST_TIMEOUT_SEC,
        )

    registry = app.state.symbol_registry
    registry.exchange_id = settings.SYMBOL_REFRESH_EXCHANGE
    registry.quote_suffixes = tuple(settings.SYMBOL_QUOTE_SUFFIXES)
    app.state.symbol_refresh_worker.interval_sec = settings.SYMBOL_REFRESH_INTERVAL_SEC


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.get_settings()
    apply_settings(app, settings)

    if not settings.SYMBOL_REFRESH_ENABLED:
        print("[REGISTRY][static_only] refresh=disabled", flush=True)
        yield
        return

    refresh_worker = app.state.symbol_refresh_worker
    refresh_worker.start()
    worker_thread = threading.Thread(
        target=refresh_worker.run,
        daemon=True,
        name='symbol-refresh-worker',
    )
    app.state.symbol_refresh_thread = worker_thread
    print(
        f"[REGISTRY][refresh_worker_start] thread=symbol-refresh-worker "
        f"interval_sec={refresh_worker.interval_sec}",
        flush=True,
    )
    worker_thread.start()

    try:
        yield
    finally:
        refresh_worker.stop()
        worker_thread.join(timeout=1.0)
        print("[REGISTRY][refresh_worker_stop] thread=symbol-refresh-worker", flush=True)


app = FastAPI(title="Crypto Price Checker", version="0.1.0", lifespan=lifespan)
app.include_router(router)
app.mount("/static", StaticFiles(directory=str(Path(__file__).resolve().parent / "static")), name="static")

# NOTE: lazy-loaded so app import does not require env during tests.
app.state.get_settings = get_settings
_rest_client = CoinGeckoRestClient()
app.state.symbol_registry = SymbolRegistry(listing_client=_rest_client)
app.state.symbol_refresh_worker = SymbolRefreshWorker(app.state.symbol_registry)
app.state.price_check_service = PriceCheckService(
    registry=app.state.symbol_registry,
    rest_client=_rest_client,
)
