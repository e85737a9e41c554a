from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from app.errors import (
    DataUnavailableError,
    TransportError,
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamRateLimitedError,
    UpstreamTimeoutError,
)


class CoinGeckoRestClient:
    """CoinGecko REST client: one GET per call, bounded timeout, no retries."""

    _BASE_URLS = {
        "demo": "https://api.coingecko.com/api/v3",
        "pro": "https://pro-api.coingecko.com/api/v3",
    }
    _KEY_HEADERS = {
        "demo": "x-cg-demo-api-key",
        "pro": "x-cg-pro-api-key",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        plan: str = "demo",
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        self.session = session or requests
        self.configure(api_key=api_key, plan=plan, base_url=base_url, timeout=timeout)

    def configure(
        self,
        *,
        api_key: Optional[str] = None,
        plan: str = "demo",
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        if plan not in self._BASE_URLS:
            raise ValueError("plan must be one of: demo, pro")

        self.api_key = api_key
        self.plan = plan
        self.base_url = (base_url or self._BASE_URLS[plan]).rstrip("/")
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"accept": "application/json"}
        if self.api_key:
            headers[self._KEY_HEADERS[self.plan]] = self.api_key
        return headers

    @staticmethod
    def _status_code_from_error(exc: Exception) -> int | None:
        response = getattr(exc, "response", None)
        code = getattr(response, "status_code", None)
        if isinstance(code, int):
            return code
        return None

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None, *, subject: str | None = None) -> Any:
        try:
            response = self.session.get(
                f"{self.base_url}{path}",
                headers=self._headers(),
                params=params,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.Timeout as exc:
            raise UpstreamTimeoutError(f"timeout after {self.timeout}s: {path}", symbol=subject) from exc
        except requests.HTTPError as exc:
            code = self._status_code_from_error(exc)
            if code == 404:
                raise UpstreamNotFoundError(f"404 for {path}", symbol=subject) from exc
            if code == 429:
                raise UpstreamRateLimitedError(f"429 for {path}", symbol=subject) from exc
            raise UpstreamError(f"HTTP {code} for {path}", status_code=code, symbol=subject) from exc
        except requests.RequestException as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}", symbol=subject) from exc

        try:
            return response.json(parse_float=Decimal)
        except ValueError as exc:
            raise DataUnavailableError(f"invalid JSON body for {path}", symbol=subject) from exc

    def get_coin(self, provider_id: str) -> Dict[str, Any]:
        payload = self._get_json(
            f"/coins/{provider_id}",
            params={
                "localization": "false",
                "tickers": "false",
                "community_data": "false",
                "developer_data": "false",
            },
            subject=provider_id,
        )
        if not isinstance(payload, dict):
            raise DataUnavailableError(f"unexpected payload type for {provider_id}", symbol=provider_id)
        return payload

    def list_exchange_tickers(self, exchange_id: str = "gdax") -> Any:
        return self._get_json(f"/exchanges/{exchange_id}/tickers", subject=exchange_id)

    def list_coins(self) -> Any:
        return self._get_json("/coins/list")
