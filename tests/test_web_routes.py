import unittest

from fastapi.testclient import TestClient

from app.errors import UpstreamRateLimitedError, UpstreamTimeoutError
from app.main import app
from app.services.price_check import PriceCheckService
from app.services.symbol_registry import SymbolRegistry


class StubRestClient:
    def __init__(self, *, coin: dict | None = None, error: Exception | None = None) -> None:
        self.coin = coin
        self.error = error
        self.calls: list[str] = []

    def get_coin(self, provider_id: str) -> dict:
        self.calls.append(provider_id)
        if self.error is not None:
            raise self.error
        return self.coin

    def list_exchange_tickers(self, exchange_id: str = "gdax"):
        self.calls.append(f"tickers:{exchange_id}")
        if self.error is not None:
            raise self.error
        return {"name": "Coinbase Exchange", "tickers": [{"base": "BTC", "target": "USD", "coin_id": "bitcoin"}]}

    def list_coins(self):
        self.calls.append("coins")
        if self.error is not None:
            raise self.error
        return [{"id": "bitcoin", "symbol": "btc", "name": "Bitcoin"}]


BITCOIN = {
    "id": "bitcoin",
    "symbol": "btc",
    "market_data": {
        "current_price": {"usd": 67000.12},
        "price_change_percentage_24h": 2.5,
        "total_volume": {"usd": 31234567890},
        "market_cap": {"usd": 1320000000000},
    },
}


class WebRoutesTest(unittest.TestCase):
    def setUp(self):
        self._original_service = app.state.price_check_service
        self._original_registry = app.state.symbol_registry
        app.state.symbol_registry = SymbolRegistry()

    def tearDown(self):
        app.state.price_check_service = self._original_service
        app.state.symbol_registry = self._original_registry

    def _use(self, rest_client: StubRestClient) -> TestClient:
        app.state.price_check_service = PriceCheckService(
            registry=app.state.symbol_registry,
            rest_client=rest_client,
        )
        return TestClient(app)

    def test_index_renders_form_and_known_symbols(self):
        c = self._use(StubRestClient(coin=BITCOIN))
        r = c.get('/')

        self.assertEqual(r.status_code, 200)
        self.assertIn('text/html', r.headers['content-type'])
        self.assertIn('name="cryptoSymbol"', r.text)
        self.assertIn('action="/check-price"', r.text)
        self.assertIn('BTC-USD', r.text)
        self.assertNotIn('role="alert"', r.text)

    def test_check_price_success_renders_display_fields(self):
        rest = StubRestClient(coin=BITCOIN)
        c = self._use(rest)

        r = c.post('/check-price', data={'cryptoSymbol': 'btc-usd'})

        self.assertEqual(r.status_code, 200)
        self.assertEqual(rest.calls, ['bitcoin'])
        self.assertIn('$67,000.12', r.text)
        self.assertIn('2.50%', r.text)
        self.assertIn('31,234,567,890', r.text)
        self.assertIn('$1,320,000,000,000 USD', r.text)
        self.assertIn('(estimated)', r.text)
        self.assertNotIn('role="alert"', r.text)

    def test_unsupported_symbol_renders_error_with_200(self):
        rest = StubRestClient(coin=BITCOIN)
        c = self._use(rest)

        r = c.post('/check-price', data={'cryptoSymbol': 'DOGEBONK'})

        self.assertEqual(r.status_code, 200)
        self.assertIn('DOGEBONK', r.text)
        self.assertIn('BTC, ETH, SOL', r.text)
        self.assertNotIn('class="quote"', r.text)
        self.assertEqual(rest.calls, [])

    def test_missing_symbol_field_renders_required_message(self):
        c = self._use(StubRestClient(coin=BITCOIN))
        r = c.post('/check-price', data={})

        self.assertEqual(r.status_code, 200)
        self.assertIn('Please enter a cryptocurrency symbol.', r.text)

    def test_timeout_renders_timeout_message(self):
        c = self._use(StubRestClient(error=UpstreamTimeoutError('read timeout after 10s')))
        r = c.post('/check-price', data={'cryptoSymbol': 'ETH'})

        self.assertEqual(r.status_code, 200)
        self.assertIn('took too long', r.text)
        self.assertNotIn('read timeout after 10s', r.text)

    def test_user_input_is_escaped(self):
        c = self._use(StubRestClient(coin=BITCOIN))
        r = c.post('/check-price', data={'cryptoSymbol': '<script>alert(1)</script>'})

        self.assertEqual(r.status_code, 200)
        self.assertNotIn('<script>alert(1)</script>', r.text)
        self.assertIn('&lt;SCRIPT&gt;ALERT(1)&lt;/SCRIPT&gt;', r.text)

    def test_tickers_and_symbols_pass_through(self):
        rest = StubRestClient(coin=BITCOIN)
        c = self._use(rest)

        tickers = c.get('/tickers')
        symbols = c.get('/symbols')

        self.assertEqual(tickers.status_code, 200)
        self.assertEqual(tickers.json()['tickers'][0]['coin_id'], 'bitcoin')
        self.assertEqual(symbols.status_code, 200)
        self.assertEqual(symbols.json(), [{'id': 'bitcoin', 'symbol': 'btc', 'name': 'Bitcoin'}])
        self.assertEqual(rest.calls, ['tickers:gdax', 'coins'])

    def test_pass_through_maps_upstream_failures(self):
        c = self._use(StubRestClient(error=UpstreamRateLimitedError('429')))
        r = c.get('/symbols')
        self.assertEqual(r.status_code, 429)
        self.assertEqual(r.json(), {'detail': 'UPSTREAM_RATE_LIMITED'})

        c = self._use(StubRestClient(error=UpstreamTimeoutError('timeout')))
        r = c.get('/tickers')
        self.assertEqual(r.status_code, 504)
        self.assertEqual(r.json(), {'detail': 'UPSTREAM_TIMEOUT'})

    def test_metrics_and_healthz(self):
        c = self._use(StubRestClient(coin=BITCOIN))
        c.post('/check-price', data={'cryptoSymbol': 'BTC'})

        metrics = c.get('/metrics/price-check').json()
        self.assertEqual(metrics['checks'], 1)
        self.assertEqual(metrics['successes'], 1)
        self.assertEqual(metrics['registry_source'], 'static')
        self.assertEqual(c.get('/healthz').json(), {'ok': True})

    def test_static_stylesheet_served(self):
        c = self._use(StubRestClient(coin=BITCOIN))
        r = c.get('/static/styles.css')
        self.assertEqual(r.status_code, 200)


if __name__ == '__main__':
    unittest.main()
