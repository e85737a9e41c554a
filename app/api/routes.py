from pathlib import Path

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.errors import FailureKind, PriceCheckError
from app.schemas.quote import PriceCheckResult

router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))

_PASS_THROUGH_STATUS = {
    FailureKind.UPSTREAM_NOT_FOUND: 404,
    FailureKind.UPSTREAM_RATE_LIMITED: 429,
    FailureKind.UPSTREAM_TIMEOUT: 504,
}


def _render(request: Request, result: PriceCheckResult | None = None, entered: str = "") -> HTMLResponse:
    registry = request.app.state.symbol_registry
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "result": result,
            "entered": entered,
            "known_pairs": registry.pairs(),
        },
    )


def _pass_through(call):
    try:
        return call()
    except PriceCheckError as exc:
        print(f"[PROXY][upstream_failed] kind={exc.kind.value} error={exc}", flush=True)
        raise HTTPException(status_code=_PASS_THROUGH_STATUS.get(exc.kind, 502), detail=exc.kind.value) from exc


@router.get('/', response_class=HTMLResponse)
def index(request: Request):
    return _render(request)


@router.post('/check-price', response_class=HTMLResponse)
def check_price(request: Request, cryptoSymbol: str = Form(default="")):
    service = request.app.state.price_check_service
    result = service.check(cryptoSymbol)
    return _render(request, result, entered=cryptoSymbol.strip())


@router.get('/tickers')
def get_tickers(request: Request):
    service = request.app.state.price_check_service
    exchange_id = request.app.state.symbol_registry.exchange_id
    return _pass_through(lambda: service.rest_client.list_exchange_tickers(exchange_id))


@router.get('/symbols')
def get_symbols(request: Request):
    service = request.app.state.price_check_service
    return _pass_through(service.rest_client.list_coins)


@router.get('/healthz')
def healthz():
    return {'ok': True}


@router.get('/metrics/price-check')
def price_check_metrics(request: Request):
    metrics = request.app.state.price_check_service.metrics()
    metrics.update(request.app.state.symbol_registry.metrics())
    return metrics
