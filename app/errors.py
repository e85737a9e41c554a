from __future__ import annotations

from enum import Enum


class FailureKind(str, Enum):
    INPUT_INVALID = "INPUT_INVALID"
    SYMBOL_UNSUPPORTED = "SYMBOL_UNSUPPORTED"
    UPSTREAM_NOT_FOUND = "UPSTREAM_NOT_FOUND"
    UPSTREAM_RATE_LIMITED = "UPSTREAM_RATE_LIMITED"
    UPSTREAM_TIMEOUT = "UPSTREAM_TIMEOUT"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    DATA_UNAVAILABLE = "DATA_UNAVAILABLE"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"


class PriceCheckError(Exception):
    """Base for every failure a price check can end in."""

    kind: FailureKind

    def __init__(self, message: str = "", *, symbol: str | None = None) -> None:
        super().__init__(message or self.kind.value)
        self.symbol = symbol


class InputInvalidError(PriceCheckError):
    kind = FailureKind.INPUT_INVALID


class SymbolUnsupportedError(PriceCheckError):
    kind = FailureKind.SYMBOL_UNSUPPORTED


class UpstreamNotFoundError(PriceCheckError):
    kind = FailureKind.UPSTREAM_NOT_FOUND


class UpstreamRateLimitedError(PriceCheckError):
    kind = FailureKind.UPSTREAM_RATE_LIMITED


class UpstreamTimeoutError(PriceCheckError):
    kind = FailureKind.UPSTREAM_TIMEOUT


class UpstreamError(PriceCheckError):
    kind = FailureKind.UPSTREAM_ERROR

    def __init__(self, message: str = "", *, status_code: int | None = None, symbol: str | None = None) -> None:
        super().__init__(message, symbol=symbol)
        self.status_code = status_code


class DataUnavailableError(PriceCheckError):
    kind = FailureKind.DATA_UNAVAILABLE


class TransportError(PriceCheckError):
    kind = FailureKind.TRANSPORT_ERROR
