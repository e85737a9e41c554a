from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict, model_validator


def format_amount(value: Decimal, places: int) -> str:
    exponent = Decimal(1).scaleb(-places)
    rounded = value.quantize(exponent, rounding=ROUND_HALF_UP)
    return f"{rounded:,.{places}f}"


class DisplayQuote(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol_label: str
    price: Decimal
    price_24h_ago: Decimal
    price_24h_ago_estimated: bool = True
    change_percent: Decimal
    volume: Decimal
    market_cap: Decimal

    @property
    def price_display(self) -> str:
        return f"${format_amount(self.price, 2)}"

    @property
    def price_24h_ago_display(self) -> str:
        return f"${format_amount(self.price_24h_ago, 2)}"

    @property
    def change_percent_display(self) -> str:
        return f"{self.change_percent:.2f}%"

    @property
    def volume_display(self) -> str:
        return format_amount(self.volume, 0)

    @property
    def market_cap_display(self) -> str:
        return f"${format_amount(self.market_cap, 0)} USD"


class PriceCheckResult(BaseModel):
    """Outcome of one price check: a quote or an error message, never both."""

    model_config = ConfigDict(frozen=True)

    symbol: str | None = None
    quote: DisplayQuote | None = None
    error: str | None = None

    @model_validator(mode="after")
    def exactly_one_outcome(self) -> "PriceCheckResult":
        if (self.quote is None) == (self.error is None):
            raise ValueError("result must carry exactly one of quote or error")
        return self

    @property
    def ok(self) -> bool:
        return self.quote is not None
