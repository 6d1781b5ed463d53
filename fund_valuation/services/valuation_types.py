"""Value objects and provider interfaces for fund NAV estimation."""

from dataclasses import asdict, dataclass
from typing import Any, Protocol


class InvalidInput(ValueError):
    """Raised when valuation inputs are structurally invalid (non-finite NAV,
    non-numeric ratio or price, out-of-range ratio)."""


@dataclass(frozen=True, slots=True)
class StockQuote:
    """Point-in-time market quote for one security."""

    code: str
    price: float
    change: float
    change_percent: float  # signed, e.g. 1.23 means +1.23%
    prev_close: float
    open: float


@dataclass(frozen=True, slots=True)
class FundHolding:
    """One position of a fund's disclosed portfolio."""

    stock_code: str
    stock_name: str
    ratio: float  # percent of fund NAV, (0, 100]
    report_date: str = ""
    shares: float | None = None  # 万股, when disclosed


@dataclass(frozen=True, slots=True)
class HoldingContribution:
    code: str
    name: str
    ratio: float
    current_price: float
    change_percent: float
    contribution: float


@dataclass(frozen=True, slots=True)
class DataQuality:
    total_ratio: float
    coverage: float
    is_reliable: bool


@dataclass(frozen=True, slots=True)
class ValuationResult:
    """Estimated NAV for one fund at one calculation instant."""

    fund_code: str
    fund_name: str
    last_nav: float
    estimated_nav: float
    estimated_change: float
    estimated_change_percent: float
    calculation_time: str  # ISO-8601, UTC
    holdings: tuple[HoldingContribution, ...]
    data_quality: DataQuality

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["holdings"] = list(data["holdings"])
        return data


class HoldingsProvider(Protocol):
    def get_holdings(self, fund_code: str) -> list[FundHolding]: ...


class QuoteProvider(Protocol):
    def get_quotes(self, stock_codes: list[str]) -> list[StockQuote]: ...
