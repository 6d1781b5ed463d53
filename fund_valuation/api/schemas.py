"""Pydantic schemas for API request/response."""

from pydantic import BaseModel, StrictFloat

from fund_valuation.services.stats import PortfolioStats
from fund_valuation.services.valuation_types import (
    FundHolding,
    StockQuote,
    ValuationResult,
)


class FundResponse(BaseModel):
    fund_code: str
    fund_name: str
    fund_type: str
    last_nav: float | None = None
    nav_date: str | None = None


class HoldingResponse(BaseModel):
    stock_code: str
    stock_name: str
    holding_ratio: float
    shares: float | None = None
    report_date: str


class HoldingContributionResponse(BaseModel):
    code: str
    name: str
    ratio: float
    current_price: float
    change_percent: float
    contribution: float


class DataQualityResponse(BaseModel):
    total_ratio: float
    coverage: float
    is_reliable: bool


class ValuationResponse(BaseModel):
    fund_code: str
    fund_name: str
    last_nav: float
    estimated_nav: float
    estimated_change: float
    estimated_change_percent: float
    calculation_time: str
    holdings: list[HoldingContributionResponse]
    data_quality: DataQualityResponse

    @classmethod
    def from_result(cls, result: ValuationResult) -> "ValuationResponse":
        return cls.model_validate(result.to_dict())


# Strict floats: numeric strings are rejected rather than coerced.
class HoldingInput(BaseModel):
    stock_code: str
    stock_name: str = ""
    ratio: StrictFloat
    shares: StrictFloat | None = None
    report_date: str = ""

    def to_value(self) -> FundHolding:
        return FundHolding(
            stock_code=self.stock_code,
            stock_name=self.stock_name,
            ratio=self.ratio,
            report_date=self.report_date,
            shares=self.shares,
        )


class QuoteInput(BaseModel):
    code: str
    price: StrictFloat
    change: StrictFloat = 0.0
    change_percent: StrictFloat
    prev_close: StrictFloat = 0.0
    open: StrictFloat = 0.0

    def to_value(self) -> StockQuote:
        return StockQuote(
            code=self.code,
            price=self.price,
            change=self.change,
            change_percent=self.change_percent,
            prev_close=self.prev_close,
            open=self.open,
        )


class CalculateRequest(BaseModel):
    fund_code: str
    fund_name: str = ""
    last_nav: StrictFloat
    holdings: list[HoldingInput] = []
    quotes: list[QuoteInput] = []


class TypeStatsResponse(BaseModel):
    count: int
    avg_change_pct: float


class StatsResponse(BaseModel):
    fund_count: int
    avg_change_pct: float
    up_count: int
    down_count: int
    flat_count: int
    reliable_count: int
    by_type: dict[str, TypeStatsResponse]

    @classmethod
    def from_stats(cls, stats: PortfolioStats) -> "StatsResponse":
        return cls(
            fund_count=stats.fund_count,
            avg_change_pct=stats.avg_change_pct,
            up_count=stats.up_count,
            down_count=stats.down_count,
            flat_count=stats.flat_count,
            reliable_count=stats.reliable_count,
            by_type={
                name: TypeStatsResponse(count=t.count, avg_change_pct=t.avg_change_pct)
                for name, t in stats.by_type.items()
            },
        )


class CompareRow(BaseModel):
    fund_code: str
    fund_name: str
    last_nav: float
    estimated_nav: float
    estimated_change_percent: float
    change_label: str
    coverage: float
    is_reliable: bool
    trend: str
    icon: str
