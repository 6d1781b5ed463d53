"""Fund NAV estimation engine.

Calculates real-time fund NAV estimates based on disclosed holdings and stock quotes.

Algorithm:
    est_change_pct = Σ (ratio_i / 100 * stock_change_pct_i)   over priced holdings
    est_change = last_nav * est_change_pct / 100
    est_nav = last_nav + est_change

Holdings without a quote are reported with zero contribution and do not count
toward coverage. An estimate is reliable when coverage reaches RELIABLE_COVERAGE.
"""

import logging
import math
from collections import Counter
from datetime import datetime, timezone
from numbers import Real
from typing import Iterable

from fund_valuation.config import RELIABLE_COVERAGE
from fund_valuation.services.valuation_types import (
    DataQuality,
    FundHolding,
    HoldingContribution,
    InvalidInput,
    StockQuote,
    ValuationResult,
)

logger = logging.getLogger(__name__)


def _require_number(value, field: str) -> float:
    # bool is a Real subclass; a True ratio is a caller bug, not 1%
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InvalidInput(f"{field} must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidInput(f"{field} must be finite, got {value!r}")
    return value


def _validate_holding(holding: FundHolding) -> None:
    ratio = _require_number(holding.ratio, f"ratio of {holding.stock_code}")
    if not 0 < ratio <= 100:
        raise InvalidInput(
            f"ratio of {holding.stock_code} must be in (0, 100], got {ratio}"
        )
    if holding.shares is not None:
        _require_number(holding.shares, f"shares of {holding.stock_code}")


def _validate_quote(quote: StockQuote) -> None:
    _require_number(quote.price, f"price of {quote.code}")
    _require_number(quote.change_percent, f"change_percent of {quote.code}")


def format_calculation_time(now: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-02-14T06:30:00.000Z."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FundEstimator:
    """Calculates fund NAV estimates from holdings and real-time stock quotes.

    Stateless: every call reads only its arguments, so one instance can be
    shared between concurrent callers.
    """

    def __init__(self, reliable_coverage: float = RELIABLE_COVERAGE):
        self.reliable_coverage = reliable_coverage

    def estimate_nav(
        self,
        fund_code: str,
        fund_name: str,
        last_nav: float,
        holdings: Iterable[FundHolding],
        quotes: Iterable[StockQuote],
        now: datetime | None = None,
    ) -> ValuationResult:
        """Estimate a fund's NAV.

        Args:
            fund_code: Fund identifier, echoed into the result.
            fund_name: Fund display name, echoed into the result.
            last_nav: The fund's last published NAV.
            holdings: Disclosed holdings, ratio in percent of NAV.
            quotes: Current quotes; may cover only part of the holdings.
            now: Calculation instant, defaults to the current UTC time.

        Returns:
            ValuationResult with contribution rows sorted descending.

        Raises:
            InvalidInput: last_nav, a ratio or a quote field is not a finite
                number, last_nav is negative, or a ratio is outside (0, 100].
        """
        last_nav = _require_number(last_nav, "last_nav")
        if last_nav < 0:
            raise InvalidInput(f"last_nav must not be negative, got {last_nav}")

        holdings = list(holdings)
        quotes = list(quotes)
        for holding in holdings:
            _validate_holding(holding)
        for quote in quotes:
            _validate_quote(quote)

        quote_map: dict[str, StockQuote] = {}
        for quote in quotes:
            quote_map[quote.code] = quote
        duplicates = sorted(
            code for code, n in Counter(q.code for q in quotes).items() if n > 1
        )
        if duplicates:
            logger.warning(
                f"Duplicate quotes for {fund_code}: {', '.join(duplicates)}; using the last entry"
            )

        weighted_change_pct = 0.0
        total_ratio = 0.0
        details: list[HoldingContribution] = []

        for holding in holdings:
            quote = quote_map.get(holding.stock_code)
            if quote is None:
                # Unpriced holdings are assumed flat
                details.append(
                    HoldingContribution(
                        code=holding.stock_code,
                        name=holding.stock_name,
                        ratio=holding.ratio,
                        current_price=0.0,
                        change_percent=0.0,
                        contribution=0.0,
                    )
                )
                continue

            contribution = (holding.ratio / 100) * quote.change_percent
            weighted_change_pct += contribution
            total_ratio += holding.ratio

            details.append(
                HoldingContribution(
                    code=holding.stock_code,
                    name=holding.stock_name,
                    ratio=holding.ratio,
                    current_price=quote.price,
                    change_percent=quote.change_percent,
                    contribution=contribution,
                )
            )

        est_change = last_nav * weighted_change_pct / 100
        est_nav = last_nav + est_change
        coverage = round(total_ratio, 2)

        # Stable sort: ties keep disclosure order
        details.sort(key=lambda d: d.contribution, reverse=True)

        return ValuationResult(
            fund_code=fund_code,
            fund_name=fund_name,
            last_nav=last_nav,
            estimated_nav=round(est_nav, 4),
            estimated_change=round(est_change, 4),
            estimated_change_percent=round(weighted_change_pct, 2),
            calculation_time=format_calculation_time(now or datetime.now(timezone.utc)),
            holdings=tuple(details),
            data_quality=DataQuality(
                total_ratio=round(total_ratio, 2),
                coverage=coverage,
                is_reliable=coverage >= self.reliable_coverage,
            ),
        )


# Global instance
fund_estimator = FundEstimator()


def estimate_nav(
    fund_code: str,
    fund_name: str,
    last_nav: float,
    holdings: Iterable[FundHolding],
    quotes: Iterable[StockQuote],
    now: datetime | None = None,
) -> ValuationResult:
    return fund_estimator.estimate_nav(
        fund_code, fund_name, last_nav, holdings, quotes, now=now
    )
