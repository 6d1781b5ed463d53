"""Valuation orchestration: tracked fund + stored holdings + quotes -> estimate."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from fund_valuation.models.fund import Fund
from fund_valuation.services.cache import QuoteCache, quote_cache
from fund_valuation.services.estimator import FundEstimator, fund_estimator
from fund_valuation.services.fund_info import FundInfoService, fund_info_service
from fund_valuation.services.market_data import MarketDataService, market_data_service
from fund_valuation.services.valuation_types import FundHolding, StockQuote, ValuationResult

logger = logging.getLogger(__name__)


class FundNotTracked(LookupError):
    pass


class NavUnavailable(ValueError):
    pass


class ValuationService:
    """Loads what the engine needs and runs it."""

    def __init__(
        self,
        funds: FundInfoService = fund_info_service,
        market: MarketDataService = market_data_service,
        cache: QuoteCache = quote_cache,
        estimator: FundEstimator = fund_estimator,
    ):
        self.funds = funds
        self.market = market
        self.cache = cache
        self.estimator = estimator

    def fetch_quotes(self, stock_codes: list[str]) -> list[StockQuote]:
        """Quotes for the given codes, cache first.

        On non-trading days the last session's change percents are stale, so
        no quotes are returned and estimates fall back to zero change.
        """
        if not stock_codes:
            return []
        if not self.market.is_market_trading_today():
            return []
        hits, misses = self.cache.get_quotes(stock_codes)
        if misses:
            fetched = self.market.get_quotes(misses)
            self.cache.put_quotes(fetched)
            hits.extend(fetched)
        return hits

    async def load_holdings(self, session: AsyncSession, fund_code: str) -> list[FundHolding]:
        rows = await self.funds.get_holdings(session, fund_code)
        return [row.to_value() for row in rows]

    def _estimate(
        self, fund: Fund, holdings: list[FundHolding], quotes: list[StockQuote]
    ) -> ValuationResult:
        result = self.estimator.estimate_nav(
            fund.fund_code, fund.fund_name, fund.last_nav, holdings, quotes
        )
        if not result.data_quality.is_reliable:
            logger.info(
                f"Low coverage estimate for {fund.fund_code}: {result.data_quality.coverage:.2f}%"
            )
        return result

    async def estimate_fund(self, session: AsyncSession, fund_code: str) -> ValuationResult:
        """Estimate one tracked fund.

        Raises:
            FundNotTracked: the fund is not in the registry.
            NavUnavailable: the fund has no published NAV yet.
        """
        fund = await self.funds.get_fund(session, fund_code)
        if fund is None:
            raise FundNotTracked(fund_code)
        if fund.last_nav is None:
            raise NavUnavailable(fund_code)

        holdings = await self.load_holdings(session, fund_code)
        quotes = self.fetch_quotes([h.stock_code for h in holdings])
        return self._estimate(fund, holdings, quotes)

    async def estimate_all(
        self, session: AsyncSession, fund_codes: list[str] | None = None
    ) -> list[tuple[Fund, ValuationResult]]:
        """Estimate every tracked fund (or the listed ones) with one batch quote fetch.

        Funds without a NAV and unknown codes are skipped.
        """
        funds = await self.funds.get_all_funds(session)
        if fund_codes is not None:
            wanted = set(fund_codes)
            funds = [f for f in funds if f.fund_code in wanted]
        funds = [f for f in funds if f.last_nav is not None]

        holdings_map = {f.fund_code: await self.load_holdings(session, f.fund_code) for f in funds}
        all_codes = sorted({h.stock_code for hs in holdings_map.values() for h in hs})
        quotes = self.fetch_quotes(all_codes)

        return [(f, self._estimate(f, holdings_map[f.fund_code], quotes)) for f in funds]


valuation_service = ValuationService()
