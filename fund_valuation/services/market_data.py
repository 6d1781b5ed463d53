"""Market data service using akshare for fund info and eastmoney API for stock quotes.

Implements the holdings and quote provider interfaces consumed by the
valuation engine. Every upstream failure is logged and degraded to an empty
result so callers never block on a broken data source.
"""

import logging
import math
from datetime import datetime
from typing import Any

import akshare as ak
import httpx
import pandas as pd

from fund_valuation.config import HTTP_TIMEOUT
from fund_valuation.services.cache import CacheService
from fund_valuation.services.valuation_types import FundHolding, StockQuote

logger = logging.getLogger(__name__)

QUOTE_URL = "https://push2.eastmoney.com/api/qt/ulist.np/get"
TRENDS_URL = "https://push2.eastmoney.com/api/qt/stock/trends2/get"

# f2=price f3=change% f4=change f12=code f14=name f17=open f18=prev close
QUOTE_FIELDS = "f2,f3,f4,f12,f14,f17,f18"

_FUND_NAME_TABLE_KEY = "fund_name_table"
_fund_name_cache = CacheService(default_ttl=3600)


# Eastmoney market prefix: 沪市=1, 深市=0
def _get_secid(stock_code: str) -> str:
    """Convert stock code to eastmoney secid format."""
    if len(stock_code) != 6:
        # 港股/美股暂不支持
        return ""
    if stock_code.startswith(("6", "9")):
        return f"1.{stock_code}"
    elif stock_code.startswith(("0", "3", "2")):
        return f"0.{stock_code}"
    return ""


def _to_float(value: Any) -> float | None:
    """Parse an upstream numeric field; '-' marks a suspended/empty value."""
    if value is None or value == "-":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


class MarketDataService:
    """Fetches fund and stock market data from akshare and eastmoney."""

    def __init__(self, timeout: float = HTTP_TIMEOUT):
        self.timeout = timeout

    # Provider interfaces

    def get_quotes(self, stock_codes: list[str]) -> list[StockQuote]:
        return self.get_stock_quotes(stock_codes)

    def get_holdings(self, fund_code: str) -> list[FundHolding]:
        return self.get_latest_holdings(fund_code)

    # Fund metadata

    def _get_fund_name_table(self) -> pd.DataFrame:
        df = _fund_name_cache.get(_FUND_NAME_TABLE_KEY)
        if df is None:
            df = ak.fund_name_em()
            _fund_name_cache.set(_FUND_NAME_TABLE_KEY, df)
        return df

    def get_fund_basic_info(self, fund_code: str) -> dict[str, str] | None:
        """Get fund name and type from akshare.

        Returns {fund_name, fund_type} or None.
        """
        try:
            df = self._get_fund_name_table()
            row = df[df["基金代码"] == fund_code]
            if row.empty:
                return None
            first = row.iloc[0]
            return {
                "fund_name": str(first["基金简称"]),
                "fund_type": str(first["基金类型"]),
            }
        except Exception as e:
            logger.error(f"Failed to fetch fund basic info for {fund_code}: {e}")
            return None

    def search_funds(self, query: str, limit: int = 20) -> list[dict[str, str]]:
        """Search funds by code prefix or name substring."""
        query = query.strip()
        if not query:
            return []
        try:
            df = self._get_fund_name_table()
            mask = df["基金代码"].str.startswith(query) | df["基金简称"].str.contains(
                query, case=False, na=False, regex=False
            )
            return [
                {
                    "fund_code": str(row["基金代码"]),
                    "fund_name": str(row["基金简称"]),
                    "fund_type": str(row["基金类型"]),
                }
                for _, row in df[mask].head(limit).iterrows()
            ]
        except Exception as e:
            logger.error(f"Fund search failed for {query!r}: {e}")
            return []

    def is_market_trading_today(self) -> bool:
        """Return True if the A-share market has trading data for today.

        Uses the CSI 300 intraday trends endpoint as the source of truth.
        On weekends and public holidays the endpoint returns the last trading
        day's data, whose date will not match today.
        """
        now = datetime.now()
        if now.weekday() >= 5:  # Saturday or Sunday
            return False
        try:
            resp = httpx.get(
                TRENDS_URL,
                params={"secid": "1.000300", "fields1": "f2", "fields2": "f51", "iscr": 0, "ndays": 1},
                timeout=self.timeout,
            )
            trends = (resp.json().get("data") or {}).get("trends", [])
            if not trends:
                return False
            # Entry format: "2026-02-13 09:30"
            first_date = trends[0].split(",")[0].split(" ")[0]
            return first_date == now.strftime("%Y-%m-%d")
        except Exception as e:
            logger.warning(f"Trading day check failed, assuming market open: {e}")
            return True

    # Quotes

    def get_stock_quotes(self, stock_codes: list[str]) -> list[StockQuote]:
        """Get real-time quotes for a list of stock codes.

        Uses the eastmoney batch API (only requested stocks). Codes on
        unsupported markets and suspended stocks are left out, so the result
        may be shorter than the request.
        """
        secids = [secid for secid in (_get_secid(c) for c in dict.fromkeys(stock_codes)) if secid]
        if not secids:
            return []

        try:
            resp = httpx.get(
                QUOTE_URL,
                params={"fltt": 2, "fields": QUOTE_FIELDS, "secids": ",".join(secids)},
                timeout=self.timeout,
            )
            data = resp.json()
        except Exception as e:
            logger.error(f"Failed to fetch stock quotes: {e}")
            return []

        diff = (data.get("data") or {}).get("diff") or []
        quotes = []
        for item in diff:
            price = _to_float(item.get("f2"))
            change_pct = _to_float(item.get("f3"))
            if price is None or change_pct is None:
                continue
            quotes.append(
                StockQuote(
                    code=str(item["f12"]),
                    price=price,
                    change=_to_float(item.get("f4")) or 0.0,
                    change_percent=change_pct,
                    prev_close=_to_float(item.get("f18")) or 0.0,
                    open=_to_float(item.get("f17")) or 0.0,
                )
            )
        return quotes

    # Holdings

    def get_fund_holdings(self, fund_code: str, year: str) -> list[FundHolding]:
        """Get the latest quarter's stock holdings disclosed in a given year.

        Ratios stay in percent of NAV. Rows with a missing or out-of-range
        ratio are dropped with a warning.
        """
        try:
            df = ak.fund_portfolio_hold_em(symbol=fund_code, date=year)
        except Exception as e:
            logger.error(f"Failed to fetch fund holdings for {fund_code}: {e}")
            return []
        if df is None or df.empty:
            return []

        report_date = ""
        if "季度" in df.columns:
            report_date = str(df["季度"].max())
            df = df[df["季度"] == report_date]

        ratios = pd.to_numeric(df["占净值比例"], errors="coerce")
        shares = (
            pd.to_numeric(df["持股数"], errors="coerce")
            if "持股数" in df.columns
            else pd.Series([None] * len(df), index=df.index)
        )

        holdings = []
        for idx, row in df.iterrows():
            ratio = ratios[idx]
            if pd.isna(ratio) or not 0 < ratio <= 100:
                logger.warning(
                    f"Skipping holding {row['股票代码']} of {fund_code}: ratio {row['占净值比例']!r}"
                )
                continue
            share = shares[idx]
            holdings.append(
                FundHolding(
                    stock_code=str(row["股票代码"]),
                    stock_name=str(row["股票名称"]),
                    ratio=float(ratio),
                    report_date=report_date,
                    shares=None if pd.isna(share) else float(share),
                )
            )
        return holdings

    def get_latest_holdings(self, fund_code: str) -> list[FundHolding]:
        """Holdings from the current year's filings, falling back to last year."""
        year = datetime.now().year
        holdings = self.get_fund_holdings(fund_code, str(year))
        if not holdings:
            holdings = self.get_fund_holdings(fund_code, str(year - 1))
        return holdings

    # NAV

    def get_fund_nav(self, fund_code: str) -> dict[str, Any] | None:
        """Get the latest NAV for a fund.

        Returns {nav, nav_date} or None.
        """
        try:
            df = ak.fund_open_fund_info_em(symbol=fund_code, indicator="单位净值走势")
            if df.empty:
                return None

            latest = df.iloc[-1]
            return {
                "nav": float(latest["单位净值"]),
                "nav_date": str(latest["净值日期"])[:10],
            }
        except Exception as e:
            logger.error(f"Failed to fetch NAV for {fund_code}: {e}")
            return None


# Global instance
market_data_service = MarketDataService()
