"""Background task scheduler for periodic market data updates."""

import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from fund_valuation.config import MARKET_DATA_INTERVAL
from fund_valuation.models.database import async_session_factory
from fund_valuation.services.cache import quote_cache
from fund_valuation.services.fund_info import fund_info_service
from fund_valuation.services.market_data import market_data_service

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()


def is_trading_hours(now: datetime | None = None) -> bool:
    """Check if a time is within A-share trading hours (with 5 minute margins)."""
    now = now or datetime.now()
    if now.weekday() >= 5:
        return False
    current_time = now.strftime("%H:%M")
    # Morning: 09:30-11:30, Afternoon: 13:00-15:00
    return ("09:25" <= current_time <= "11:35") or ("12:55" <= current_time <= "15:05")


async def warm_quote_cache():
    """Fetch quotes for every stock held by a tracked fund into the quote cache."""
    if not is_trading_hours():
        return

    try:
        async with async_session_factory() as session:
            funds = await fund_info_service.get_all_funds(session)
            stock_codes = set()
            for fund in funds:
                for h in await fund_info_service.get_holdings(session, fund.fund_code):
                    stock_codes.add(h.stock_code)

        if not stock_codes:
            return

        quotes = market_data_service.get_quotes(sorted(stock_codes))
        quote_cache.put_quotes(quotes)
        logger.info(f"Cached {len(quotes)}/{len(stock_codes)} stock quotes")
    except Exception as e:
        logger.error(f"Failed to update stock quotes: {e}")


async def refresh_all_fund_navs():
    """After market close (20:30 weekdays), fetch official NAV for all tracked funds."""
    try:
        async with async_session_factory() as session:
            funds = await fund_info_service.get_all_funds(session)
            updated = 0
            for fund in funds:
                nav_data = market_data_service.get_fund_nav(fund.fund_code)
                if nav_data and nav_data["nav_date"] != fund.nav_date:
                    fund.last_nav = nav_data["nav"]
                    fund.nav_date = nav_data["nav_date"]
                    fund.updated_at = datetime.now().isoformat()
                    updated += 1
            await session.commit()
            logger.info(f"Refreshed official NAV for {updated}/{len(funds)} funds")
    except Exception as e:
        logger.error(f"Failed to refresh fund NAVs: {e}")


def start_scheduler():
    """Start the background scheduler."""
    scheduler.add_job(
        warm_quote_cache,
        trigger=IntervalTrigger(seconds=MARKET_DATA_INTERVAL),
        id="warm_quote_cache",
        replace_existing=True,
    )
    scheduler.add_job(
        refresh_all_fund_navs,
        trigger=CronTrigger(hour=20, minute=30, day_of_week="mon-fri"),
        id="refresh_all_fund_navs",
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started, refreshing quotes every {MARKET_DATA_INTERVAL}s")


def stop_scheduler():
    """Stop the background scheduler."""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler stopped")
