"""Fund registry API routes: search, setup, metadata, holdings, NAV refresh."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from fund_valuation.api.schemas import FundResponse, HoldingResponse
from fund_valuation.models.database import get_db
from fund_valuation.services.fund_info import fund_info_service
from fund_valuation.services.market_data import market_data_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fund", tags=["fund"])


# Static path routes MUST come before parameterized /{fund_code} routes.


@router.get("/search")
async def search_funds(q: str = ""):
    """Search funds by name or code prefix.

    Returns up to 20 matches: [{fund_code, fund_name, fund_type}].
    """
    return market_data_service.search_funds(q)


@router.post("/setup/{fund_code}")
async def setup_fund(fund_code: str, db: AsyncSession = Depends(get_db)):
    """Start tracking a fund: fetch NAV, name/type and latest holdings."""
    existing = await fund_info_service.get_fund(db, fund_code)
    if existing:
        return {
            "status": "exists",
            "fund_code": fund_code,
            "fund_name": existing.fund_name,
        }

    nav_data = market_data_service.get_fund_nav(fund_code)
    if nav_data is None:
        raise HTTPException(status_code=404, detail=f"Fund {fund_code} not found")

    basic_info = market_data_service.get_fund_basic_info(fund_code)
    fund_name = basic_info["fund_name"] if basic_info else f"Fund-{fund_code}"
    fund_type = basic_info["fund_type"] if basic_info else "未知"

    await fund_info_service.add_fund(
        db,
        fund_code=fund_code,
        fund_name=fund_name,
        fund_type=fund_type,
        last_nav=nav_data["nav"],
        nav_date=nav_data["nav_date"],
    )

    # Empty holdings are kept: the fund is still tracked, its estimates just
    # report zero coverage.
    holdings = market_data_service.get_latest_holdings(fund_code)
    if holdings:
        await fund_info_service.replace_holdings(db, fund_code, holdings)
    else:
        logger.warning(f"No holdings disclosed for {fund_code}")

    return {
        "status": "created",
        "fund_code": fund_code,
        "fund_name": fund_name,
        "nav": nav_data["nav"],
        "holdings_count": len(holdings),
        "report_date": holdings[0].report_date if holdings else None,
    }


@router.get("/{fund_code}", response_model=FundResponse)
async def get_fund(fund_code: str, db: AsyncSession = Depends(get_db)):
    fund = await fund_info_service.get_fund(db, fund_code)
    if fund is None:
        raise HTTPException(status_code=404, detail="Fund not found")
    return FundResponse(
        fund_code=fund.fund_code,
        fund_name=fund.fund_name,
        fund_type=fund.fund_type,
        last_nav=fund.last_nav,
        nav_date=fund.nav_date,
    )


@router.delete("/{fund_code}")
async def remove_fund(fund_code: str, db: AsyncSession = Depends(get_db)):
    if not await fund_info_service.remove_fund(db, fund_code):
        raise HTTPException(status_code=404, detail="Fund not found")
    return {"status": "removed", "fund_code": fund_code}


@router.get("/{fund_code}/holdings", response_model=list[HoldingResponse])
async def get_holdings(fund_code: str, db: AsyncSession = Depends(get_db)):
    holdings = await fund_info_service.get_holdings(db, fund_code)
    return [
        HoldingResponse(
            stock_code=h.stock_code,
            stock_name=h.stock_name,
            holding_ratio=h.holding_ratio,
            shares=h.shares,
            report_date=h.report_date,
        )
        for h in holdings
    ]


@router.post("/{fund_code}/refresh-nav")
async def refresh_nav(fund_code: str, db: AsyncSession = Depends(get_db)):
    """Manually trigger NAV refresh from data source."""
    fund = await fund_info_service.get_fund(db, fund_code)
    if fund is None:
        raise HTTPException(status_code=404, detail="Fund not found")

    nav_data = market_data_service.get_fund_nav(fund_code)
    if nav_data is None:
        raise HTTPException(status_code=503, detail="NAV data source unavailable")

    await fund_info_service.update_nav(db, fund_code, nav_data["nav"], nav_data["nav_date"])
    return {"fund_code": fund_code, "nav": nav_data["nav"], "nav_date": nav_data["nav_date"]}
