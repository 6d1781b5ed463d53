"""Cross-fund statistics API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fund_valuation.api.schemas import CompareRow, StatsResponse
from fund_valuation.models.database import get_db
from fund_valuation.services.stats import compare, summarize
from fund_valuation.services.valuation import valuation_service

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.get("", response_model=StatsResponse)
async def get_stats(db: AsyncSession = Depends(get_db)):
    """Summary of today's estimates over all tracked funds."""
    estimates = await valuation_service.estimate_all(db)
    fund_types = {fund.fund_code: fund.fund_type for fund, _ in estimates}
    stats = summarize([result for _, result in estimates], fund_types)
    return StatsResponse.from_stats(stats)


@router.get("/compare", response_model=list[CompareRow])
async def compare_funds(
    codes: str = Query(..., description="Comma separated fund codes"),
    db: AsyncSession = Depends(get_db),
):
    wanted = [c.strip() for c in codes.split(",") if c.strip()]
    if not wanted:
        raise HTTPException(status_code=400, detail="No fund codes given")

    estimates = await valuation_service.estimate_all(db, wanted)
    by_code = {fund.fund_code: result for fund, result in estimates}
    missing = [c for c in wanted if c not in by_code]
    if missing:
        raise HTTPException(
            status_code=404, detail=f"Funds not tracked or without NAV: {', '.join(missing)}"
        )
    return [CompareRow(**row) for row in compare([by_code[c] for c in dict.fromkeys(wanted)])]
