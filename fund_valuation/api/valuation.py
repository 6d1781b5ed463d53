"""Valuation API routes."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from fund_valuation.api.schemas import CalculateRequest, ValuationResponse
from fund_valuation.models.database import get_db
from fund_valuation.services.estimator import fund_estimator
from fund_valuation.services.formatter import format_report
from fund_valuation.services.valuation import (
    FundNotTracked,
    NavUnavailable,
    valuation_service,
)
from fund_valuation.services.valuation_types import ValuationResult

router = APIRouter(prefix="/api/valuation", tags=["valuation"])


async def _estimate(db: AsyncSession, fund_code: str) -> ValuationResult:
    try:
        return await valuation_service.estimate_fund(db, fund_code)
    except FundNotTracked:
        raise HTTPException(status_code=404, detail="Fund not found")
    except NavUnavailable:
        raise HTTPException(status_code=400, detail="Fund NAV not available")


@router.post("/calculate", response_model=ValuationResponse)
async def calculate(req: CalculateRequest):
    """Run the estimator on caller-supplied NAV, holdings and quotes."""
    result = fund_estimator.estimate_nav(
        req.fund_code,
        req.fund_name,
        req.last_nav,
        [h.to_value() for h in req.holdings],
        [q.to_value() for q in req.quotes],
    )
    return ValuationResponse.from_result(result)


@router.get("/{fund_code}", response_model=ValuationResponse)
async def get_valuation(fund_code: str, db: AsyncSession = Depends(get_db)):
    """Estimated NAV of a tracked fund.

    Low-coverage estimates are returned too; check data_quality.is_reliable.
    """
    return ValuationResponse.from_result(await _estimate(db, fund_code))


@router.get("/{fund_code}/report", response_class=PlainTextResponse)
async def get_valuation_report(fund_code: str, db: AsyncSession = Depends(get_db)):
    return format_report(await _estimate(db, fund_code))
