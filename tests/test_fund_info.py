"""Tests for fund info service."""

import pytest
import pytest_asyncio

from fund_valuation.models.database import create_tables, make_session_factory
from fund_valuation.services.fund_info import FundInfoService
from fund_valuation.services.valuation_types import FundHolding


@pytest_asyncio.fixture
async def db_session():
    engine, session_factory = make_session_factory("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def fund_service():
    return FundInfoService()


@pytest.mark.asyncio
async def test_add_fund(db_session, fund_service):
    fund = await fund_service.add_fund(db_session, "000001", "华夏成长", "混合型")
    assert fund.fund_code == "000001"
    assert fund.fund_name == "华夏成长"


@pytest.mark.asyncio
async def test_get_fund_not_found(db_session, fund_service):
    assert await fund_service.get_fund(db_session, "999999") is None


@pytest.mark.asyncio
async def test_get_all_funds_sorted(db_session, fund_service):
    await fund_service.add_fund(db_session, "110022", "易方达消费", "股票型")
    await fund_service.add_fund(db_session, "000001", "华夏成长", "混合型")
    funds = await fund_service.get_all_funds(db_session)
    assert [f.fund_code for f in funds] == ["000001", "110022"]


@pytest.mark.asyncio
async def test_update_nav(db_session, fund_service):
    await fund_service.add_fund(db_session, "000001", "华夏成长", "混合型")
    await fund_service.update_nav(db_session, "000001", 1.234, "2026-02-14")
    fund = await fund_service.get_fund(db_session, "000001")
    assert fund.last_nav == 1.234
    assert fund.nav_date == "2026-02-14"


@pytest.mark.asyncio
async def test_replace_holdings(db_session, fund_service):
    await fund_service.add_fund(db_session, "000001", "华夏成长", "混合型")

    old = [FundHolding("600519", "贵州茅台", 8.9, "2025年3季度")]
    await fund_service.replace_holdings(db_session, "000001", old)

    new = [
        FundHolding("000858", "五粮液", 7.0, "2025年4季度", shares=40.0),
        FundHolding("300750", "宁德时代", 6.1, "2025年4季度"),
    ]
    await fund_service.replace_holdings(db_session, "000001", new)

    rows = await fund_service.get_holdings(db_session, "000001")
    assert [h.stock_code for h in rows] == ["000858", "300750"]
    assert rows[0].holding_ratio == 7.0
    assert rows[0].to_value() == new[0]


@pytest.mark.asyncio
async def test_remove_fund(db_session, fund_service):
    await fund_service.add_fund(db_session, "000001", "华夏成长", "混合型")
    await fund_service.replace_holdings(
        db_session, "000001", [FundHolding("600519", "贵州茅台", 8.9, "2025年4季度")]
    )
    assert await fund_service.remove_fund(db_session, "000001") is True
    assert await fund_service.get_fund(db_session, "000001") is None
    assert await fund_service.get_holdings(db_session, "000001") == []
    assert await fund_service.remove_fund(db_session, "000001") is False
