"""Tests for statistics API endpoints."""

from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fund_valuation.main import app
from fund_valuation.models.database import create_tables, get_db, make_session_factory
from fund_valuation.models.fund import Fund, FundHolding
from fund_valuation.services.cache import quote_cache
from fund_valuation.services.valuation_types import StockQuote

QUOTES = [
    StockQuote("600519", 1800.0, 35.3, 2.0, 1764.7, 1770.0),
    StockQuote("000858", 150.0, -1.5, -1.0, 151.5, 151.0),
]


@pytest_asyncio.fixture
async def client():
    engine, session_factory = make_session_factory("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    quote_cache.clear()

    async with session_factory() as session:
        session.add_all(
            [
                Fund(fund_code="000001", fund_name="华夏成长", fund_type="混合型", last_nav=1.5),
                Fund(fund_code="110022", fund_name="易方达消费", fund_type="股票型", last_nav=2.0),
                FundHolding(fund_code="000001", stock_code="600519", stock_name="贵州茅台",
                            holding_ratio=60.0, report_date="2025年4季度"),
                FundHolding(fund_code="110022", stock_code="000858", stock_name="五粮液",
                            holding_ratio=20.0, report_date="2025年4季度"),
            ]
        )
        await session.commit()

    with patch(
        "fund_valuation.services.valuation.market_data_service.get_quotes",
        return_value=QUOTES,
    ), patch(
        "fund_valuation.services.valuation.market_data_service.is_market_trading_today",
        return_value=True,
    ):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    app.dependency_overrides.clear()
    quote_cache.clear()
    await engine.dispose()


@pytest.mark.asyncio
async def test_stats(client):
    resp = await client.get("/api/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["fund_count"] == 2
    assert data["up_count"] == 1
    assert data["down_count"] == 1
    assert data["reliable_count"] == 1
    assert data["avg_change_pct"] == pytest.approx(0.5)
    assert data["by_type"]["股票型"] == {"count": 1, "avg_change_pct": -0.2}


@pytest.mark.asyncio
async def test_compare(client):
    resp = await client.get("/api/stats/compare", params={"codes": "110022,000001"})
    assert resp.status_code == 200
    rows = resp.json()
    assert [r["fund_code"] for r in rows] == ["110022", "000001"]
    assert rows[0]["change_label"] == "-0.20%"
    assert rows[1]["trend"] == "positive"


@pytest.mark.asyncio
async def test_compare_unknown_fund(client):
    resp = await client.get("/api/stats/compare", params={"codes": "000001,999999"})
    assert resp.status_code == 404
    assert "999999" in resp.json()["detail"]


@pytest.mark.asyncio
async def test_compare_blank_codes(client):
    resp = await client.get("/api/stats/compare", params={"codes": " , "})
    assert resp.status_code == 400
