"""Integration test: full flow from fund setup to estimate, report and stats."""

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fund_valuation.main import app
from fund_valuation.models.database import create_tables, get_db, make_session_factory
from fund_valuation.services import market_data
from fund_valuation.services.cache import quote_cache


@pytest_asyncio.fixture
async def db_session():
    engine, session_factory = make_session_factory("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    quote_cache.clear()
    market_data._fund_name_cache.clear()
    yield
    app.dependency_overrides.clear()
    quote_cache.clear()
    market_data._fund_name_cache.clear()
    await engine.dispose()


@pytest.mark.asyncio
async def test_full_flow(db_session):
    """Test: setup fund -> estimate -> report -> stats, with upstream sources mocked."""
    mock_nav_df = pd.DataFrame(
        {
            "净值日期": ["2026-02-13"],
            "单位净值": [1.5],
            "累计净值": [3.0],
        }
    )
    mock_holdings_df = pd.DataFrame(
        {
            "股票代码": ["600519", "000858", "00700"],
            "股票名称": ["贵州茅台", "五粮液", "腾讯控股"],
            "占净值比例": [30.0, 25.0, 5.0],
            "持股数": [10.0, 50.0, 8.0],
            "季度": ["2025年4季度股票投资明细"] * 3,
        }
    )
    mock_names_df = pd.DataFrame(
        {"基金代码": ["000001"], "基金简称": ["华夏成长混合"], "基金类型": ["混合型"]}
    )
    quote_resp = MagicMock()
    quote_resp.json.return_value = {
        "rc": 0,
        "data": {
            "diff": [
                {"f2": 1800.0, "f3": 2.0, "f4": 35.3, "f12": "600519", "f14": "贵州茅台", "f17": 1770.0, "f18": 1764.7},
                {"f2": 150.0, "f3": -1.0, "f4": -1.5, "f12": "000858", "f14": "五粮液", "f17": 151.0, "f18": 151.5},
            ]
        },
    }

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        # 1. Setup fund
        with (
            patch(
                "fund_valuation.services.market_data.ak.fund_open_fund_info_em",
                return_value=mock_nav_df,
            ),
            patch(
                "fund_valuation.services.market_data.ak.fund_portfolio_hold_em",
                return_value=mock_holdings_df,
            ),
            patch(
                "fund_valuation.services.market_data.ak.fund_name_em",
                return_value=mock_names_df,
            ),
        ):
            resp = await client.post("/api/fund/setup/000001")
            assert resp.status_code == 200
            data = resp.json()
            assert data["status"] == "created"
            assert data["fund_name"] == "华夏成长混合"
            assert data["holdings_count"] == 3

        # 2. Estimate; the HK holding has no quote and stays flat
        with (
            patch("fund_valuation.services.market_data.httpx.get", return_value=quote_resp),
            patch(
                "fund_valuation.services.valuation.market_data_service.is_market_trading_today",
                return_value=True,
            ),
        ):
            resp = await client.get("/api/valuation/000001")
            assert resp.status_code == 200
            data = resp.json()
            assert data["estimated_change_percent"] == 0.35
            assert data["estimated_nav"] == pytest.approx(1.50525, abs=1e-4)
            assert data["data_quality"]["coverage"] == 55.0
            assert data["data_quality"]["is_reliable"] is True
            assert [h["code"] for h in data["holdings"]] == ["600519", "00700", "000858"]

            # 3. Report uses the cached quotes
            resp = await client.get("/api/valuation/000001/report")
            assert "| 00700 | 腾讯控股 | 5.00% | 0.00 | +0.00% | +0.000% |" in resp.text

            # 4. Stats
            resp = await client.get("/api/stats")
            assert resp.json()["fund_count"] == 1
            assert resp.json()["by_type"]["混合型"]["count"] == 1
