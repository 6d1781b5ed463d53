"""Registry of tracked funds and their disclosed holdings."""

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fund_valuation.models.fund import Fund, FundHolding
from fund_valuation.services.valuation_types import FundHolding as HoldingValue


class FundInfoService:
    """Manages fund metadata and holdings in the database."""

    async def add_fund(
        self,
        session: AsyncSession,
        fund_code: str,
        fund_name: str,
        fund_type: str,
        last_nav: float | None = None,
        nav_date: str | None = None,
    ) -> Fund:
        fund = Fund(
            fund_code=fund_code,
            fund_name=fund_name,
            fund_type=fund_type,
            last_nav=last_nav,
            nav_date=nav_date,
        )
        session.add(fund)
        await session.commit()
        return fund

    async def get_fund(self, session: AsyncSession, fund_code: str) -> Fund | None:
        return await session.get(Fund, fund_code)

    async def get_all_funds(self, session: AsyncSession) -> list[Fund]:
        result = await session.execute(select(Fund).order_by(Fund.fund_code))
        return list(result.scalars().all())

    async def remove_fund(self, session: AsyncSession, fund_code: str) -> bool:
        """Stop tracking a fund. Returns False when it was not tracked."""
        fund = await session.get(Fund, fund_code)
        if fund is None:
            return False
        await session.execute(delete(FundHolding).where(FundHolding.fund_code == fund_code))
        await session.delete(fund)
        await session.commit()
        return True

    async def update_nav(
        self, session: AsyncSession, fund_code: str, nav: float, nav_date: str
    ) -> None:
        fund = await session.get(Fund, fund_code)
        if fund:
            fund.last_nav = nav
            fund.nav_date = nav_date
            await session.commit()

    async def replace_holdings(
        self,
        session: AsyncSession,
        fund_code: str,
        holdings: list[HoldingValue],
    ) -> None:
        """Replace a fund's stored holdings with a newer disclosure."""
        await session.execute(
            delete(FundHolding).where(FundHolding.fund_code == fund_code)
        )
        for h in holdings:
            session.add(
                FundHolding(
                    fund_code=fund_code,
                    stock_code=h.stock_code,
                    stock_name=h.stock_name,
                    holding_ratio=h.ratio,
                    shares=h.shares,
                    report_date=h.report_date,
                )
            )
        await session.commit()

    async def get_holdings(
        self, session: AsyncSession, fund_code: str
    ) -> list[FundHolding]:
        result = await session.execute(
            select(FundHolding)
            .where(FundHolding.fund_code == fund_code)
            .order_by(FundHolding.id)
        )
        return list(result.scalars().all())


fund_info_service = FundInfoService()
