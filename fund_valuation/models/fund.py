"""Tracked fund and disclosed holding models."""

from datetime import datetime

from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from fund_valuation.models.database import Base
from fund_valuation.services.valuation_types import FundHolding as HoldingValue


class Fund(Base):
    __tablename__ = "fund"

    fund_code: Mapped[str] = mapped_column(String(10), primary_key=True)
    fund_name: Mapped[str] = mapped_column(String(100))
    fund_type: Mapped[str] = mapped_column(String(20))
    last_nav: Mapped[float | None] = mapped_column(Float, nullable=True)
    nav_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    updated_at: Mapped[str] = mapped_column(
        String(30), default=lambda: datetime.now().isoformat()
    )


class FundHolding(Base):
    __tablename__ = "fund_holding"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    fund_code: Mapped[str] = mapped_column(String(10), index=True)
    stock_code: Mapped[str] = mapped_column(String(10))
    stock_name: Mapped[str] = mapped_column(String(50))
    holding_ratio: Mapped[float] = mapped_column(Float)  # percent of NAV
    shares: Mapped[float | None] = mapped_column(Float, nullable=True)  # 万股
    report_date: Mapped[str] = mapped_column(String(30))
    updated_at: Mapped[str] = mapped_column(
        String(30), default=lambda: datetime.now().isoformat()
    )

    def to_value(self) -> HoldingValue:
        return HoldingValue(
            stock_code=self.stock_code,
            stock_name=self.stock_name,
            ratio=self.holding_ratio,
            report_date=self.report_date,
            shares=self.shares,
        )
