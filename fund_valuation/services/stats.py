"""Cross-fund statistics and side-by-side comparison over estimates."""

from dataclasses import dataclass, field
from typing import Any

from fund_valuation.services.formatter import classify_change, trend_icon
from fund_valuation.services.valuation_types import ValuationResult


@dataclass
class TypeStats:
    count: int = 0
    avg_change_pct: float = 0.0


@dataclass
class PortfolioStats:
    fund_count: int
    avg_change_pct: float
    up_count: int
    down_count: int
    flat_count: int
    reliable_count: int
    by_type: dict[str, TypeStats] = field(default_factory=dict)


def summarize(
    results: list[ValuationResult], fund_types: dict[str, str] | None = None
) -> PortfolioStats:
    """Aggregate estimates of several funds.

    Funds are weighted equally; fund_types maps fund_code -> type label and
    unknown codes are grouped under "其他".
    """
    fund_types = fund_types or {}
    trends = [classify_change(r.estimated_change_percent) for r in results]

    by_type: dict[str, TypeStats] = {}
    for r in results:
        stats = by_type.setdefault(fund_types.get(r.fund_code) or "其他", TypeStats())
        stats.count += 1
        stats.avg_change_pct += r.estimated_change_percent
    for stats in by_type.values():
        stats.avg_change_pct = round(stats.avg_change_pct / stats.count, 2)

    total_change = sum(r.estimated_change_percent for r in results)
    return PortfolioStats(
        fund_count=len(results),
        avg_change_pct=round(total_change / len(results), 2) if results else 0.0,
        up_count=trends.count("positive"),
        down_count=trends.count("negative"),
        flat_count=trends.count("neutral"),
        reliable_count=sum(1 for r in results if r.data_quality.is_reliable),
        by_type=by_type,
    )


def compare(results: list[ValuationResult]) -> list[dict[str, Any]]:
    """One row per fund, in the given order."""
    rows = []
    for r in results:
        pct = r.estimated_change_percent
        rows.append(
            {
                "fund_code": r.fund_code,
                "fund_name": r.fund_name,
                "last_nav": r.last_nav,
                "estimated_nav": r.estimated_nav,
                "estimated_change_percent": pct,
                "change_label": f"{'+' if pct > 0 else ''}{pct:.2f}%",
                "coverage": r.data_quality.coverage,
                "is_reliable": r.data_quality.is_reliable,
                "trend": classify_change(pct),
                "icon": trend_icon(pct),
            }
        )
    return rows
