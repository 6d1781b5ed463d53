"""Text report rendering for valuation results."""

from datetime import datetime
from typing import Literal
from zoneinfo import ZoneInfo

from fund_valuation.config import DISPLAY_TIMEZONE, REPORT_TOP_N
from fund_valuation.services.valuation_types import ValuationResult

Trend = Literal["positive", "negative", "neutral"]

DISCLAIMER = "*说明: 估算净值基于最新持仓数据和实时股价计算，实际净值以基金公司公告为准。*"


def classify_change(change_pct: float) -> Trend:
    if change_pct > 0:
        return "positive"
    if change_pct < 0:
        return "negative"
    return "neutral"


_TREND_ICONS = {"positive": "📈", "negative": "📉", "neutral": "➡️"}


def trend_icon(change_pct: float) -> str:
    return _TREND_ICONS[classify_change(change_pct)]


def _signed(value: float, digits: int) -> str:
    # Adding 0.0 turns a rounded -0.0 into 0.0
    value = round(value, digits) + 0.0
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{digits}f}"


def format_display_time(iso_time: str, tz: str = DISPLAY_TIMEZONE) -> str:
    """Render an ISO timestamp as zh-CN local time, e.g. 2026/2/14 14:30:00."""
    moment = datetime.fromisoformat(iso_time.replace("Z", "+00:00"))
    if moment.tzinfo is not None:
        moment = moment.astimezone(ZoneInfo(tz))
    return f"{moment.year}/{moment.month}/{moment.day} {moment:%H:%M:%S}"


def format_report(result: ValuationResult, top_n: int = REPORT_TOP_N) -> str:
    """Render a markdown report of an estimate.

    Low-coverage estimates are rendered like any other, with an explicit
    unreliable label.
    """
    quality = result.data_quality
    lines = [
        f"## {result.fund_name} ({result.fund_code}) 实时估值",
        "",
        f"**昨日净值**: {result.last_nav:.4f} 元",
        f"**估算净值**: {result.estimated_nav:.4f} 元",
        f"**估算涨跌**: {_signed(result.estimated_change, 4)} 元 "
        f"({_signed(result.estimated_change_percent, 2)}%) {trend_icon(result.estimated_change_percent)}",
        "",
        f"**计算时间**: {format_display_time(result.calculation_time)}",
        "",
        "### 数据质量",
        f"- 持仓覆盖率: {quality.coverage:.2f}%",
        f"- 可靠性: {'✅ 可靠' if quality.is_reliable else '⚠️ 数据不足'}",
        "",
        f"### 前 {top_n} 大持仓贡献",
        "",
        "| 股票代码 | 股票名称 | 持仓比例 | 当前价 | 涨跌幅 | 贡献 |",
        "| --- | --- | --- | --- | --- | --- |",
    ]

    for h in result.holdings[:top_n]:
        lines.append(
            f"| {h.code} | {h.name} | {h.ratio:.2f}% | {h.current_price:.2f} "
            f"| {_signed(h.change_percent, 2)}% | {_signed(h.contribution, 3)}% |"
        )

    lines.append("")
    lines.append(DISCLAIMER)
    return "\n".join(lines)
