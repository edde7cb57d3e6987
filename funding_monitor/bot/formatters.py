"""Formatters for Telegram report messages."""

from datetime import datetime
from html import escape
from typing import List, Optional

from funding_monitor.models import (
    ArbitrageReport,
    CrossExchangeOpportunity,
    SingleLegOpportunity,
)
from funding_monitor.services.arbitrage_analyzer import normalize_symbol


class ReportFormatter:
    """Format arbitrage reports as Telegram HTML messages."""
    
    # Emoji constants
    EMOJI_UP = "🔺"
    EMOJI_DOWN = "🔻"
    EMOJI_MONEY = "💰"
    EMOJI_CHART = "📊"
    
    def __init__(
        self,
        min_positive_apr: float,
        min_negative_apr: float,
        fee_percent: float,
    ):
        self.min_positive_apr = min_positive_apr
        self.min_negative_apr = min_negative_apr
        self.fee_percent = fee_percent
    
    @staticmethod
    def format_percent(value: float, decimals: int = 2) -> str:
        return f"{value:+.{decimals}f}%"
    
    @classmethod
    def format_single_leg_row(cls, opp: SingleLegOpportunity) -> str:
        """Format one single-leg opportunity as a fixed-width line."""
        columns = (
            f"{opp.exchange:<8} "
            f"{normalize_symbol(opp.symbol):<8} "
            f"{cls.format_percent(opp.apr):>9} "
            f"{cls.format_percent(opp.single_cycle_net_percent, 4):>9} "
            f"{cls.format_percent(opp.daily_net_percent, 4):>9}"
        )
        return f"<code>{escape(columns)}</code> {escape(opp.interval_label)}"
    
    @classmethod
    def _format_section(
        cls,
        title: str,
        opportunities: List[SingleLegOpportunity],
        empty_text: str,
    ) -> List[str]:
        lines = [f"<b>{escape(title)}</b>"]
        if not opportunities:
            lines.append(empty_text)
            return lines
        
        header = f"{'Exchange':<8} {'Symbol':<8} {'APR':>9} {'Net/cyc':>9} {'Net/day':>9}"
        lines.append(f"<code>{escape(header)}</code> Interval")
        lines.extend(cls.format_single_leg_row(opp) for opp in opportunities)
        return lines
    
    def format_single_leg(
        self,
        report: ArbitrageReport,
        now: Optional[datetime] = None,
    ) -> str:
        """Format the single-leg report; empty sections get a placeholder."""
        now = now or datetime.utcnow()
        
        lines = [
            f"{self.EMOJI_CHART} <b>Funding Rate Update</b> ({now:%Y-%m-%d %H:%M:%S} UTC)",
            "",
        ]
        lines.extend(self._format_section(
            f"{self.EMOJI_UP} Positive opportunities (APR ≥ {self.min_positive_apr:g}%)",
            report.positive,
            "No positive opportunities",
        ))
        lines.append("")
        lines.extend(self._format_section(
            f"{self.EMOJI_DOWN} Negative opportunities (APR ≤ {self.min_negative_apr:g}%)",
            report.negative,
            "No negative opportunities",
        ))
        
        return "\n".join(lines)
    
    @classmethod
    def format_cross_exchange_row(cls, opp: CrossExchangeOpportunity) -> str:
        return (
            f"<b>{escape(opp.normalized_symbol)}</b>: "
            f"Long {escape(opp.long_exchange)} <code>{opp.long_rate * 100:+.4f}%</code> / "
            f"Short {escape(opp.short_exchange)} <code>{opp.short_rate * 100:+.4f}%</code>\n"
            f"   Spread <code>{opp.rate_diff_percent:.4f}%</code> | "
            f"Net <code>{opp.net_profit_percent:.4f}%</code>"
        )
    
    def format_cross_exchange(
        self,
        report: ArbitrageReport,
        now: Optional[datetime] = None,
    ) -> Optional[str]:
        """
        Format the cross-exchange report.
        
        Returns:
            Message text, or None when there are no opportunities
        """
        if not report.cross_exchange:
            return None
        
        now = now or datetime.utcnow()
        lines = [
            f"{self.EMOJI_MONEY} <b>Cross-Exchange Arbitrage</b> ({now:%Y-%m-%d %H:%M:%S} UTC)",
            f"Fee {self.fee_percent:g}% per leg, {2 * self.fee_percent:g}% round trip",
            "",
        ]
        lines.extend(self.format_cross_exchange_row(opp) for opp in report.cross_exchange)
        return "\n".join(lines)
