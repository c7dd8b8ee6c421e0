"""
Tests for summary, warning and opportunity generation.
"""

from datetime import timedelta

from rugplay_analyzer.analysis.report import (
    analyze_trading_opportunities, generate_opportunities, generate_summary, generate_warnings
)
from rugplay_analyzer.models.core import FactorScore, FactorScores, Recommendation, RiskLevel

from builders import NOW, make_coin, make_holders


def _score(value, signals=()):
    return FactorScore(score=value, reasoning="", signals=tuple(signals))


class TestSummary:
    """Test the summary block."""

    def test_summary_format(self):
        coin = make_coin(
            name="Moon", symbol="MOON", current_price=0.0123456789,
            market_cap=12345.678, volume_24h=99.999
        )
        summary = generate_summary(Recommendation.HOLD, RiskLevel.MEDIUM, 82.25, coin)

        assert summary == (
            "Analysis Summary for Moon (MOON):\n"
            "\n"
            "• Risk Level: MEDIUM\n"
            "• Confidence: 82.2%\n"
            "• Current Price: $0.012346\n"
            "• Market Cap: $12345.68\n"
            "• 24h Volume: $100.00\n"
            "\n"
            "Moderate risk. Use standard risk management practices.\n"
            "\n"
            "Hold position. Current conditions suggest maintaining existing positions."
        )


class TestWarnings:
    """Test warning generation."""

    def test_factor_signals_come_first(self):
        coin = make_coin(created_at=(NOW - timedelta(days=90)).isoformat())
        warnings = generate_warnings(
            coin,
            make_holders([10] * 10, total_holders=500),
            _score(20, ["Low liquidity pool - moderate slippage risk"]),
            _score(30, ["Limited holder base"]),
            NOW
        )
        assert warnings == [
            "Low liquidity pool - moderate slippage risk",
            "Limited holder base",
        ]

    def test_new_illiquid_coin_with_few_holders(self):
        coin = make_coin(
            created_at=(NOW - timedelta(days=3)).isoformat(),
            market_cap=100000.0,
            volume_24h=10.0
        )
        warnings = generate_warnings(coin, make_holders([50, 50]), _score(50), _score(50), NOW)

        assert "Extremely new coin - high probability of volatility and potential scam" in warnings
        assert "Very low trading volume relative to market cap" in warnings
        assert "Very limited holder base increases manipulation risk" in warnings


class TestOpportunities:
    """Test opportunity generation."""

    def test_all_opportunities(self):
        coin = make_coin(change_24h=-30.0, market_cap=1000.0, volume_24h=500.0)
        opportunities = generate_opportunities(coin, _score(70), _score(65))

        assert opportunities == [
            "Technical indicators suggest potential upward momentum",
            "Strong fundamentals provide good long-term potential",
            "Recent price decline may present buying opportunity if fundamentals remain strong",
            "High trading activity indicates strong market interest",
        ]

    def test_none(self):
        coin = make_coin(change_24h=0.0, market_cap=0.0)
        assert generate_opportunities(coin, _score(40), _score(40)) == []


class TestTradingOpportunities:
    """Test short, mid and long term potentials."""

    def _factors(self, technical, liquidity, concentration):
        return FactorScores(
            technical=_score(technical),
            fundamental=_score(50),
            sentiment=_score(50),
            liquidity=_score(liquidity),
            concentration=_score(concentration)
        )

    def test_strong_setup(self):
        result = analyze_trading_opportunities(self._factors(70, 60, 50))

        assert result.short_term.potential == 95
        assert result.mid_term.potential == 60
        assert result.long_term.potential == 50

    def test_weak_setup(self):
        result = analyze_trading_opportunities(self._factors(30, 10, 5))

        assert result.short_term.potential == 30
        assert result.short_term.reasoning == ("Very low liquidity - high exit risk",)
        assert result.mid_term.potential == 10
        assert result.long_term.potential == 10
        assert result.long_term.reasoning == ("Long-term holding very risky in current market",)
