"""
Vega - volatility-adaptive entries and exits.
"""
from neuronet.strategies.base import BaseStrategy, StrategySignal, hold

WINDOW = 5
HIGH_VOLATILITY = 0.02
EXTREME_VOLATILITY = 0.035


class VegaStrategy(BaseStrategy):
    """Scales profit and stop thresholds to a rolling range estimate."""

    name = "Vega"
    description = "Volatility-based trading"

    def decide(self, candle, prev_candle, state, history) -> StrategySignal:
        if prev_candle is None or len(history) < WINDOW:
            return hold("Insufficient data for volatility analysis")

        recent = history[-WINDOW:]
        volatility = sum(c.range_pct for c in recent) / len(recent)
        is_high_volatility = volatility > HIGH_VOLATILITY
        price_change = (candle.close - prev_candle.close) / prev_candle.close

        if state.position is None:
            if is_high_volatility and price_change < -0.015:
                return StrategySignal(
                    action="BUY",
                    confidence=0.7,
                    reason=(
                        f"Volatility dip buy: {volatility * 100:.2f}% avg volatility, "
                        "catching reversal"
                    ),
                )
            if not is_high_volatility and price_change > 0.008:
                return StrategySignal(
                    action="BUY",
                    confidence=0.65,
                    reason="Low volatility breakout: stable conditions with upward momentum",
                )
        else:
            pnl = self.position_pnl(candle, state)
            target = 0.025 if is_high_volatility else 0.015
            stop = -0.03 if is_high_volatility else -0.015

            if pnl >= target:
                return StrategySignal(
                    action="SELL",
                    confidence=0.8,
                    reason=f"Volatility-adjusted take profit: +{pnl * 100:.2f}%",
                )
            if pnl <= stop or (is_high_volatility and pnl < 0 and volatility > EXTREME_VOLATILITY):
                return StrategySignal(
                    action="SELL",
                    confidence=0.85,
                    reason=(
                        f"Risk exit: {pnl * 100:.2f}% with "
                        f"{volatility * 100:.2f}% volatility"
                    ),
                )

        return hold("Monitoring volatility conditions")
