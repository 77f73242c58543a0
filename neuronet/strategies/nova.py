"""
Nova - moving-average crossover trend following.
"""
from neuronet.strategies.base import BaseStrategy, StrategySignal, hold

SHORT_WINDOW = 5
LONG_WINDOW = 20
TREND_THRESHOLD = 0.005


class NovaStrategy(BaseStrategy):
    """Rides 5/20 MA trends; exits on reversal, profit target or stop."""

    name = "Nova"
    description = "Trend following with MA crossovers"

    def decide(self, candle, prev_candle, state, history) -> StrategySignal:
        if prev_candle is None or len(history) < LONG_WINDOW:
            return hold("Building trend analysis window")

        short_ma = self.mean_close(history, SHORT_WINDOW)
        long_ma = self.mean_close(history, LONG_WINDOW)
        trend = (short_ma - long_ma) / long_ma
        is_bullish = trend > TREND_THRESHOLD
        is_bearish = trend < -TREND_THRESHOLD

        if state.position is None:
            if is_bullish and candle.close > short_ma:
                return StrategySignal(
                    action="BUY",
                    confidence=min(0.85, 0.6 + trend * 10),
                    reason=(
                        f"Trend following: {SHORT_WINDOW}MA crossed above "
                        f"{LONG_WINDOW}MA by {trend * 100:.2f}%"
                    ),
                )
        else:
            pnl = self.position_pnl(candle, state)
            if is_bearish or pnl >= 0.04:
                reason = (
                    f"Trend reversal: exiting with {pnl * 100:.2f}% P&L"
                    if is_bearish
                    else f"Trend profit: +{pnl * 100:.2f}% captured"
                )
                return StrategySignal(action="SELL", confidence=0.8, reason=reason)
            if pnl <= -0.025:
                return StrategySignal(
                    action="SELL",
                    confidence=0.9,
                    reason=f"Trend stop: {pnl * 100:.2f}% loss exceeds threshold",
                )

        return hold("Following trend")
