"""
Atlas - short-window momentum and mean reversion.
"""
from neuronet.strategies.base import BaseStrategy, StrategySignal, hold

TAKE_PROFIT = 0.03
STOP_LOSS = -0.02
LOOKBACK = 10


class AtlasStrategy(BaseStrategy):
    """Buys volume-backed momentum or deep dips, exits on fixed targets."""

    name = "Atlas"
    description = "Momentum & mean reversion strategy"

    def decide(self, candle, prev_candle, state, history) -> StrategySignal:
        if prev_candle is None:
            return hold("Gathering initial data")

        price_change = (candle.close - prev_candle.close) / prev_candle.close
        volume_change = (
            (candle.volume - prev_candle.volume) / prev_candle.volume
            if prev_candle.volume > 0
            else 0.0
        )

        avg_price = self.mean_close(history, LOOKBACK)
        deviation = (candle.close - avg_price) / avg_price

        if state.position is None:
            if price_change > 0.005 and volume_change > 0.1 and deviation > -0.02:
                return StrategySignal(
                    action="BUY",
                    confidence=min(0.9, 0.6 + abs(price_change) * 5),
                    reason=(
                        f"Momentum accumulation detected: +{price_change * 100:.2f}% "
                        f"with {volume_change * 100:.0f}% volume surge"
                    ),
                )
            if deviation < -0.03 and volume_change > 0.15:
                return StrategySignal(
                    action="BUY",
                    confidence=0.75,
                    reason=(
                        f"Mean reversion opportunity: price {deviation * 100:.1f}% "
                        f"below {LOOKBACK}-period average"
                    ),
                )
        else:
            pnl = self.position_pnl(candle, state)
            if pnl >= TAKE_PROFIT:
                return StrategySignal(
                    action="SELL",
                    confidence=0.85,
                    reason=f"Target profit reached: +{pnl * 100:.2f}% gain",
                )
            if pnl <= STOP_LOSS:
                return StrategySignal(
                    action="SELL",
                    confidence=0.9,
                    reason=f"Stop loss triggered: {pnl * 100:.2f}% loss",
                )

        return hold("No clear signal")
