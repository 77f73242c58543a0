"""
Arbiter - z-score statistical arbitrage.
"""
import numpy as np

from neuronet.strategies.base import BaseStrategy, StrategySignal, hold

WINDOW = 15
ENTRY_Z = -1.5
EXIT_Z = 0.5
OUTLIER_Z = -2.5


class ArbiterStrategy(BaseStrategy):
    """Trades reversion from extremes of a rolling mean/std band."""

    name = "Arbiter"
    description = "Statistical arbitrage (z-score)"

    def decide(self, candle, prev_candle, state, history) -> StrategySignal:
        if prev_candle is None or len(history) < WINDOW:
            return hold("Analyzing market structure")

        prices = np.array([c.close for c in history[-WINDOW:]])
        std = float(prices.std())
        if std == 0:
            return hold("Flat price window, no dispersion to trade")
        z_score = (candle.close - float(prices.mean())) / std

        if state.position is None:
            if z_score < ENTRY_Z:
                return StrategySignal(
                    action="BUY",
                    confidence=0.75,
                    reason=(
                        f"Statistical arbitrage: price {z_score:.2f}σ below mean, "
                        "expecting reversion"
                    ),
                )
        else:
            pnl = self.position_pnl(candle, state)
            if z_score > EXIT_Z or pnl >= 0.025:
                return StrategySignal(
                    action="SELL",
                    confidence=0.8,
                    reason=(
                        f"Mean reversion target: price at {z_score:.2f}σ, "
                        f"+{pnl * 100:.2f}% P&L"
                    ),
                )
            if z_score < OUTLIER_Z or pnl <= -0.03:
                return StrategySignal(
                    action="SELL",
                    confidence=0.85,
                    reason=(
                        f"Outlier exit: {z_score:.2f}σ extreme, "
                        f"cutting losses at {pnl * 100:.2f}%"
                    ),
                )

        return hold("Within statistical bounds")
