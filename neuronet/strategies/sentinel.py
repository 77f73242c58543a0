"""
Sentinel - conservative, risk-first entries.
"""
from neuronet.strategies.base import BaseStrategy, StrategySignal, hold

ANOMALY_RANGE = 0.025
ANOMALY_VOLUME_SPIKE = 2.0


class SentinelStrategy(BaseStrategy):
    """
    Enters only calm, volume-confirmed green candles.

    Any range or volume anomaly while in profit closes the position
    immediately, however small the gain.
    """

    name = "Sentinel"
    description = "Conservative risk-first approach"

    def decide(self, candle, prev_candle, state, history) -> StrategySignal:
        if prev_candle is None:
            return hold("Initializing risk analysis")

        price_range = candle.range_pct
        volume_spike = candle.volume / prev_candle.volume if prev_candle.volume > 0 else 1.0
        is_anomaly = price_range > ANOMALY_RANGE or volume_spike > ANOMALY_VOLUME_SPIKE

        if state.position is None:
            if not is_anomaly and candle.close > candle.open and volume_spike > 1.2:
                return StrategySignal(
                    action="BUY",
                    confidence=0.7,
                    reason=(
                        "Safe entry: controlled volatility with "
                        f"{volume_spike * 100 - 100:.0f}% volume increase"
                    ),
                )
        else:
            pnl = self.position_pnl(candle, state)
            if is_anomaly and pnl > 0:
                return StrategySignal(
                    action="SELL",
                    confidence=0.95,
                    reason=f"Risk detected: anomalous activity, securing +{pnl * 100:.2f}% profit",
                )
            if pnl <= -0.015:
                return StrategySignal(
                    action="SELL",
                    confidence=0.95,
                    reason=f"Conservative stop: {pnl * 100:.2f}% exceeds risk tolerance",
                )
            if pnl >= 0.02:
                return StrategySignal(
                    action="SELL",
                    confidence=0.8,
                    reason=f"Safe profit target: +{pnl * 100:.2f}%",
                )

        return hold("Risk levels acceptable", confidence=0.6)
