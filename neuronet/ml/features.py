"""Feature extraction from agent memory, credit history and market data."""
from __future__ import annotations

import time
from typing import Optional, Sequence

from neuronet.models import CreditTransaction, FeatureVector, MarketData, MemoryEntry

NEUTRAL = 50.0


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return min(high, max(low, value))


def relative_volatility(current: Optional[float], previous: Optional[float]) -> float:
    if not current or not previous:
        return 0.0
    return abs((current - previous) / previous) * 100


def percent_change(current: Optional[float], previous: Optional[float]) -> float:
    if not current or not previous:
        return 0.0
    return (current - previous) / previous * 100


class FeatureExtractor:
    """
    Builds the 7-dimension ``FeatureVector`` used by clustering and prediction.

    Missing market inputs never fail extraction; each dimension falls back to
    0 (deltas) or the neutral 50 (scores).
    """

    def __init__(self, transaction_window: int = 100, sentiment_window: int = 50) -> None:
        self.transaction_window = transaction_window
        self.sentiment_window = sentiment_window

    def extract(
        self,
        memory_entries: Sequence[MemoryEntry],
        credit_transactions: Sequence[CreditTransaction],
        market_data: Optional[MarketData] = None,
        timestamp: Optional[int] = None,
    ) -> FeatureVector:
        market = market_data or MarketData()
        return FeatureVector(
            price_volatility=relative_volatility(market.price, market.previous_price),
            tvl_change=percent_change(market.tvl, market.previous_tvl),
            gas_price=market.gas_price or NEUTRAL,
            agent_performance=self.agent_performance(credit_transactions),
            market_sentiment=self.market_sentiment(memory_entries),
            liquidity_depth=self.liquidity_depth(market.tvl, market.volume),
            volume_change=percent_change(market.volume, market.previous_volume),
            timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
        )

    def agent_performance(self, transactions: Sequence[CreditTransaction]) -> float:
        """Share of positive credit magnitude over the trailing window, in percent."""
        recent = transactions[-self.transaction_window:]
        positive = sum(t.amount for t in recent if t.amount > 0)
        negative = -sum(t.amount for t in recent if t.amount < 0)
        total = positive + negative
        if total == 0:
            return NEUTRAL
        return _clamp(positive / total * 100)

    def market_sentiment(self, entries: Sequence[MemoryEntry]) -> float:
        score = NEUTRAL
        for entry in entries[-self.sentiment_window:]:
            if entry.strategy_type == "successful":
                score += 2
            elif entry.strategy_type in ("blocked", "high-risk"):
                score -= 2
        return _clamp(score)

    @staticmethod
    def liquidity_depth(tvl: Optional[float], volume: Optional[float]) -> float:
        if not tvl or not volume:
            return NEUTRAL
        return _clamp(100 - volume / tvl * 100)
