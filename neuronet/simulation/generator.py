"""
Synthetic market data.

Both series are parameterized random walks, not replays of real market
history. Every draw comes from the injected ``numpy.random.Generator`` so a
seeded generator reproduces the exact same series.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import numpy as np
from loguru import logger

from neuronet.models import INTERVAL_MS, Candle, HistoricalDataPoint

HOUR_MS = 60 * 60 * 1000


def parse_timestamp(value: str | datetime) -> int:
    """Parse an ISO date or datetime into epoch milliseconds (UTC if naive)."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def base_price_for(symbol: str) -> float:
    upper = symbol.upper()
    if "BTC" in upper:
        return 42000.0
    if "ETH" in upper:
        return 2200.0
    return 100.0


class MarketGenerator:
    """Drift/volatility walk producing OHLCV candles and scenario data points."""

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.rng = rng if rng is not None else np.random.default_rng()

    def generate_candles(
        self,
        symbol: str,
        start_ms: int,
        end_ms: int,
        interval: str,
    ) -> list[Candle]:
        """
        Generate candles from ``start_ms`` to ``end_ms`` inclusive.

        Args:
            symbol: Market symbol; picks the base price (BTC, ETH or default)
            start_ms: First candle timestamp (epoch ms)
            end_ms: Last possible candle timestamp (epoch ms)
            interval: One of the supported candle intervals

        Returns:
            Candles in strictly increasing timestamp order
        """
        if interval not in INTERVAL_MS:
            raise ValueError(f"Unsupported interval '{interval}'")
        step = INTERVAL_MS[interval]

        base_price = base_price_for(symbol)
        floor = base_price * 0.5
        price = base_price * (0.9 + self.rng.random() * 0.2)

        candles: list[Candle] = []
        for timestamp in range(start_ms, end_ms + 1, step):
            volatility = 0.005 + self.rng.random() * 0.015
            drift = (self.rng.random() - 0.48) * 0.002

            open_price = price
            change = price * (drift + (self.rng.random() - 0.5) * volatility)
            price = max(price + change, floor)

            high = max(open_price, price) * (1 + self.rng.random() * volatility)
            low = min(open_price, price) * (1 - self.rng.random() * volatility)
            volume = 50000 + self.rng.random() * 200000

            candles.append(
                Candle(
                    timestamp=timestamp,
                    open=round(open_price, 2),
                    high=round(high, 2),
                    low=round(low, 2),
                    close=round(price, 2),
                    volume=float(round(volume)),
                )
            )

        logger.debug(f"Generated {len(candles)} {interval} candles for {symbol}")
        return candles

    def generate_historical_data(
        self,
        start_ms: int,
        end_ms: int,
        step_ms: int = HOUR_MS,
    ) -> list[HistoricalDataPoint]:
        """Generate hourly price, volume, TVL, gas and volatility points."""
        price = 2000 + self.rng.random() * 500
        tvl = 5_000_000 + self.rng.random() * 2_000_000
        volume = 100_000 + self.rng.random() * 50_000

        points: list[HistoricalDataPoint] = []
        for timestamp in range(start_ms, end_ms + 1, step_ms):
            price_drift = (self.rng.random() - 0.5) * 0.02
            price_shock = (self.rng.random() - 0.5) * 0.05
            price = max(price * (1 + price_drift + price_shock), 100.0)

            tvl = tvl * (1 + (self.rng.random() - 0.5) * 0.01)
            volume = volume * (1 + (self.rng.random() - 0.5) * 0.2)

            volatility = abs(price_shock) * 100
            gas_price = 20 + self.rng.random() * 100

            points.append(
                HistoricalDataPoint(
                    timestamp=timestamp,
                    price=round(price, 2),
                    volume=float(round(volume)),
                    tvl=float(round(tvl)),
                    gas_price=float(round(gas_price)),
                    volatility=round(volatility, 2),
                )
            )

        logger.debug(f"Generated {len(points)} historical data points")
        return points
