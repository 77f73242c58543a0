import numpy as np
import pytest

from neuronet.models import Candle, HistoricalDataPoint


def _candle(
    timestamp: int,
    close: float,
    open_price: float | None = None,
    volume: float = 1000.0,
    spread: float = 0.001,
) -> Candle:
    open_price = close if open_price is None else open_price
    return Candle(
        timestamp=timestamp,
        open=open_price,
        high=max(open_price, close) * (1 + spread),
        low=min(open_price, close) * (1 - spread),
        close=close,
        volume=volume,
    )


def _point(
    timestamp: int,
    price: float,
    volume: float = 1000.0,
    tvl: float = 1_000_000.0,
    volatility: float = 1.0,
) -> HistoricalDataPoint:
    return HistoricalDataPoint(
        timestamp=timestamp,
        price=price,
        volume=volume,
        tvl=tvl,
        gas_price=50.0,
        volatility=volatility,
    )


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def make_candle():
    return _candle


@pytest.fixture
def make_point():
    return _point
