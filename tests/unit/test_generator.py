from datetime import datetime, timezone

import numpy as np
import pytest

from neuronet.models import INTERVAL_MS
from neuronet.simulation import MarketGenerator, base_price_for, parse_timestamp

JAN_1 = parse_timestamp("2024-01-01")
JAN_2 = parse_timestamp("2024-01-02")


def test_parse_timestamp_variants() -> None:
    expected = int(datetime(2024, 1, 1, tzinfo=timezone.utc).timestamp() * 1000)
    assert parse_timestamp("2024-01-01") == expected
    assert parse_timestamp("2024-01-01T00:00:00Z") == expected
    assert parse_timestamp("2024-01-01T01:00:00+01:00") == expected
    assert parse_timestamp(datetime(2024, 1, 1)) == expected


def test_parse_timestamp_rejects_garbage() -> None:
    with pytest.raises(ValueError):
        parse_timestamp("not-a-date")


def test_base_price_for_symbol() -> None:
    assert base_price_for("BTC-USD") == 42000.0
    assert base_price_for("eth/usdc") == 2200.0
    assert base_price_for("SOL") == 100.0


def test_candles_cover_range_inclusive() -> None:
    candles = MarketGenerator(np.random.default_rng(1)).generate_candles("BTC-USD", JAN_1, JAN_2, "1h")
    assert len(candles) == 25
    assert candles[0].timestamp == JAN_1
    assert candles[-1].timestamp == JAN_2
    steps = {b.timestamp - a.timestamp for a, b in zip(candles, candles[1:])}
    assert steps == {INTERVAL_MS["1h"]}


def test_candles_respect_envelope_and_floor() -> None:
    candles = MarketGenerator(np.random.default_rng(2)).generate_candles(
        "ETH-USD", JAN_1, parse_timestamp("2024-03-01"), "1h"
    )
    for candle in candles:
        assert candle.low <= min(candle.open, candle.close)
        assert max(candle.open, candle.close) <= candle.high
        assert candle.volume > 0
        assert candle.close >= 2200.0 * 0.5
    assert all(c.open == p.close for p, c in zip(candles, candles[1:]))


def test_candles_reproducible_with_seed() -> None:
    a = MarketGenerator(np.random.default_rng(7)).generate_candles("BTC", JAN_1, JAN_2, "15m")
    b = MarketGenerator(np.random.default_rng(7)).generate_candles("BTC", JAN_1, JAN_2, "15m")
    assert a == b


def test_unknown_interval_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported interval"):
        MarketGenerator().generate_candles("BTC", JAN_1, JAN_2, "2h")


def test_empty_range_yields_no_candles() -> None:
    assert MarketGenerator().generate_candles("BTC", JAN_2, JAN_1, "1h") == []


def test_historical_data_hourly_points() -> None:
    points = MarketGenerator(np.random.default_rng(3)).generate_historical_data(JAN_1, JAN_2)
    assert len(points) == 25
    for point in points:
        assert point.price >= 100.0
        assert 20 <= point.gas_price <= 120
        assert point.volatility >= 0
        assert point.tvl > 0
