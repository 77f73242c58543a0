"""Bootstrap training set applied when the model starts empty."""
from __future__ import annotations

import time
from typing import Optional

from neuronet.models import FeatureVector, TrainingDataPoint

DAY_MS = 86_400_000
HOUR_MS = 3_600_000

# (volatility, tvl, gas, performance, sentiment, liquidity, volume, outcome, return, type, age_ms)
_SEED_ROWS = [
    (2.5, 8.2, 35, 72, 68, 75, 15.3, "success", 0.12, "yield_farming", DAY_MS * 7),
    (8.1, -3.5, 120, 45, 35, 40, -8.2, "failure", -0.08, "liquidity_provision", DAY_MS * 6),
    (1.2, 12.5, 28, 85, 78, 82, 22.1, "success", 0.18, "staking", DAY_MS * 5),
    (15.3, -12.8, 95, 38, 25, 30, -25.5, "failure", -0.15, "arbitrage", DAY_MS * 4),
    (3.2, 5.8, 42, 68, 62, 70, 8.5, "success", 0.09, "yield_farming", DAY_MS * 3),
    (4.5, 2.1, 55, 55, 52, 58, 3.2, "success", 0.05, "staking", DAY_MS * 2),
    (6.8, -1.2, 78, 48, 42, 45, -5.5, "failure", -0.04, "liquidity_provision", DAY_MS),
    (2.8, 15.2, 32, 88, 82, 85, 28.3, "success", 0.22, "yield_farming", HOUR_MS * 12),
    (1.5, 6.8, 38, 75, 70, 72, 12.5, "success", 0.11, "staking", HOUR_MS * 6),
    (12.5, -8.5, 105, 32, 28, 35, -18.2, "failure", -0.12, "arbitrage", HOUR_MS * 3),
    (3.5, 9.2, 45, 78, 72, 68, 16.8, "success", 0.14, "yield_farming", HOUR_MS * 2),
    (5.2, 3.5, 62, 62, 58, 55, 5.8, "success", 0.06, "liquidity_provision", HOUR_MS),
]


def seed_training_data(now_ms: Optional[int] = None) -> list[TrainingDataPoint]:
    """Twelve labeled points (eight successes, four failures) ending at ``now_ms``."""
    now = now_ms if now_ms is not None else int(time.time() * 1000)
    points = []
    for i, row in enumerate(_SEED_ROWS, start=1):
        *values, outcome, actual_return, opportunity_type, age = row
        timestamp = now - age
        points.append(
            TrainingDataPoint(
                id=f"seed-{i}",
                features=FeatureVector(
                    price_volatility=values[0],
                    tvl_change=values[1],
                    gas_price=values[2],
                    agent_performance=values[3],
                    market_sentiment=values[4],
                    liquidity_depth=values[5],
                    volume_change=values[6],
                    timestamp=timestamp,
                ),
                outcome=outcome,
                actual_return=actual_return,
                opportunity_type=opportunity_type,
                timestamp=timestamp,
            )
        )
    return points
