from neuronet.simulation.generator import (
    MarketGenerator,
    base_price_for,
    parse_timestamp,
)

__all__ = [
    "MarketGenerator",
    "base_price_for",
    "parse_timestamp",
]
