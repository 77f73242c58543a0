from neuronet.strategies.base import BaseStrategy, StrategySignal, hold
from neuronet.strategies.atlas import AtlasStrategy
from neuronet.strategies.vega import VegaStrategy
from neuronet.strategies.nova import NovaStrategy
from neuronet.strategies.sentinel import SentinelStrategy
from neuronet.strategies.arbiter import ArbiterStrategy

STRATEGIES: dict[str, type[BaseStrategy]] = {
    cls.name: cls
    for cls in (AtlasStrategy, VegaStrategy, NovaStrategy, SentinelStrategy, ArbiterStrategy)
}


def available_strategies() -> list[str]:
    return list(STRATEGIES)


def strategy_descriptions() -> dict[str, str]:
    return {name: cls.description for name, cls in STRATEGIES.items()}


def get_strategy(name: str) -> BaseStrategy:
    """
    Instantiate a strategy archetype by name.

    Args:
        name: One of the registered archetype names (case sensitive)

    Returns:
        A fresh strategy instance

    Raises:
        KeyError: If no strategy with that name is registered
    """
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise KeyError(
            f"Unknown agent '{name}'. Available: {', '.join(available_strategies())}"
        ) from None


__all__ = [
    "STRATEGIES",
    "BaseStrategy",
    "StrategySignal",
    "hold",
    "AtlasStrategy",
    "VegaStrategy",
    "NovaStrategy",
    "SentinelStrategy",
    "ArbiterStrategy",
    "available_strategies",
    "strategy_descriptions",
    "get_strategy",
]
