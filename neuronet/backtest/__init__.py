from neuronet.backtest.portfolio import (
    AccountState,
    ClosedTrade,
    OpenPosition,
    SimulationOutcome,
    simulate,
)
from neuronet.backtest.performance import (
    OverallPerformance,
    aggregate,
    build_insights,
    max_drawdown,
    profit_factor,
    rank_agents,
    sharpe_ratio,
    summarize_agent,
)
from neuronet.backtest.quick import QuickBacktestEngine
from neuronet.backtest.scenario import BacktestingEngine, evaluate_buy_signal, transition

__all__ = [
    "AccountState",
    "ClosedTrade",
    "OpenPosition",
    "SimulationOutcome",
    "simulate",
    "OverallPerformance",
    "aggregate",
    "build_insights",
    "max_drawdown",
    "profit_factor",
    "rank_agents",
    "sharpe_ratio",
    "summarize_agent",
    "QuickBacktestEngine",
    "BacktestingEngine",
    "evaluate_buy_signal",
    "transition",
]
