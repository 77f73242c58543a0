"""
Performance statistics for simulated accounts and runs.

Percent-valued outputs are rounded to 2 decimals the same way everywhere so
the per-agent table and the overall figures stay consistent.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from neuronet.backtest.portfolio import AccountState
from neuronet.models import AgentPerformance, Candle


def sharpe_ratio(returns: Sequence[float], annualization: int = 252) -> float:
    """Annualized mean/stdev of a return series (population stdev, no risk-free rate)."""
    if len(returns) == 0:
        return 0.0
    values = np.asarray(returns, dtype=float)
    std = float(values.std())
    if std == 0:
        return 0.0
    return float(values.mean()) / std * math.sqrt(annualization)


def max_drawdown(equity_curve: Sequence[float]) -> float:
    """Largest peak-to-trough decline of an equity curve, as a fraction."""
    if len(equity_curve) < 2:
        return 0.0
    peak = equity_curve[0]
    max_dd = 0.0
    for value in equity_curve[1:]:
        if value > peak:
            peak = value
        dd = (peak - value) / peak if peak > 0 else 0.0
        max_dd = max(max_dd, dd)
    return max_dd


def profit_factor(pnls: Sequence[float], cap: float = 10.0) -> float:
    """Gross profit over gross loss; ``cap`` when nothing was lost, 0 without profit."""
    gross_profit = sum(p for p in pnls if p > 0)
    gross_loss = -sum(p for p in pnls if p < 0)
    if gross_profit == 0:
        return 0.0
    if gross_loss == 0:
        return cap
    return min(gross_profit / gross_loss, cap)


def summarize_agent(
    state: AccountState,
    initial_balance: float,
    annualization: int = 252,
    cap: float = 10.0,
) -> AgentPerformance:
    trades = state.trades
    wins = sum(1 for t in trades if t.pnl > 0)
    losses = len(trades) - wins
    rois = [t.roi for t in trades]

    total_return = (state.balance - initial_balance) / initial_balance * 100
    avg_roi = sum(rois) / len(rois) * 100 if rois else 0.0

    return AgentPerformance(
        agent=state.name,
        total_trades=len(trades),
        winning_trades=wins,
        losing_trades=losses,
        win_rate=round(wins / len(trades) * 100, 2) if trades else 0.0,
        total_return=round(total_return, 2),
        avg_roi_per_trade=round(avg_roi, 2),
        max_drawdown=round(state.max_drawdown * 100, 2),
        sharpe_ratio=round(sharpe_ratio(rois, annualization), 2),
        profit_factor=round(profit_factor([t.pnl for t in trades], cap), 2),
    )


@dataclass(frozen=True)
class OverallPerformance:
    total_trades: int
    win_rate: float
    total_return: float
    sharpe_ratio: float
    max_drawdown: float
    profit_factor: float
    best_agent: str
    worst_agent: str


def rank_agents(performances: Sequence[AgentPerformance]) -> list[AgentPerformance]:
    """Sort by total return, best first; ties keep request order."""
    return sorted(performances, key=lambda p: p.total_return, reverse=True)


def aggregate(
    ranked: Sequence[AgentPerformance],
    accounts: dict[str, AccountState],
    cap: float = 10.0,
) -> OverallPerformance:
    """
    Combine ranked per-agent results into the overall figures.

    Win rate and profit factor are pooled over all trades; return and Sharpe
    are plain means across agents; drawdown is the worst single agent.
    """
    if not ranked:
        raise ValueError("Cannot aggregate an empty agent list")

    total_trades = sum(p.total_trades for p in ranked)
    total_wins = sum(p.winning_trades for p in ranked)
    pooled_pnls = [t.pnl for state in accounts.values() for t in state.trades]

    return OverallPerformance(
        total_trades=total_trades,
        win_rate=round(total_wins / total_trades * 100, 2) if total_trades else 0.0,
        total_return=round(sum(p.total_return for p in ranked) / len(ranked), 2),
        sharpe_ratio=round(sum(p.sharpe_ratio for p in ranked) / len(ranked), 2),
        max_drawdown=round(max(p.max_drawdown for p in ranked), 2),
        profit_factor=round(profit_factor(pooled_pnls, cap), 2),
        best_agent=ranked[0].agent,
        worst_agent=ranked[-1].agent,
    )


def count_volatility_clusters(candles: Sequence[Candle], threshold: float = 1.5) -> int:
    """Count runs of consecutive candles whose range exceeds ``threshold`` x the mean range."""
    if not candles:
        return 1
    ranges = np.array([c.range_pct for c in candles])
    limit = float(ranges.mean()) * threshold
    clusters = 0
    in_cluster = False
    for value in ranges:
        if value > limit:
            if not in_cluster:
                clusters += 1
            in_cluster = True
        else:
            in_cluster = False
    return max(clusters, 1)


def build_insights(
    ranked: Sequence[AgentPerformance],
    overall: OverallPerformance,
    candles: Sequence[Candle],
) -> list[str]:
    insights = [
        f"Agents detected {count_volatility_clusters(candles)} volatility clusters during the period"
    ]

    pattern = (
        "mean reversion during low volatility hours"
        if ranked and ranked[0].win_rate > 60
        else "momentum following after volume spikes"
    )
    insights.append(f"Most profitable pattern: {pattern}")

    if overall.max_drawdown > 5:
        events = math.ceil(overall.max_drawdown / 5)
        insights.append(f"Stress tests triggered: {events} major drawdown events")

    if len(ranked) > 1:
        spread = ranked[0].total_return - ranked[-1].total_return
        if spread > 10:
            insights.append(
                f"Significant strategy divergence: {spread:.1f}% spread between best and worst agents"
            )

    return insights
