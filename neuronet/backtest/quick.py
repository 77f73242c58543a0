"""
Quick Backtest Engine - multi-agent backtest over synthetic candles.

Usage:
    engine = QuickBacktestEngine()
    result = engine.run_quick_backtest(
        "BTC-USD", "1h", "2024-01-01", "2024-01-07", ["Atlas", "Sentinel"]
    )
    print(engine.format_summary(result))
"""
from __future__ import annotations

import time
import uuid
from datetime import datetime
from typing import Any, Optional, Sequence

from loguru import logger

from config.settings import BacktestSettings
from neuronet.backtest.performance import (
    aggregate,
    build_insights,
    rank_agents,
    summarize_agent,
)
from neuronet.backtest.portfolio import simulate
from neuronet.models import BacktestResult, QuickBacktestRequest
from neuronet.simulation import MarketGenerator, parse_timestamp
from neuronet.storage import InMemoryRepository
from neuronet.strategies import available_strategies, get_strategy, strategy_descriptions
from neuronet.utils.exceptions import SimulationError


def _now_ms() -> int:
    return int(time.time() * 1000)


def _as_text(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return "" if value is None else str(value)


def _as_names(agents: Any) -> list[str]:
    if isinstance(agents, (list, tuple)):
        return [str(name) for name in agents]
    return []


class QuickBacktestEngine:
    """Runs named strategies side by side and keeps every result by id."""

    def __init__(
        self,
        generator: Optional[MarketGenerator] = None,
        settings: Optional[BacktestSettings] = None,
        results: Optional[InMemoryRepository[BacktestResult]] = None,
    ) -> None:
        self.generator = generator or MarketGenerator()
        self.settings = settings or BacktestSettings()
        self.results = results if results is not None else InMemoryRepository("backtest result")

    def run_quick_backtest(
        self,
        symbol: str,
        interval: str,
        from_date: str,
        to_date: str,
        agents: Sequence[str],
        initial_balance: Optional[float] = None,
    ) -> BacktestResult:
        """
        Run a quick backtest for the given agents.

        The call always returns a stored result. Anything that goes wrong
        while simulating (unknown agent, bad interval or date, empty range)
        leaves it in ``failed`` with ``error_message`` set.

        Args:
            symbol: Market symbol, e.g. "BTC-USD"
            interval: Candle interval ("1m" ... "1d")
            from_date: ISO start date or datetime
            to_date: ISO end date or datetime (inclusive)
            agents: Strategy names to run, in ranking tie-break order
            initial_balance: Starting cash per agent (settings default if None)

        Returns:
            BacktestResult in ``completed`` or ``failed`` status
        """
        balance = initial_balance if initial_balance is not None else self.settings.initial_balance
        started_at = _now_ms()
        result = BacktestResult(
            id=f"qbt-{started_at}-{uuid.uuid4().hex[:6]}",
            symbol=_as_text(symbol),
            interval=_as_text(interval),
            from_date=_as_text(from_date),
            to_date=_as_text(to_date),
            agents=_as_names(agents),
            started_at=started_at,
        )
        self.results.create(result)

        try:
            request = QuickBacktestRequest(
                symbol=symbol,
                interval=interval,
                from_date=result.from_date,
                to_date=result.to_date,
                agents=agents,
                initial_balance=balance,
            )
            self._execute(result, request)
        except Exception as e:
            completed_at = _now_ms()
            result.status = "failed"
            result.completed_at = completed_at
            result.duration_ms = completed_at - started_at
            result.error_message = str(e)
            logger.error(f"Quick backtest {result.id} failed: {e}")

        return result

    def _execute(self, result: BacktestResult, request: QuickBacktestRequest) -> None:
        strategies = {name: get_strategy(name) for name in request.agents}

        start_ms = parse_timestamp(request.from_date)
        end_ms = parse_timestamp(request.to_date)
        candles = self.generator.generate_candles(
            request.symbol, start_ms, end_ms, request.interval
        )
        if not candles:
            raise SimulationError(
                f"No candles between {request.from_date} and {request.to_date}",
                run_id=result.id,
            )

        outcome = simulate(
            candles,
            strategies,
            request.initial_balance,
            position_fraction=self.settings.position_fraction,
        )

        performances = [
            summarize_agent(
                outcome.accounts[name],
                request.initial_balance,
                annualization=self.settings.sharpe_annualization,
                cap=self.settings.profit_factor_cap,
            )
            for name in strategies
        ]
        ranked = rank_agents(performances)
        overall = aggregate(ranked, outcome.accounts, cap=self.settings.profit_factor_cap)

        completed_at = _now_ms()
        result.status = "completed"
        result.completed_at = completed_at
        result.duration_ms = completed_at - result.started_at
        result.total_trades = overall.total_trades
        result.win_rate = overall.win_rate
        result.total_return = overall.total_return
        result.cumulative_return = overall.total_return
        result.sharpe_ratio = overall.sharpe_ratio
        result.max_drawdown = overall.max_drawdown
        result.profit_factor = overall.profit_factor
        result.agent_performance = ranked
        result.best_agent = overall.best_agent
        result.worst_agent = overall.worst_agent
        result.decisions = outcome.decisions[-self.settings.decision_tail:]
        result.insights = build_insights(ranked, overall, candles)

        logger.info(
            f"Quick backtest {result.id} completed: {request.symbol} "
            f"{request.from_date} to {request.to_date}, {overall.total_trades} trades, "
            f"win rate {overall.win_rate:.1f}%, return {overall.total_return:+.2f}%"
        )
        logger.debug(f"Best agent {overall.best_agent} ({ranked[0].total_return:+.2f}%)")

    def get_result(self, result_id: str) -> Optional[BacktestResult]:
        return self.results.get(result_id)

    def get_results(self) -> list[BacktestResult]:
        """All results, newest first."""
        newest_inserted_first = list(reversed(self.results.list()))
        return sorted(newest_inserted_first, key=lambda r: r.started_at, reverse=True)

    def get_available_agents(self) -> list[str]:
        return available_strategies()

    def get_agent_descriptions(self) -> dict[str, str]:
        return strategy_descriptions()

    def format_summary(self, result: BacktestResult) -> str:
        """Render a completed result as a plain-text report."""
        if result.status != "completed":
            return f"Backtest {result.id} - Status: {result.status}"

        returns = {p.agent: p.total_return for p in result.agent_performance}
        lines = [
            f"Backtest Results ({result.symbol}, {result.from_date} to {result.to_date})",
            "",
            f"Trades executed: {result.total_trades}",
            f"Win rate: {result.win_rate:.1f}%",
            f"Total return: {result.total_return:+.1f}%",
            f"Sharpe ratio: {result.sharpe_ratio:.2f}",
            f"Max drawdown: -{result.max_drawdown:.1f}%",
            f"Profit factor: {result.profit_factor:.2f}",
            "",
            f"Top performing agent: {result.best_agent} ({returns.get(result.best_agent, 0.0):.1f}%)",
            f"Worst performing agent: {result.worst_agent} ({returns.get(result.worst_agent, 0.0):.1f}%)",
            "",
            "Insights:",
            *[f"  - {insight}" for insight in result.insights],
        ]
        return "\n".join(lines)
