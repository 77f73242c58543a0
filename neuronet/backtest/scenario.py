"""
Scenario backtesting: reusable synthetic scenarios and parameterized runs.

A scenario is generated once and stored; any number of runs with different
``StrategyConfig`` values can then be replayed against the same data points
and compared.
"""
from __future__ import annotations

import time
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from loguru import logger

from config.settings import BacktestSettings
from neuronet.backtest.performance import max_drawdown, profit_factor, sharpe_ratio
from neuronet.models import (
    BacktestComparison,
    BacktestDecision,
    BacktestRun,
    BacktestStats,
    HistoricalDataPoint,
    RunMetrics,
    Scenario,
    StrategyConfig,
)
from neuronet.models.backtest import RunStatus
from neuronet.simulation import MarketGenerator, parse_timestamp
from neuronet.storage import InMemoryRepository
from neuronet.utils.exceptions import InsufficientInputError, InvalidTransitionError

HIGH_VOLATILITY = 5.0

_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"running"},
    "running": {"completed", "failed"},
    "completed": set(),
    "failed": set(),
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{_now_ms()}-{uuid.uuid4().hex[:6]}"


def _as_balance(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _config_payload(strategy_config: Any) -> dict[str, Any]:
    if isinstance(strategy_config, StrategyConfig):
        return strategy_config.model_dump()
    if not isinstance(strategy_config, Mapping):
        raise TypeError(
            f"Strategy config must be a mapping, got {type(strategy_config).__name__}"
        )
    return dict(strategy_config)


def transition(run: BacktestRun, target: RunStatus) -> None:
    """Move a run forward in its lifecycle; revisiting a status raises."""
    if target in run.status_history or target not in _TRANSITIONS[run.status]:
        raise InvalidTransitionError(run.status, target)
    run.status = target
    run.status_history.append(target)


def evaluate_buy_signal(
    current: HistoricalDataPoint,
    previous: HistoricalDataPoint,
    config: StrategyConfig,
    volatility_high: bool,
) -> tuple[bool, float, str]:
    """
    Entry rule for one tick under the configured risk tolerance.

    Returns:
        Tuple of (should_buy, confidence, reason)
    """
    price_change = (current.price - previous.price) / previous.price
    volume_change = (
        (current.volume - previous.volume) / previous.volume if previous.volume > 0 else 0.0
    )

    if config.risk_tolerance == "conservative":
        if not volatility_high and 0 < price_change < 0.02 and current.tvl > previous.tvl:
            return True, 0.7, "Conservative entry: stable uptrend with growing TVL"
    elif config.risk_tolerance == "moderate":
        if price_change > 0.01 and volume_change > 0.1:
            return True, 0.65, "Moderate entry: positive momentum with volume confirmation"
    else:
        if price_change < -0.03 and volume_change > 0.2:
            return True, 0.6, "Aggressive entry: buying the dip with volume spike"
        if volatility_high and price_change > 0.02:
            return True, 0.55, "Aggressive entry: momentum in volatile market"

    return False, 0.0, ""


class BacktestingEngine:
    """Stores scenarios, runs and comparisons and executes scenario runs."""

    def __init__(
        self,
        generator: Optional[MarketGenerator] = None,
        settings: Optional[BacktestSettings] = None,
    ) -> None:
        self.generator = generator or MarketGenerator()
        self.settings = settings or BacktestSettings()
        self.scenarios: InMemoryRepository[Scenario] = InMemoryRepository("scenario")
        self.runs: InMemoryRepository[BacktestRun] = InMemoryRepository("run")
        self.comparisons: InMemoryRepository[BacktestComparison] = InMemoryRepository(
            "comparison"
        )

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------
    def create_scenario(
        self,
        name: str,
        description: str,
        chain: str,
        start_date: str | datetime,
        end_date: str | datetime,
    ) -> Scenario:
        start_ms = parse_timestamp(start_date)
        end_ms = parse_timestamp(end_date)
        if end_ms < start_ms:
            raise ValueError("Scenario end date must not precede its start date")

        scenario = Scenario(
            id=_new_id("scn"),
            name=name,
            description=description,
            chain=chain,
            start_timestamp=start_ms,
            end_timestamp=end_ms,
            data_points=self.generator.generate_historical_data(start_ms, end_ms),
            created_at=_now_ms(),
        )
        self.scenarios.create(scenario)
        logger.info(f"Created scenario '{name}' with {len(scenario.data_points)} data points")
        return scenario

    def get_scenarios(self) -> list[Scenario]:
        return self.scenarios.list()

    def get_scenario(self, scenario_id: str) -> Optional[Scenario]:
        return self.scenarios.get(scenario_id)

    def delete_scenario(self, scenario_id: str) -> bool:
        """Delete a scenario together with every run that replayed it."""
        if not self.scenarios.delete(scenario_id):
            return False
        for run in self.get_runs_for_scenario(scenario_id):
            self.runs.delete(run.id)
        logger.info(f"Deleted scenario {scenario_id}")
        return True

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------
    def run_backtest(
        self,
        scenario_id: str,
        strategy_config: StrategyConfig | Mapping[str, Any],
        initial_balance: float,
        agent_id: Optional[str] = None,
    ) -> BacktestRun:
        """
        Replay a stored scenario under one strategy configuration.

        Raises:
            NotFoundError: If the scenario id is unknown

        Returns:
            The stored run, ``completed`` or ``failed``; a malformed
            configuration fails the run instead of raising
        """
        scenario = self.scenarios.require(scenario_id)

        balance = _as_balance(initial_balance)
        run = BacktestRun(
            id=_new_id("run"),
            scenario_id=scenario_id,
            agent_id=agent_id if isinstance(agent_id, str) else None,
            strategy_config={},
            initial_balance=balance or 0.0,
            final_balance=balance or 0.0,
        )
        self.runs.create(run)

        transition(run, "running")
        run.started_at = _now_ms()
        try:
            if balance is None:
                raise ValueError(f"Initial balance must be a number, got {initial_balance!r}")
            run.strategy_config = _config_payload(strategy_config)
            config = StrategyConfig.model_validate(run.strategy_config)
            self._execute(run, scenario, config)
        except Exception as e:
            run.error_message = str(e)
            run.completed_at = _now_ms()
            transition(run, "failed")
            logger.error(f"Backtest run {run.id} failed: {e}")
            return run

        run.completed_at = _now_ms()
        transition(run, "completed")
        logger.info(f"Backtest run {run.id} completed, return {run.total_return:+.2f}%")
        return run

    def _execute(self, run: BacktestRun, scenario: Scenario, config: StrategyConfig) -> None:
        points = scenario.data_points
        balance = run.initial_balance
        entry_price: Optional[float] = None
        size = 0.0

        decisions: list[BacktestDecision] = []
        equity_returns: list[float] = []
        pnls: list[float] = []
        previous_equity = balance
        equity_curve = [balance]

        for i in range(1, len(points)):
            current = points[i]
            previous = points[i - 1]
            volatility_high = current.volatility > HIGH_VOLATILITY

            if entry_price is None:
                should_buy, confidence, reason = evaluate_buy_signal(
                    current, previous, config, volatility_high
                )
                if should_buy and balance > 0:
                    allocation = balance * config.max_position_size
                    entry_price = current.price
                    size = allocation / current.price
                    balance -= allocation
                    decisions.append(
                        BacktestDecision(
                            timestamp=current.timestamp,
                            action="buy",
                            amount=size,
                            price=current.price,
                            reason=reason,
                            agent_type="scout",
                            confidence=confidence,
                        )
                    )
            else:
                pnl_percent = (current.price - entry_price) / entry_price * 100
                exit_rule: Optional[tuple[str, float, str]] = None

                if pnl_percent <= -config.stop_loss_percent:
                    exit_rule = ("risk", 0.9, f"Stop loss triggered at {pnl_percent:.2f}%")
                elif pnl_percent >= config.take_profit_percent:
                    exit_rule = ("execution", 0.85, f"Take profit triggered at {pnl_percent:.2f}%")
                elif volatility_high and pnl_percent > 0:
                    exit_rule = (
                        "risk",
                        0.7,
                        f"Risk exit due to high volatility with {pnl_percent:.2f}% profit",
                    )

                if exit_rule is not None:
                    agent_type, confidence, reason = exit_rule
                    pnl = (current.price - entry_price) * size
                    balance += size * current.price
                    pnls.append(pnl)
                    decisions.append(
                        BacktestDecision(
                            timestamp=current.timestamp,
                            action="sell",
                            amount=size,
                            price=current.price,
                            reason=reason,
                            agent_type=agent_type,
                            confidence=confidence,
                            pnl=pnl,
                        )
                    )
                    entry_price = None
                    size = 0.0

            equity = balance + size * current.price
            equity_returns.append((equity - previous_equity) / previous_equity if previous_equity > 0 else 0.0)
            previous_equity = equity
            equity_curve.append(equity)

        if entry_price is not None:
            last = points[-1]
            pnl = (last.price - entry_price) * size
            balance += size * last.price
            pnls.append(pnl)
            decisions.append(
                BacktestDecision(
                    timestamp=last.timestamp,
                    action="sell",
                    amount=size,
                    price=last.price,
                    reason="Scenario ended: open position closed at last price",
                    agent_type="execution",
                    confidence=1.0,
                    pnl=pnl,
                )
            )

        run.final_balance = round(balance, 2)
        run.total_trades = len(pnls)
        run.winning_trades = sum(1 for p in pnls if p > 0)
        run.losing_trades = run.total_trades - run.winning_trades
        run.max_drawdown = round(max_drawdown(equity_curve) * 100, 2)
        run.sharpe_ratio = round(
            sharpe_ratio(equity_returns, self.settings.sharpe_annualization), 2
        )
        run.profit_factor = round(profit_factor(pnls, self.settings.profit_factor_cap), 2)
        run.decisions = decisions

    def get_runs(self) -> list[BacktestRun]:
        return self.runs.list()

    def get_run(self, run_id: str) -> Optional[BacktestRun]:
        return self.runs.get(run_id)

    def get_runs_for_scenario(self, scenario_id: str) -> list[BacktestRun]:
        return self.runs.list(lambda r: r.scenario_id == scenario_id)

    # ------------------------------------------------------------------
    # Comparison and stats
    # ------------------------------------------------------------------
    def compare_runs(self, run_ids: Sequence[str]) -> BacktestComparison:
        """
        Compare completed runs; the best performer has the highest Sharpe.

        Repeated ids count once; unknown ids and runs that did not complete
        are skipped.

        Raises:
            InsufficientInputError: If fewer than 2 runs can be compared
        """
        runs = [
            run
            for run in (self.runs.get(run_id) for run_id in dict.fromkeys(run_ids))
            if run is not None and run.status == "completed"
        ]
        if len(runs) < 2:
            raise InsufficientInputError(
                "Need at least 2 completed runs to compare", required=2, available=len(runs)
            )

        metrics = [
            RunMetrics(
                run_id=run.id,
                total_return=run.total_return,
                max_drawdown=run.max_drawdown,
                sharpe_ratio=run.sharpe_ratio,
                win_rate=run.win_rate,
            )
            for run in runs
        ]
        best = max(metrics, key=lambda m: m.sharpe_ratio)

        comparison = BacktestComparison(
            id=_new_id("cmp"),
            run_ids=[run.id for run in runs],
            best_performing_run=best.run_id,
            metrics=metrics,
            created_at=_now_ms(),
        )
        self.comparisons.create(comparison)
        logger.info(f"Comparison {comparison.id}: best performer is {best.run_id}")
        return comparison

    def get_comparisons(self) -> list[BacktestComparison]:
        return self.comparisons.list()

    def get_stats(self) -> BacktestStats:
        completed = self.runs.list(lambda r: r.status == "completed")
        returns = [r.total_return for r in completed]
        sharpes = [r.sharpe_ratio for r in completed]
        return BacktestStats(
            total_scenarios=len(self.scenarios),
            total_runs=len(self.runs),
            completed_runs=len(completed),
            average_return=sum(returns) / len(returns) if returns else 0.0,
            average_sharpe=sum(sharpes) / len(sharpes) if sharpes else 0.0,
        )
