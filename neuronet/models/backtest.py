"""Backtest request, result and run records shared by both engines."""
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from neuronet.models.market import Interval

ResultStatus = Literal["running", "completed", "failed"]
RunStatus = Literal["pending", "running", "completed", "failed"]
RiskTolerance = Literal["conservative", "moderate", "aggressive"]
AgentType = Literal["scout", "risk", "execution"]


class TradeDecision(BaseModel):
    model_config = {"from_attributes": True}

    timestamp: str
    agent: str
    action: Literal["BUY", "SELL"]
    price: float
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


class AgentPerformance(BaseModel):
    model_config = {"from_attributes": True}

    agent: str
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_return: float = 0.0
    avg_roi_per_trade: float = 0.0
    max_drawdown: float = Field(default=0.0, ge=0.0, le=100.0)
    sharpe_ratio: float = 0.0
    profit_factor: float = 0.0


class QuickBacktestRequest(BaseModel):
    symbol: str = Field(min_length=1)
    interval: Interval = "1h"
    from_date: str
    to_date: str
    agents: list[str] = Field(min_length=1)
    initial_balance: float = Field(default=10000.0, gt=0)


class BacktestResult(BaseModel):
    """Quick multi-agent backtest output, mutated in place until terminal."""

    id: str
    symbol: str
    interval: str
    from_date: str
    to_date: str
    agents: list[str]
    status: ResultStatus = "running"
    started_at: int
    completed_at: Optional[int] = None
    duration_ms: Optional[int] = None
    total_trades: int = 0
    win_rate: float = 0.0
    total_return: float = 0.0
    cumulative_return: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    profit_factor: float = 0.0
    agent_performance: list[AgentPerformance] = []
    best_agent: str = ""
    worst_agent: str = ""
    decisions: list[TradeDecision] = []
    insights: list[str] = []
    error_message: Optional[str] = None


class StrategyConfig(BaseModel):
    model_config = {"from_attributes": True}

    risk_tolerance: RiskTolerance = "moderate"
    max_position_size: float = Field(default=0.2, gt=0.0, le=1.0)
    stop_loss_percent: float = Field(default=5.0, gt=0.0)
    take_profit_percent: float = Field(default=15.0, gt=0.0)
    rebalance_threshold: float = Field(default=10.0, ge=0.0)


class BacktestDecision(BaseModel):
    model_config = {"from_attributes": True}

    timestamp: int
    action: Literal["buy", "sell"]
    amount: float
    price: float
    reason: str
    agent_type: AgentType
    confidence: float = Field(ge=0.0, le=1.0)
    pnl: float = 0.0


class BacktestRun(BaseModel):
    """One parameterized strategy run against a stored scenario."""

    id: str
    scenario_id: str
    agent_id: Optional[str] = None
    strategy_config: dict[str, Any]
    status: RunStatus = "pending"
    status_history: list[RunStatus] = ["pending"]
    started_at: Optional[int] = None
    completed_at: Optional[int] = None
    initial_balance: float
    final_balance: float
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0
    profit_factor: float = 0.0
    decisions: list[BacktestDecision] = []
    error_message: Optional[str] = None

    @property
    def total_return(self) -> float:
        if self.initial_balance == 0:
            return 0.0
        return (self.final_balance - self.initial_balance) / self.initial_balance * 100

    @property
    def win_rate(self) -> float:
        if self.total_trades == 0:
            return 0.0
        return self.winning_trades / self.total_trades * 100


class RunMetrics(BaseModel):
    run_id: str
    total_return: float
    max_drawdown: float
    sharpe_ratio: float
    win_rate: float


class BacktestComparison(BaseModel):
    id: str
    run_ids: list[str]
    best_performing_run: str
    metrics: list[RunMetrics]
    created_at: int

    @field_validator("metrics")
    @classmethod
    def validate_metrics_count(cls, v: list[RunMetrics]) -> list[RunMetrics]:
        if len(v) < 2:
            raise ValueError("A comparison needs metrics for at least 2 runs")
        return v


class BacktestStats(BaseModel):
    total_scenarios: int
    total_runs: int
    completed_runs: int
    average_return: float
    average_sharpe: float
