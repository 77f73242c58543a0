"""
Portfolio simulation for the quick multi-agent backtest.

Every strategy trades its own isolated ``AccountState``; agents never see
each other's positions. The pass over the candles is strictly forward and
each agent takes at most one action per candle.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional, Sequence

from loguru import logger

from neuronet.models import Candle, TradeDecision
from neuronet.strategies import BaseStrategy


@dataclass
class OpenPosition:
    entry_price: float
    size: float
    entry_timestamp: int


@dataclass
class ClosedTrade:
    pnl: float
    roi: float


@dataclass
class AccountState:
    """Cash, open position and trade ledger of one strategy in one run."""

    name: str
    balance: float
    position: Optional[OpenPosition] = None
    trades: list[ClosedTrade] = field(default_factory=list)
    peak_balance: float = 0.0
    max_drawdown: float = 0.0

    def __post_init__(self) -> None:
        if self.peak_balance == 0.0:
            self.peak_balance = self.balance

    def equity(self, price: float) -> float:
        if self.position is None:
            return self.balance
        return self.balance + self.position.size * price

    def open_position(self, candle: Candle, fraction: float) -> None:
        allocation = self.balance * fraction
        self.position = OpenPosition(
            entry_price=candle.close,
            size=allocation / candle.close,
            entry_timestamp=candle.timestamp,
        )
        self.balance -= allocation

    def close_position(self, price: float) -> ClosedTrade:
        if self.position is None:
            raise RuntimeError(f"{self.name} has no open position to close")
        exit_value = self.position.size * price
        entry_value = self.position.size * self.position.entry_price
        trade = ClosedTrade(
            pnl=exit_value - entry_value,
            roi=(exit_value - entry_value) / entry_value,
        )
        self.balance += exit_value
        self.trades.append(trade)
        self.position = None
        return trade

    def mark_to_market(self, price: float) -> None:
        """Update peak equity and the maximum peak-to-trough drawdown."""
        current = self.equity(price)
        if current > self.peak_balance:
            self.peak_balance = current
        if self.peak_balance > 0:
            drawdown = (self.peak_balance - current) / self.peak_balance
            if drawdown > self.max_drawdown:
                self.max_drawdown = drawdown


@dataclass
class SimulationOutcome:
    accounts: dict[str, AccountState]
    decisions: list[TradeDecision]


def iso_timestamp(timestamp_ms: int) -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def simulate(
    candles: Sequence[Candle],
    strategies: Mapping[str, BaseStrategy],
    initial_balance: float,
    position_fraction: float = 0.95,
) -> SimulationOutcome:
    """
    Run every strategy over the candle series.

    Args:
        candles: Candles in increasing timestamp order
        strategies: Strategy instance per agent name
        initial_balance: Starting cash of each isolated account
        position_fraction: Share of cash committed on each entry

    Returns:
        Final account states and the log of executed actions
    """
    accounts = {
        name: AccountState(name=name, balance=initial_balance) for name in strategies
    }
    decisions: list[TradeDecision] = []
    history: list[Candle] = []
    last_index = len(candles) - 1

    for i, candle in enumerate(candles):
        prev_candle = candles[i - 1] if i > 0 else None
        history.append(candle)

        for name, strategy in strategies.items():
            state = accounts[name]
            signal = strategy.decide(candle, prev_candle, state, history)

            if signal.action == "BUY" and state.position is None and state.balance > 0:
                state.open_position(candle, position_fraction)
                decisions.append(_decision(candle, name, "BUY", signal.confidence, signal.reason))
            elif signal.action == "SELL" and state.position is not None:
                state.close_position(candle.close)
                decisions.append(_decision(candle, name, "SELL", signal.confidence, signal.reason))

            if i == last_index and state.position is not None:
                trade = state.close_position(candle.close)
                decisions.append(
                    _decision(
                        candle,
                        name,
                        "SELL",
                        1.0,
                        f"End of backtest: position closed at {trade.roi * 100:+.2f}%",
                    )
                )

            state.mark_to_market(candle.close)

    logger.debug(
        f"Simulated {len(candles)} candles for {len(strategies)} agents, "
        f"{len(decisions)} executed actions"
    )
    return SimulationOutcome(accounts=accounts, decisions=decisions)


def _decision(
    candle: Candle, agent: str, action: str, confidence: float, reason: str
) -> TradeDecision:
    return TradeDecision(
        timestamp=iso_timestamp(candle.timestamp),
        agent=agent,
        action=action,
        price=candle.close,
        confidence=min(max(confidence, 0.0), 1.0),
        reason=reason,
    )
