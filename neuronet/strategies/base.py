"""
Base Strategy - shared decision contract for backtest agents.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Sequence

from neuronet.models import Candle

if TYPE_CHECKING:
    from neuronet.backtest.portfolio import AccountState

Action = Literal["BUY", "SELL", "HOLD"]


@dataclass(frozen=True)
class StrategySignal:
    action: Action
    confidence: float
    reason: str


def hold(reason: str, confidence: float = 0.5) -> StrategySignal:
    return StrategySignal(action="HOLD", confidence=confidence, reason=reason)


class BaseStrategy:
    """
    Stateless decision function for one named agent archetype.

    Subclasses implement ``decide``. Everything a strategy needs is passed in:
    the current and previous candle, the agent's own account state (read
    only) and the trailing history, which already includes ``candle``.
    """

    name: str = ""
    description: str = ""

    def decide(
        self,
        candle: Candle,
        prev_candle: Candle | None,
        state: "AccountState",
        history: Sequence[Candle],
    ) -> StrategySignal:
        raise NotImplementedError

    @staticmethod
    def position_pnl(candle: Candle, state: "AccountState") -> float:
        """Unrealized return of the open position as a fraction."""
        if state.position is None:
            return 0.0
        entry = state.position.entry_price
        return (candle.close - entry) / entry

    @staticmethod
    def mean_close(history: Sequence[Candle], window: int) -> float:
        recent = history[-window:]
        return sum(c.close for c in recent) / len(recent)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
