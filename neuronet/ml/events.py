"""
Typed model events and a synchronous observer registry.

Listeners are registered per event class. A failing listener is logged and
skipped; it never breaks the model operation that emitted the event.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, TypeVar

from loguru import logger

from neuronet.models import MarketCluster, ModelMetrics, Prediction
from neuronet.models.ml import Outcome


@dataclass(frozen=True)
class ModelEvent:
    pass


@dataclass(frozen=True)
class ClusteringCompleted(ModelEvent):
    clusters: tuple[MarketCluster, ...]


@dataclass(frozen=True)
class PredictionMade(ModelEvent):
    prediction: Prediction


@dataclass(frozen=True)
class ModelTrained(ModelEvent):
    metrics: ModelMetrics


@dataclass(frozen=True)
class OutcomeRecorded(ModelEvent):
    opportunity_id: str
    outcome: Outcome
    actual_return: float


E = TypeVar("E", bound=ModelEvent)


class EventBus:
    def __init__(self) -> None:
        self._listeners: dict[type[ModelEvent], list[Callable]] = defaultdict(list)
        self._error_count = 0

    def subscribe(self, event_type: type[E], listener: Callable[[E], None]) -> None:
        self._listeners[event_type].append(listener)
        logger.debug(f"Subscribed {getattr(listener, '__qualname__', listener)} to {event_type.__name__}")

    def unsubscribe(self, event_type: type[E], listener: Callable[[E], None]) -> None:
        try:
            self._listeners[event_type].remove(listener)
        except ValueError:
            logger.debug(f"Listener not subscribed to {event_type.__name__}")

    def emit(self, event: ModelEvent) -> None:
        # snapshot so listeners may (un)subscribe during dispatch
        for listener in list(self._listeners.get(type(event), [])):
            self._safe_call(listener, event)

    def _safe_call(self, listener: Callable, event: ModelEvent) -> None:
        try:
            listener(event)
        except Exception as e:
            self._error_count += 1
            logger.error(
                f"Listener {getattr(listener, '__qualname__', listener)} failed on "
                f"{type(event).__name__}: {e}"
            )

    @property
    def error_count(self) -> int:
        return self._error_count

    def listener_count(self, event_type: type[ModelEvent]) -> int:
        return len(self._listeners.get(event_type, []))
