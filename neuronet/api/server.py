"""
JSON HTTP API over the simulation core.

The stdlib threading HTTP server handles transport and ``dispatch`` maps
method and path onto ``SimulationCore``. Every call into the core holds one
lock, which gives the core the single-writer access it assumes.
"""
from __future__ import annotations

import json
import threading
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from neuronet.api.core import SimulationCore
from neuronet.models import (
    CreditTransaction,
    FeatureVector,
    KMeansConfig,
    MarketData,
    MemoryEntry,
    TrainingDataPoint,
)
from neuronet.models.ml import Outcome
from neuronet.utils.exceptions import InsufficientInputError, NotFoundError


class QuickBacktestBody(BaseModel):
    symbol: str
    interval: str = "1h"
    from_date: str
    to_date: str
    agents: list[str]
    initial_balance: Optional[float] = None


class ScenarioBody(BaseModel):
    name: str
    description: str = ""
    chain: str = "ethereum"
    start_date: str
    end_date: str


class RunBody(BaseModel):
    scenario_id: str
    strategy_config: dict[str, Any] = {}
    initial_balance: float = Field(default=10000.0, gt=0)
    agent_id: Optional[str] = None


class CompareBody(BaseModel):
    run_ids: list[str]


class FeaturesBody(BaseModel):
    memory_entries: list[MemoryEntry] = []
    credit_transactions: list[CreditTransaction] = []
    market_data: Optional[MarketData] = None


class ClusterBody(BaseModel):
    feature_vectors: list[FeatureVector]
    config: Optional[KMeansConfig] = None


class PredictBody(BaseModel):
    opportunity_id: str
    features: FeatureVector


class TrainBody(BaseModel):
    data_points: list[TrainingDataPoint]


class OutcomeBody(BaseModel):
    opportunity_id: str
    outcome: Outcome
    actual_return: float = 0.0


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


def _route(core: SimulationCore, method: str, parts: list[str], body: dict[str, Any]) -> Any:
    """Resolve one request; raise ``NotFoundError`` for unknown routes or ids."""
    route = (method, "/".join(parts[:2]))
    item_id = parts[2] if len(parts) == 3 else None
    if len(parts) > 3:
        raise NotFoundError("route", f"{method} /api/{'/'.join(parts)}")

    if route == ("POST", "backtest/start") and item_id is None:
        req = QuickBacktestBody.model_validate(body)
        return core.run_quick_backtest(
            req.symbol, req.interval, req.from_date, req.to_date, req.agents, req.initial_balance
        )
    if route == ("GET", "backtest/results"):
        if item_id is None:
            return core.get_results()
        result = core.get_result(item_id)
        if result is None:
            raise NotFoundError("backtest result", item_id)
        return {**result.model_dump(mode="json"), "summary": core.format_summary(result)}
    if route == ("GET", "backtest/agents") and item_id is None:
        return {
            "agents": core.get_available_agents(),
            "descriptions": core.get_agent_descriptions(),
        }

    if route == ("GET", "backtesting/scenarios"):
        if item_id is None:
            return [s.to_db_dict() for s in core.get_scenarios()]
        scenario = core.get_scenario(item_id)
        if scenario is None:
            raise NotFoundError("scenario", item_id)
        return scenario
    if route == ("POST", "backtesting/scenarios") and item_id is None:
        req = ScenarioBody.model_validate(body)
        return core.create_scenario(
            req.name, req.description, req.chain, req.start_date, req.end_date
        )
    if route == ("DELETE", "backtesting/scenarios") and item_id is not None:
        if not core.delete_scenario(item_id):
            raise NotFoundError("scenario", item_id)
        return {"deleted": item_id}
    if route == ("GET", "backtesting/runs"):
        if item_id is None:
            return core.get_runs()
        run = core.get_run(item_id)
        if run is None:
            raise NotFoundError("run", item_id)
        return run
    if route == ("POST", "backtesting/runs") and item_id is None:
        req = RunBody.model_validate(body)
        return core.run_backtest(
            req.scenario_id, req.strategy_config, req.initial_balance, req.agent_id
        )
    if route == ("POST", "backtesting/compare") and item_id is None:
        return core.compare_runs(CompareBody.model_validate(body).run_ids)
    if route == ("GET", "backtesting/comparisons") and item_id is None:
        return core.get_comparisons()
    if route == ("GET", "backtesting/stats") and item_id is None:
        return core.get_stats()

    if item_id is None:
        if route == ("POST", "ml/features"):
            req = FeaturesBody.model_validate(body)
            return core.extract_features(
                req.memory_entries, req.credit_transactions, req.market_data
            )
        if route == ("POST", "ml/cluster"):
            req = ClusterBody.model_validate(body)
            return core.perform_kmeans_clustering(req.feature_vectors, req.config)
        if route == ("POST", "ml/predict"):
            req = PredictBody.model_validate(body)
            return core.predict_success_probability(req.opportunity_id, req.features)
        if route == ("POST", "ml/train"):
            core.train(TrainBody.model_validate(body).data_points)
            return core.get_model_metrics()
        if route == ("POST", "ml/outcome"):
            req = OutcomeBody.model_validate(body)
            scored = core.record_outcome(req.opportunity_id, req.outcome, req.actual_return)
            return {"scored": scored}
        if route == ("GET", "ml/metrics"):
            return core.get_model_metrics()
        if route == ("GET", "ml/weights"):
            return core.get_model_weights()
        if route == ("GET", "ml/clusters"):
            return core.get_clusters()

    raise NotFoundError("route", f"{method} /api/{'/'.join(parts)}")


def dispatch(
    core: SimulationCore,
    method: str,
    path: str,
    body: Optional[dict[str, Any]] = None,
) -> tuple[HTTPStatus, Any]:
    """
    Map an HTTP request to the core and its outcome to a status code.

    Returns:
        Tuple of (status, JSON-serializable payload)
    """
    parts = [p for p in path.split("?", 1)[0].split("/") if p]
    if not parts or parts[0] != "api":
        return HTTPStatus.NOT_FOUND, {"error": f"Not found: {path}"}

    try:
        payload = _route(core, method.upper(), parts[1:], body or {})
    except NotFoundError as e:
        return HTTPStatus.NOT_FOUND, {"error": str(e)}
    except InsufficientInputError as e:
        return HTTPStatus.BAD_REQUEST, {"error": str(e)}
    except ValidationError as e:
        return HTTPStatus.UNPROCESSABLE_ENTITY, {
            "error": "Invalid request body",
            "details": e.errors(include_url=False, include_context=False),
        }
    except ValueError as e:
        return HTTPStatus.BAD_REQUEST, {"error": str(e)}

    return HTTPStatus.OK, _dump(payload)


def parse_json_body(raw: bytes) -> dict[str, Any]:
    """Decode a request body that must hold a JSON object; raises ValueError otherwise."""
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise ValueError(f"Malformed JSON: {e}") from e
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


class SimulationHTTPServer(ThreadingHTTPServer):
    """HTTP server carrying the simulation core and its write lock."""

    def __init__(self, server_address: tuple[str, int], core: SimulationCore) -> None:
        super().__init__(server_address, SimulationHandler)
        self.core = core
        self.lock = threading.Lock()


class SimulationHandler(BaseHTTPRequestHandler):
    """Serve the JSON API."""

    server: SimulationHTTPServer

    def do_GET(self) -> None:  # noqa: N802 (BaseHTTPRequestHandler signature)
        self._handle("GET")

    def do_POST(self) -> None:  # noqa: N802
        self._handle("POST")

    def do_DELETE(self) -> None:  # noqa: N802
        self._handle("DELETE")

    def _handle(self, method: str) -> None:
        try:
            body = self._read_body()
        except ValueError as e:
            self._send_json({"error": str(e)}, HTTPStatus.BAD_REQUEST)
            return

        with self.server.lock:
            status, payload = dispatch(self.server.core, method, self.path, body)
        self._send_json(payload, status)

    def _read_body(self) -> dict[str, Any]:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            raise ValueError("Invalid Content-Length header") from None
        if length <= 0:
            return {}
        return parse_json_body(self.rfile.read(length))

    def log_message(self, fmt: str, *args: Any) -> None:
        logger.debug("api: " + (fmt % args))

    def _send_json(self, payload: Any, status: HTTPStatus = HTTPStatus.OK) -> None:
        raw = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Cache-Control", "no-store")
        self.send_header("Content-Length", str(len(raw)))
        self.end_headers()
        self.wfile.write(raw)


def run_api_server(core: SimulationCore, host: str = "127.0.0.1", port: int = 8787) -> None:
    """Serve the JSON API until interrupted."""
    server = SimulationHTTPServer((host, port), core)
    logger.info(f"Starting simulation API at http://{host}:{port}/api")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Simulation API stopped by user")
    finally:
        server.server_close()
