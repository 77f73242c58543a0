from http import HTTPStatus

import pytest

from config.settings import Settings
from neuronet.api import create_simulation_core, dispatch, parse_json_body


@pytest.fixture
def core():
    return create_simulation_core(Settings(), seed=17)


def start_backtest(core, **overrides):
    body = {
        "symbol": "BTC-USD",
        "interval": "1h",
        "from_date": "2024-01-01",
        "to_date": "2024-01-03",
        "agents": ["Atlas", "Sentinel"],
    }
    body.update(overrides)
    return dispatch(core, "POST", "/api/backtest/start", body)


class TestRouting:
    def test_unknown_prefix(self, core) -> None:
        status, payload = dispatch(core, "GET", "/health")
        assert status == HTTPStatus.NOT_FOUND
        assert "error" in payload

    def test_unknown_route(self, core) -> None:
        status, _ = dispatch(core, "GET", "/api/nothing/here")
        assert status == HTTPStatus.NOT_FOUND

    def test_wrong_method(self, core) -> None:
        status, _ = dispatch(core, "DELETE", "/api/backtest/agents")
        assert status == HTTPStatus.NOT_FOUND

    def test_query_string_ignored(self, core) -> None:
        status, payload = dispatch(core, "GET", "/api/backtest/agents?verbose=1")
        assert status == HTTPStatus.OK
        assert payload["agents"] == ["Atlas", "Vega", "Nova", "Sentinel", "Arbiter"]


class TestQuickBacktestRoutes:
    def test_start_and_fetch(self, core) -> None:
        status, result = start_backtest(core)
        assert status == HTTPStatus.OK
        assert result["status"] == "completed"

        status, fetched = dispatch(core, "GET", f"/api/backtest/results/{result['id']}")
        assert status == HTTPStatus.OK
        assert fetched["id"] == result["id"]
        assert fetched["summary"].startswith("Backtest Results")

        status, listing = dispatch(core, "GET", "/api/backtest/results")
        assert [r["id"] for r in listing] == [result["id"]]

    def test_failed_backtest_is_still_returned(self, core) -> None:
        status, result = start_backtest(core, agents=["Zeus"])
        assert status == HTTPStatus.OK
        assert result["status"] == "failed"
        assert result["error_message"]

    def test_missing_result(self, core) -> None:
        status, payload = dispatch(core, "GET", "/api/backtest/results/qbt-missing")
        assert status == HTTPStatus.NOT_FOUND
        assert "qbt-missing" in payload["error"]

    def test_invalid_body(self, core) -> None:
        status, payload = dispatch(core, "POST", "/api/backtest/start", {"symbol": "BTC"})
        assert status == HTTPStatus.UNPROCESSABLE_ENTITY
        assert payload["error"] == "Invalid request body"
        assert payload["details"]


class TestScenarioRoutes:
    def create(self, core) -> dict:
        status, scenario = dispatch(
            core,
            "POST",
            "/api/backtesting/scenarios",
            {"name": "Jan", "chain": "base", "start_date": "2024-01-01", "end_date": "2024-01-04"},
        )
        assert status == HTTPStatus.OK
        return scenario

    def test_scenario_lifecycle(self, core) -> None:
        scenario = self.create(core)
        status, listing = dispatch(core, "GET", "/api/backtesting/scenarios")
        assert status == HTTPStatus.OK
        assert listing[0]["id"] == scenario["id"]
        assert listing[0]["data_point_count"] == len(scenario["data_points"])

        status, fetched = dispatch(core, "GET", f"/api/backtesting/scenarios/{scenario['id']}")
        assert fetched["name"] == "Jan"

        status, payload = dispatch(core, "DELETE", f"/api/backtesting/scenarios/{scenario['id']}")
        assert status == HTTPStatus.OK
        assert payload == {"deleted": scenario["id"]}

        status, _ = dispatch(core, "DELETE", f"/api/backtesting/scenarios/{scenario['id']}")
        assert status == HTTPStatus.NOT_FOUND

    def test_bad_dates_rejected(self, core) -> None:
        status, _ = dispatch(
            core,
            "POST",
            "/api/backtesting/scenarios",
            {"name": "Bad", "start_date": "2024-01-05", "end_date": "2024-01-01"},
        )
        assert status == HTTPStatus.BAD_REQUEST

    def test_runs_compare_and_stats(self, core) -> None:
        scenario = self.create(core)
        run_ids = []
        for risk in ("conservative", "aggressive"):
            status, run = dispatch(
                core,
                "POST",
                "/api/backtesting/runs",
                {
                    "scenario_id": scenario["id"],
                    "strategy_config": {"risk_tolerance": risk},
                    "initial_balance": 1000,
                },
            )
            assert status == HTTPStatus.OK
            assert run["status"] == "completed"
            run_ids.append(run["id"])

        status, run = dispatch(core, "GET", f"/api/backtesting/runs/{run_ids[0]}")
        assert run["id"] == run_ids[0]

        status, comparison = dispatch(core, "POST", "/api/backtesting/compare", {"run_ids": run_ids})
        assert status == HTTPStatus.OK
        assert comparison["best_performing_run"] in run_ids

        status, comparisons = dispatch(core, "GET", "/api/backtesting/comparisons")
        assert len(comparisons) == 1

        status, stats = dispatch(core, "GET", "/api/backtesting/stats")
        assert stats["total_runs"] == 2
        assert stats["completed_runs"] == 2

    def test_run_unknown_scenario(self, core) -> None:
        status, _ = dispatch(core, "POST", "/api/backtesting/runs", {"scenario_id": "scn-missing"})
        assert status == HTTPStatus.NOT_FOUND

    def test_compare_needs_two_runs(self, core) -> None:
        status, payload = dispatch(core, "POST", "/api/backtesting/compare", {"run_ids": ["run-x"]})
        assert status == HTTPStatus.BAD_REQUEST
        assert "at least 2" in payload["error"]


class TestModelRoutes:
    def test_features(self, core) -> None:
        status, features = dispatch(
            core,
            "POST",
            "/api/ml/features",
            {"memory_entries": [{"id": "m1", "strategy_type": "successful"}]},
        )
        assert status == HTTPStatus.OK
        assert features["market_sentiment"] == 52.0

    def test_predict_and_outcome(self, core) -> None:
        status, prediction = dispatch(
            core,
            "POST",
            "/api/ml/predict",
            {"opportunity_id": "opp-1", "features": {"tvl_change": 10, "market_sentiment": 70}},
        )
        assert status == HTTPStatus.OK
        assert 0 <= prediction["success_probability"] <= 100

        status, payload = dispatch(
            core, "POST", "/api/ml/outcome", {"opportunity_id": "opp-1", "outcome": "success"}
        )
        assert payload == {"scored": True}

        status, metrics = dispatch(core, "GET", "/api/ml/metrics")
        assert metrics["total_predictions"] == 1

    def test_seeded_model_state(self, core) -> None:
        status, clusters = dispatch(core, "GET", "/api/ml/clusters")
        assert status == HTTPStatus.OK
        assert len(clusters) == 5

        status, weights = dispatch(core, "GET", "/api/ml/weights")
        assert weights["volatility_weight"] < 0

    def test_cluster_and_train(self, core) -> None:
        vectors = [{"tvl_change": i, "volume_change": i * 3} for i in range(6)]
        status, clusters = dispatch(
            core, "POST", "/api/ml/cluster", {"feature_vectors": vectors, "config": {"k": 3}}
        )
        assert status == HTTPStatus.OK
        assert len(clusters) == 3

        point = {
            "id": "extra-1",
            "features": {"tvl_change": 4},
            "outcome": "success",
            "actual_return": 0.05,
        }
        status, metrics = dispatch(core, "POST", "/api/ml/train", {"data_points": [point]})
        assert status == HTTPStatus.OK
        assert metrics["training_data_points"] == 13

    def test_invalid_outcome(self, core) -> None:
        status, _ = dispatch(
            core, "POST", "/api/ml/outcome", {"opportunity_id": "opp-1", "outcome": "maybe"}
        )
        assert status == HTTPStatus.UNPROCESSABLE_ENTITY


class TestParseJsonBody:
    def test_object(self) -> None:
        assert parse_json_body(b'{"k": 3}') == {"k": 3}

    @pytest.mark.parametrize(
        "raw, message",
        [
            (b"{not json", "Malformed JSON"),
            (b'{"name": "\xff"}', "Malformed JSON"),
            (b"[1, 2]", "Request body must be a JSON object"),
        ],
    )
    def test_rejected(self, raw, message) -> None:
        with pytest.raises(ValueError, match=message):
            parse_json_body(raw)
