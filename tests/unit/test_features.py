import pytest

from neuronet.ml import FeatureExtractor, percent_change, relative_volatility
from neuronet.models import CreditTransaction, MarketData, MemoryEntry


def memory(kind: str, i: int = 0) -> MemoryEntry:
    return MemoryEntry(id=f"mem-{i}", strategy_type=kind)


def credit(amount: float) -> CreditTransaction:
    return CreditTransaction(agent_id="agent-1", amount=amount)


def test_relative_volatility_and_change() -> None:
    assert relative_volatility(90.0, 100.0) == pytest.approx(10.0)
    assert percent_change(90.0, 100.0) == pytest.approx(-10.0)
    assert relative_volatility(None, 100.0) == 0.0
    assert percent_change(100.0, 0.0) == 0.0


def test_extract_without_inputs_is_neutral() -> None:
    features = FeatureExtractor().extract([], [], None, timestamp=123)
    assert features.price_volatility == 0.0
    assert features.tvl_change == 0.0
    assert features.gas_price == 50.0
    assert features.agent_performance == 50.0
    assert features.market_sentiment == 50.0
    assert features.liquidity_depth == 50.0
    assert features.volume_change == 0.0
    assert features.timestamp == 123


def test_extract_from_market_data() -> None:
    market = MarketData(
        price=110.0,
        previous_price=100.0,
        tvl=100.0,
        previous_tvl=80.0,
        gas_price=42.0,
        volume=10.0,
        previous_volume=8.0,
    )
    features = FeatureExtractor().extract([], [], market)
    assert features.price_volatility == pytest.approx(10.0)
    assert features.tvl_change == pytest.approx(25.0)
    assert features.gas_price == 42.0
    assert features.liquidity_depth == pytest.approx(90.0)
    assert features.volume_change == pytest.approx(25.0)


def test_agent_performance_share_of_positive_credit() -> None:
    extractor = FeatureExtractor()
    assert extractor.agent_performance([credit(30.0), credit(-10.0)]) == pytest.approx(75.0)
    assert extractor.agent_performance([credit(-5.0)]) == 0.0


def test_agent_performance_window() -> None:
    extractor = FeatureExtractor(transaction_window=2)
    history = [credit(-100.0), credit(10.0), credit(10.0)]
    assert extractor.agent_performance(history) == 100.0


def test_market_sentiment() -> None:
    extractor = FeatureExtractor()
    entries = [memory("successful", i) for i in range(3)] + [memory("blocked", 3), memory("learned", 4)]
    assert extractor.market_sentiment(entries) == 54.0
    assert extractor.market_sentiment([memory("high-risk", i) for i in range(40)]) == 0.0


def test_market_sentiment_window() -> None:
    extractor = FeatureExtractor(sentiment_window=2)
    entries = [memory("blocked", 0), memory("successful", 1), memory("successful", 2)]
    assert extractor.market_sentiment(entries) == 54.0


def test_liquidity_depth_clamped() -> None:
    assert FeatureExtractor.liquidity_depth(100.0, 500.0) == 0.0
    assert FeatureExtractor.liquidity_depth(None, 5.0) == 50.0
