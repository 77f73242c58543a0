from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Interval = Literal["1m", "5m", "15m", "1h", "4h", "1d"]
Chain = Literal["ethereum", "base", "fraxtal", "solana"]

INTERVAL_MS: dict[str, int] = {
    "1m": 60 * 1000,
    "5m": 5 * 60 * 1000,
    "15m": 15 * 60 * 1000,
    "1h": 60 * 60 * 1000,
    "4h": 4 * 60 * 60 * 1000,
    "1d": 24 * 60 * 60 * 1000,
}


class Candle(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int
    open: float = Field(gt=0)
    high: float = Field(gt=0)
    low: float = Field(gt=0)
    close: float = Field(gt=0)
    volume: float = Field(gt=0)

    @model_validator(mode="after")
    def validate_price_envelope(self) -> "Candle":
        if not self.low <= min(self.open, self.close):
            raise ValueError("low must not exceed open or close")
        if not max(self.open, self.close) <= self.high:
            raise ValueError("high must not be below open or close")
        return self

    @property
    def range_pct(self) -> float:
        return (self.high - self.low) / self.close


class HistoricalDataPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    timestamp: int
    price: float = Field(gt=0)
    volume: float = Field(ge=0)
    tvl: float = Field(ge=0)
    gas_price: float = Field(ge=0)
    volatility: float = Field(ge=0)


class Scenario(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    name: str
    description: str
    chain: Chain
    start_timestamp: int
    end_timestamp: int
    data_points: list[HistoricalDataPoint]
    created_at: int

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "chain": self.chain,
            "start_timestamp": self.start_timestamp,
            "end_timestamp": self.end_timestamp,
            "data_point_count": len(self.data_points),
            "created_at": self.created_at,
        }
